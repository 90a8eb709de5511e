"""
Tier catalog, progress and claim views.
"""
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.badges.services import BadgeService
from apps.common.utils import error_response, success_response
from ..catalog import get_catalog
from ..serializers import (
    ProgressSnapshotSerializer, SpecialTierDefinitionSerializer, TierClaimSerializer,
    TierDefinitionSerializer, UpgradeEligibilitySerializer, UpgradeRequestSerializer,
)
from ..services import ProgressionService


class TierCatalogView(APIView):
    """List the tier ladder and the special tiers"""
    permission_classes = [AllowAny]

    def get(self, request):
        catalog = get_catalog()
        return success_response({
            'tiers': TierDefinitionSerializer(catalog.tiers, many=True).data,
            'special_tiers': SpecialTierDefinitionSerializer(catalog.special_tiers, many=True).data,
        })


class TierInfoView(APIView):
    """Current tier, progress towards the next one, badges and any pending upgrade"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        catalog = get_catalog()
        progress, snapshot = ProgressionService.get_snapshot(request.user, catalog)
        pending = ProgressionService.get_pending_upgrade(request.user)

        data = ProgressSnapshotSerializer(ProgressionService.describe_snapshot(snapshot, catalog)).data
        data['tier_state'] = progress.tier_state
        data['tier_claimed_at'] = progress.tier_claimed_at
        data['badge_summary'] = BadgeService.get_collection(request.user)['stats']
        data['pending_upgrade'] = UpgradeRequestSerializer(pending).data if pending else None
        return success_response(data)


class TierClaimView(APIView):
    """Claim the entry tier of the ladder"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = TierClaimSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid claim request', 'validation_error', serializer.errors)

        result = ProgressionService.claim_tier(request.user, serializer.validated_data['level'])
        data = {
            'level': result.level,
            'changed': result.changed,
            'fee_discount': str(result.fee_discount),
            'benefits': result.benefits,
            'mint_reference': result.mint_reference,
        }
        if result.changed:
            return success_response(data, f'Tier {result.level} claimed', status.HTTP_201_CREATED)
        return success_response(data, f'Tier {result.level} already held')


class UpgradeEligibilityView(APIView):
    """Whether the caller can upgrade to the next tier, and what is missing"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        eligibility = ProgressionService.get_upgrade_eligibility(request.user)
        return success_response(UpgradeEligibilitySerializer(eligibility).data)
