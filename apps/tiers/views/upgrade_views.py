"""
Tier upgrade views.
"""
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.common.utils import error_response, success_response
from ..serializers import (
    TierChangeLogSerializer, UpgradeInputSerializer, UpgradeRequestDetailSerializer,
    UpgradeRequestQuerySerializer, UpgradeResultSerializer,
)
from ..services import ProgressionService, UpgradeService


class TierUpgradeView(APIView):
    """
    Burn the current tier and mint the target one.

    Posting the same levels again after an interrupted upgrade resumes it.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = UpgradeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid upgrade request', 'validation_error', serializer.errors)

        result = UpgradeService.request_upgrade(
            request.user,
            serializer.validated_data['from_level'],
            serializer.validated_data['to_level'],
        )
        message = f'Upgraded to tier {result.tier_level}'
        if result.resumed:
            message = f'Resumed upgrade completed, now at tier {result.tier_level}'
        return success_response(UpgradeResultSerializer(result).data, message)


class UpgradeHistoryView(APIView):
    """Tier change history of the caller"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        limit = request.query_params.get('limit', 20)
        try:
            limit = max(1, min(100, int(limit)))
        except (TypeError, ValueError):
            return error_response('limit must be an integer', 'validation_error')

        history = ProgressionService.get_change_history(request.user, limit)
        return success_response(TierChangeLogSerializer(history, many=True).data)


class UpgradeRequestListView(APIView):
    """Upgrade requests of the caller, newest first, optionally by status"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = UpgradeRequestQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return error_response('Invalid upgrade request filter', 'validation_error', query.errors)

        requests = ProgressionService.get_upgrade_requests(
            request.user, query.validated_data.get('status'), query.validated_data['limit'],
        )
        return success_response(UpgradeRequestDetailSerializer(requests, many=True).data)


class UpgradeRequestDetailView(APIView):
    """Phase, retry state and history of one of the caller's upgrade requests"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        upgrade_request = ProgressionService.get_upgrade_request(request.user, pk)
        return success_response(UpgradeRequestDetailSerializer(upgrade_request).data)
