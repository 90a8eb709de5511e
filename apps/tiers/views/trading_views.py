"""
Trading volume intake and special tier award views.
"""
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.views import APIView

from apps.common.utils import error_response, success_response
from ..serializers import SpecialTierAwardSerializer, TradeIntakeSerializer, TradingSummarySerializer
from ..services import ProgressionService

User = get_user_model()


def _get_user_or_none(user_id):
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        return None


class TradingVolumeView(APIView):
    """Cumulative and recent traded volume of the caller"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        summary = ProgressionService.get_trading_summary(request.user)
        return success_response(TradingSummarySerializer(summary).data)


class TradingVolumeIntakeView(APIView):
    """
    Record a trade for a user.

    Called by the trading platform with a staff account; a trade posted again
    with the same reference_id is not counted twice.
    """
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = TradeIntakeSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid trade', 'validation_error', serializer.errors)

        data = serializer.validated_data
        user = _get_user_or_none(data['user_id'])
        if user is None:
            return error_response('User not found', 'user_not_found', status_code=status.HTTP_404_NOT_FOUND)

        progress = ProgressionService.record_trading_volume(
            user, data['amount'], fee=data.get('fee'), reference_id=data.get('reference_id') or None,
        )
        return success_response(
            {'user_id': user.id, 'trading_volume': str(progress.trading_volume)},
            'Trade recorded',
            status.HTTP_201_CREATED,
        )


class SpecialTierAwardView(APIView):
    """Award a special tier outside the ladder to a user"""
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = SpecialTierAwardSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid special tier award', 'validation_error', serializer.errors)

        data = serializer.validated_data
        user = _get_user_or_none(data['user_id'])
        if user is None:
            return error_response('User not found', 'user_not_found', status_code=status.HTTP_404_NOT_FOUND)

        special, created = ProgressionService.award_special_tier(user, data['code'], data['reason'])
        payload = {'user_id': user.id, 'code': special.code, 'reason': special.reason, 'awarded_at': special.awarded_at}
        if created:
            return success_response(payload, f'Special tier {special.code} awarded', status.HTTP_201_CREATED)
        return success_response(payload, f'Special tier {special.code} already held')
