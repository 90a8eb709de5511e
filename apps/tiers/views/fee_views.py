"""
Fee discount and fee savings views.
"""
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.common.utils import error_response, success_response
from ..serializers import FeeDiscountQuerySerializer, FeeDiscountSerializer, FeeSavingsSerializer
from ..services import ProgressionService


class FeeDiscountView(APIView):
    """Active trading fee discount, optionally applied to a fee"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = FeeDiscountQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return error_response('Invalid fee', 'validation_error', query.errors)

        discount = ProgressionService.get_fee_discount(request.user, query.validated_data.get('fee'))
        return success_response(FeeDiscountSerializer(discount).data)


class FeeSavingsView(APIView):
    """Fees the caller saved through discounts on recorded trades"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        savings = ProgressionService.get_fee_savings(request.user)
        return success_response(FeeSavingsSerializer(savings).data)
