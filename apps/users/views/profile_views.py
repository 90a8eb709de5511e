"""
User profile management views.
"""
import logging

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from apps.common.utils import success_response, error_response
from ..serializers import UserDetailSerializer, UserUpdateSerializer

logger = logging.getLogger(__name__)


class UserProfileView(APIView):
    """Read and update the caller's profile"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserDetailSerializer(request.user, context={'request': request})
        return success_response(serializer.data, 'User info retrieved successfully')

    def post(self, request):
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True, context={'request': request})
        if serializer.is_valid():
            serializer.save()
            logger.info(f"User {request.user.pk} updated profile fields {sorted(serializer.validated_data)}")
            updated_data = UserDetailSerializer(request.user, context={'request': request}).data
            return success_response(updated_data, 'Profile updated successfully')
        return error_response('Profile update failed', 'validation_error', serializer.errors)
