"""
Badge collection and activation views.
"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.common.utils import error_response, success_response
from ..serializers import (
    BadgeActivateSerializer, BadgeCollectionQuerySerializer, BadgeTaskCompleteSerializer,
    UserBadgeSerializer
)
from ..services import BadgeService


class BadgeCollectionView(APIView):
    """Badge catalog with the caller's status for each badge"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = BadgeCollectionQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return error_response('Invalid badge filter', 'validation_error', query.errors)

        collection = BadgeService.get_collection(
            request.user,
            level=query.validated_data.get('level'),
            status=query.validated_data.get('status'),
        )
        return success_response({
            'badges': UserBadgeSerializer(collection['badges'], many=True).data,
            'stats': collection['stats'],
        })


class BadgeActivateView(APIView):
    """Activate an owned badge so it counts towards tier upgrades"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = BadgeActivateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid activation request', 'validation_error', serializer.errors)

        result = BadgeService.activate_badge(request.user, serializer.validated_data['badge_id'])
        message = 'Badge activated' if result.changed else 'Badge already activated'
        return success_response({
            'badge_id': result.badge_id,
            'status': result.status,
            'changed': result.changed,
        }, message)


class BadgeTaskCompleteView(APIView):
    """Record a completed task and grant its badge"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = BadgeTaskCompleteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid task completion', 'validation_error', serializer.errors)

        result = BadgeService.complete_badge_task(request.user, serializer.validated_data['task_id'])
        data = {'badge_id': result.badge_id, 'status': result.status, 'earned': result.earned}
        if result.earned:
            return success_response(data, 'Badge earned', status.HTTP_201_CREATED)
        return success_response(data, 'Badge already earned')
