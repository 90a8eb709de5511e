"""
Badge collection and badge action serializers.
"""
from rest_framework import serializers

from apps.tiers.serializers import BadgeDefinitionSerializer
from ..services import BADGE_STATUSES


class UserBadgeSerializer(serializers.Serializer):
    """
    Serializer for a catalog badge joined with the user's status.
    Used for: GET /api/badges/
    """
    badge = BadgeDefinitionSerializer()
    status = serializers.CharField()
    earned_at = serializers.DateTimeField(allow_null=True)
    activated_at = serializers.DateTimeField(allow_null=True)
    consumed_at = serializers.DateTimeField(allow_null=True)
    required_for_levels = serializers.ListField(child=serializers.IntegerField())


class BadgeCollectionQuerySerializer(serializers.Serializer):
    """
    Query parameters of the badge collection.
    Used for: GET /api/badges/?level=&status=
    """
    level = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=BADGE_STATUSES, required=False)


class BadgeActivateSerializer(serializers.Serializer):
    """
    Input serializer for badge activation.
    Used for: POST /api/badges/activate/
    """
    badge_id = serializers.IntegerField()


class BadgeTaskCompleteSerializer(serializers.Serializer):
    """
    Input serializer for a completed badge task.
    Used for: POST /api/badges/task-complete/
    """
    task_id = serializers.IntegerField()
