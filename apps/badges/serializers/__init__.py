"""
Badge serializers module.
"""
from .badge_serializers import (
    BadgeActivateSerializer, BadgeCollectionQuerySerializer, BadgeTaskCompleteSerializer,
    UserBadgeSerializer
)

__all__ = [
    'BadgeActivateSerializer',
    'BadgeCollectionQuerySerializer',
    'BadgeTaskCompleteSerializer',
    'UserBadgeSerializer',
]
