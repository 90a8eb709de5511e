"""
User serializers module.
"""
from .user_serializers import UserDetailSerializer, UserUpdateSerializer

__all__ = [
    'UserDetailSerializer',
    'UserUpdateSerializer',
]
