"""
User views module.
"""
from .profile_views import UserProfileView

__all__ = [
    'UserProfileView',
]
