"""
Badge models module.
"""
from .user_badge import UserBadge

__all__ = [
    'UserBadge',
]
