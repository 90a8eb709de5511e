"""
Badge views module.
"""
from .badge_views import BadgeActivateView, BadgeCollectionView, BadgeTaskCompleteView

__all__ = [
    'BadgeActivateView',
    'BadgeCollectionView',
    'BadgeTaskCompleteView',
]
