"""
Badge services module.
"""
from .badge_service import BADGE_STATUSES, ActivateResult, BadgeService, EarnResult

__all__ = [
    'BADGE_STATUSES',
    'ActivateResult',
    'BadgeService',
    'EarnResult',
]
