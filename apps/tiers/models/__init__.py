"""
Tier models module.
"""
from .progress import UserProgress
from .upgrade_request import UpgradeRequest
from .change_log import TierChangeLog
from .special_tier import UserSpecialTier
from .trade import TradeRecord

__all__ = [
    'UserProgress',
    'UpgradeRequest',
    'TierChangeLog',
    'UserSpecialTier',
    'TradeRecord',
]
