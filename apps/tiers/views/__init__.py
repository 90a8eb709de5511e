"""
Tier views module.
"""
from .tier_views import TierCatalogView, TierClaimView, TierInfoView, UpgradeEligibilityView
from .upgrade_views import TierUpgradeView, UpgradeHistoryView, UpgradeRequestDetailView, UpgradeRequestListView
from .fee_views import FeeDiscountView, FeeSavingsView
from .trading_views import SpecialTierAwardView, TradingVolumeIntakeView, TradingVolumeView

__all__ = [
    'TierCatalogView',
    'TierClaimView',
    'TierInfoView',
    'UpgradeEligibilityView',
    'TierUpgradeView',
    'UpgradeHistoryView',
    'UpgradeRequestDetailView',
    'UpgradeRequestListView',
    'FeeDiscountView',
    'FeeSavingsView',
    'SpecialTierAwardView',
    'TradingVolumeIntakeView',
    'TradingVolumeView',
]
