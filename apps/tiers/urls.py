from django.urls import path

from .views import (
    FeeDiscountView, FeeSavingsView, SpecialTierAwardView, TierCatalogView, TierClaimView, TierInfoView,
    TierUpgradeView, TradingVolumeIntakeView, TradingVolumeView, UpgradeEligibilityView,
    UpgradeHistoryView, UpgradeRequestDetailView, UpgradeRequestListView,
)

app_name = 'tiers'

urlpatterns = [
    path('tiers/', TierCatalogView.as_view(), name='tier_catalog'),
    path('info/', TierInfoView.as_view(), name='tier_info'),
    path('claim/', TierClaimView.as_view(), name='tier_claim'),
    path('can-upgrade/', UpgradeEligibilityView.as_view(), name='can_upgrade'),
    path('upgrade/', TierUpgradeView.as_view(), name='tier_upgrade'),
    path('upgrade-history/', UpgradeHistoryView.as_view(), name='upgrade_history'),
    path('upgrade-requests/', UpgradeRequestListView.as_view(), name='upgrade_requests'),
    path('upgrade-requests/<int:pk>/', UpgradeRequestDetailView.as_view(), name='upgrade_request_detail'),
    path('fee-discount/', FeeDiscountView.as_view(), name='fee_discount'),
    path('fee-savings/', FeeSavingsView.as_view(), name='fee_savings'),
    path('trading-volume/', TradingVolumeView.as_view(), name='trading_volume'),
    path('trading-volume/record/', TradingVolumeIntakeView.as_view(), name='trading_volume_record'),
    path('special-tiers/award/', SpecialTierAwardView.as_view(), name='special_tier_award'),
]
