"""
Tier serializers module.
"""
from .catalog_serializers import (
    BadgeDefinitionSerializer, SpecialTierDefinitionSerializer, TierDefinitionSerializer
)
from .progress_serializers import (
    FeeDiscountQuerySerializer, FeeDiscountSerializer, FeeSavingsSerializer, ProgressSnapshotSerializer,
    SpecialTierAwardSerializer, TierClaimSerializer, TradeIntakeSerializer, TradingSummarySerializer,
    UpgradeEligibilitySerializer
)
from .upgrade_serializers import (
    TierChangeLogSerializer, UpgradeInputSerializer, UpgradeRequestDetailSerializer,
    UpgradeRequestQuerySerializer, UpgradeRequestSerializer, UpgradeResultSerializer
)

__all__ = [
    'BadgeDefinitionSerializer',
    'SpecialTierDefinitionSerializer',
    'TierDefinitionSerializer',
    'FeeDiscountQuerySerializer',
    'FeeDiscountSerializer',
    'FeeSavingsSerializer',
    'ProgressSnapshotSerializer',
    'SpecialTierAwardSerializer',
    'TierClaimSerializer',
    'TradeIntakeSerializer',
    'TradingSummarySerializer',
    'UpgradeEligibilitySerializer',
    'TierChangeLogSerializer',
    'UpgradeInputSerializer',
    'UpgradeRequestDetailSerializer',
    'UpgradeRequestQuerySerializer',
    'UpgradeRequestSerializer',
    'UpgradeResultSerializer',
]
