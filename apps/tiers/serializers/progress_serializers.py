"""
Progress, claim and fee discount serializers.
"""
from rest_framework import serializers

from .upgrade_serializers import DiscountScheduleRowSerializer, UpgradeRequestSerializer


class TierProgressRowSerializer(serializers.Serializer):
    level = serializers.IntegerField()
    name = serializers.CharField()
    required_volume = serializers.DecimalField(max_digits=20, decimal_places=2)
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    status = serializers.CharField()
    progress = serializers.IntegerField()
    volume_met = serializers.BooleanField()
    missing_badge_ids = serializers.ListField(child=serializers.IntegerField())


class ProgressSnapshotSerializer(serializers.Serializer):
    """
    Serializer for a user's position on the ladder.
    Used for: GET /api/nft/info/
    """
    trading_volume = serializers.DecimalField(max_digits=20, decimal_places=2)
    current_tier_level = serializers.IntegerField()
    volume_tier_level = serializers.IntegerField()
    held_tier_level = serializers.IntegerField()
    held_tier_name = serializers.CharField(allow_null=True)
    next_tier_level = serializers.IntegerField(allow_null=True)
    next_tier_progress = serializers.IntegerField(allow_null=True)
    next_tier_shortfall = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)
    next_tier_missing_badge_ids = serializers.ListField(child=serializers.IntegerField())
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    benefits = serializers.DictField()
    special_tiers = serializers.ListField(child=serializers.CharField())
    tiers = TierProgressRowSerializer(many=True)


class UpgradeEligibilitySerializer(serializers.Serializer):
    """
    Serializer for the next-tier eligibility projection.
    Used for: GET /api/nft/can-upgrade/
    """
    current_level = serializers.IntegerField()
    tier_state = serializers.CharField()
    next_level = serializers.IntegerField(allow_null=True)
    can_upgrade = serializers.BooleanField()
    trading_volume = serializers.DecimalField(max_digits=20, decimal_places=2)
    required_volume = serializers.DecimalField(max_digits=20, decimal_places=2, required=False)
    required_badge_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    progress = serializers.IntegerField(allow_null=True)
    shortfall = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)
    missing_badge_ids = serializers.ListField(child=serializers.IntegerField())
    pending_upgrade = UpgradeRequestSerializer(allow_null=True)


class TierClaimSerializer(serializers.Serializer):
    """
    Input serializer for claiming an entry tier.
    Used for: POST /api/nft/claim/
    """
    level = serializers.IntegerField(default=1)


class FeeDiscountQuerySerializer(serializers.Serializer):
    """
    Query parameters of the fee discount lookup.
    Used for: GET /api/nft/fee-discount/?fee=
    """
    fee = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=0, required=False)


class FeeDiscountSerializer(serializers.Serializer):
    """
    Serializer for the caller's active fee discount.
    Used for: GET /api/nft/fee-discount/
    """
    tier_level = serializers.IntegerField()
    special_tiers = serializers.ListField(child=serializers.CharField())
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    schedule = DiscountScheduleRowSerializer(many=True)
    fee = serializers.DecimalField(max_digits=20, decimal_places=2, required=False)
    discounted_fee = serializers.DecimalField(max_digits=20, decimal_places=2, required=False)


class TradeIntakeSerializer(serializers.Serializer):
    """
    Input serializer for one trade fed by the trading platform.
    Used for: POST /api/nft/trading-volume/record/
    """
    user_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=20, decimal_places=2)
    fee = serializers.DecimalField(max_digits=20, decimal_places=2, required=False)
    reference_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class TradingSummarySerializer(serializers.Serializer):
    """
    Serializer for the caller's traded volume.
    Used for: GET /api/nft/trading-volume/
    """
    trading_volume = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_trades = serializers.IntegerField()
    largest_trade = serializers.DecimalField(max_digits=20, decimal_places=2)
    last_trade_at = serializers.DateTimeField(allow_null=True)
    volume_last_7_days = serializers.DecimalField(max_digits=20, decimal_places=2)
    volume_last_30_days = serializers.DecimalField(max_digits=20, decimal_places=2)
    tier_level = serializers.IntegerField()
    next_tier_level = serializers.IntegerField(allow_null=True)
    next_tier_progress = serializers.IntegerField(allow_null=True)
    next_tier_shortfall = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)


class SavingsBreakdownSerializer(serializers.Serializer):
    last_30_days = serializers.DecimalField(max_digits=20, decimal_places=2)
    last_90_days = serializers.DecimalField(max_digits=20, decimal_places=2)
    last_year = serializers.DecimalField(max_digits=20, decimal_places=2)


class FeeSavingsSerializer(serializers.Serializer):
    """
    Serializer for fees saved through discounts on recorded trades.
    Used for: GET /api/nft/fee-savings/
    """
    tier_level = serializers.IntegerField()
    tier_name = serializers.CharField(allow_null=True)
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    total_fees = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_saved = serializers.DecimalField(max_digits=20, decimal_places=2)
    discounted_trades = serializers.IntegerField()
    savings_breakdown = SavingsBreakdownSerializer()


class SpecialTierAwardSerializer(serializers.Serializer):
    """
    Input serializer for awarding a special tier.
    Used for: POST /api/nft/special-tiers/award/
    """
    user_id = serializers.IntegerField()
    code = serializers.CharField(max_length=50)
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
