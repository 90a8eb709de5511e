"""
Upgrade request and tier history serializers.
"""
from rest_framework import serializers

from ..models import TierChangeLog, UpgradeRequest


class UpgradeInputSerializer(serializers.Serializer):
    """
    Input serializer for an upgrade request.
    Used for: POST /api/nft/upgrade/
    """
    from_level = serializers.IntegerField()
    to_level = serializers.IntegerField()


class UpgradeRequestSerializer(serializers.ModelSerializer):
    """
    Serializer for an upgrade request and its current phase.
    Used for: POST /api/nft/upgrade/, GET /api/nft/info/
    """
    class Meta:
        model = UpgradeRequest
        fields = ['id', 'from_level', 'to_level', 'status', 'burn_reference', 'mint_reference',
                  'retry_count', 'max_retries', 'last_error', 'created_at', 'updated_at', 'completed_at']
        read_only_fields = fields


class DiscountScheduleRowSerializer(serializers.Serializer):
    level = serializers.IntegerField()
    name = serializers.CharField()
    tier_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)


class UpgradeResultSerializer(serializers.Serializer):
    """
    Serializer for a completed upgrade with the new discount schedule.
    Used for: POST /api/nft/upgrade/
    """
    upgrade_request = UpgradeRequestSerializer()
    tier_level = serializers.IntegerField()
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    benefits = serializers.DictField()
    discount_schedule = DiscountScheduleRowSerializer(many=True)
    resumed = serializers.BooleanField()


class TierChangeLogSerializer(serializers.ModelSerializer):
    """
    Serializer for tier change history.
    Used for: GET /api/nft/upgrade-history/
    """
    class Meta:
        model = TierChangeLog
        fields = ['id', 'from_level', 'to_level', 'reason', 'trading_volume', 'reference', 'created_at']
        read_only_fields = fields


class UpgradeRequestQuerySerializer(serializers.Serializer):
    """
    Query parameters of the upgrade request listing.
    Used for: GET /api/nft/upgrade-requests/?status=&limit=
    """
    status = serializers.ChoiceField(choices=UpgradeRequest.STATUS_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)


class StatusHistoryEntrySerializer(serializers.Serializer):
    status = serializers.CharField()
    at = serializers.DateTimeField()


class UpgradeRequestDetailSerializer(UpgradeRequestSerializer):
    """
    Serializer for one upgrade request with its phase history.
    Used for: GET /api/nft/upgrade-requests/, GET /api/nft/upgrade-requests/<id>/
    """
    can_retry = serializers.BooleanField(read_only=True)
    status_history = serializers.SerializerMethodField()
    change_logs = TierChangeLogSerializer(many=True, read_only=True)

    class Meta(UpgradeRequestSerializer.Meta):
        fields = UpgradeRequestSerializer.Meta.fields + ['burned_at', 'can_retry', 'status_history', 'change_logs']
        read_only_fields = fields

    def get_status_history(self, obj):
        return StatusHistoryEntrySerializer(obj.status_history(), many=True).data
