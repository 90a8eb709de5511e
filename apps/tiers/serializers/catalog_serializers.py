"""
Catalog serializers. Catalog entries are frozen dataclasses, not models.
"""
from rest_framework import serializers


class TierDefinitionSerializer(serializers.Serializer):
    """
    Serializer for one tier of the ladder.
    Used for: GET /api/nft/tiers/
    """
    level = serializers.IntegerField()
    name = serializers.CharField()
    symbol = serializers.CharField()
    required_volume = serializers.DecimalField(max_digits=20, decimal_places=2)
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    benefits = serializers.DictField()
    required_badge_ids = serializers.ListField(child=serializers.IntegerField())
    direct_claim = serializers.BooleanField()


class SpecialTierDefinitionSerializer(serializers.Serializer):
    """
    Serializer for an awarded special tier.
    Used for: GET /api/nft/tiers/
    """
    code = serializers.CharField()
    name = serializers.CharField()
    fee_discount = serializers.DecimalField(max_digits=5, decimal_places=2)
    benefits = serializers.DictField()
    acquisition = serializers.CharField()


class BadgeDefinitionSerializer(serializers.Serializer):
    """
    Serializer for a catalog badge.
    Used for nested serialization in the badge collection.
    """
    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    tier_level = serializers.IntegerField()
    task_id = serializers.IntegerField()
    task_name = serializers.CharField()
    rarity = serializers.CharField()
    contribution_value = serializers.DecimalField(max_digits=5, decimal_places=2)
