"""
User profile serializers.
"""
from django.utils import timezone
from rest_framework import serializers

from apps.common.validators import (
    next_nickname_change_at, validate_email, validate_nickname, validate_nickname_change
)
from apps.tiers.models import UserProgress
from ..models import User


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Serializer for the caller's profile.
    Used for: GET /api/users/profile/
    """
    tier_level = serializers.SerializerMethodField()
    next_nickname_change_at = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'nickname', 'avatar', 'tier_level',
            'nickname_changed_at', 'next_nickname_change_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_tier_level(self, obj):
        progress = UserProgress.objects.filter(user=obj).first()
        return progress.tier_level if progress else 0

    def get_next_nickname_change_at(self, obj):
        allowed_at = next_nickname_change_at(obj)
        return allowed_at.isoformat() if allowed_at else None


class UserUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for profile update operation.
    Used for: POST /api/users/profile/
    A nickname may change once per NICKNAME_CHANGE_COOLDOWN_DAYS.
    """
    nickname = serializers.CharField(required=False, max_length=30)
    email = serializers.EmailField(required=False)
    avatar = serializers.URLField(required=False, allow_blank=True, allow_null=True, max_length=500)

    class Meta:
        model = User
        fields = ['nickname', 'email', 'avatar']

    def validate_nickname(self, value):
        value = validate_nickname(value)
        if self.instance:
            return validate_nickname_change(value, self.instance)
        return value

    def validate_email(self, value):
        """Validate email uniqueness, excluding current user"""
        if value and self.instance:
            return validate_email(value, exclude_user=self.instance)
        return value

    def update(self, instance, validated_data):
        nickname = validated_data.get('nickname')
        if nickname is not None and nickname != instance.nickname:
            instance.nickname_changed_at = timezone.now()
        return super().update(instance, validated_data)
