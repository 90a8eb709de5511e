"""
User-related validators for nickname and email validation.
"""
import re
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

User = get_user_model()

NICKNAME_PATTERN = re.compile(r'^[\w .\-]{2,30}$')


def validate_nickname(value):
    """
    Validate nickname format.

    Args:
        value: Nickname string

    Raises:
        serializers.ValidationError: If the nickname is too short, too long or
            contains characters other than letters, digits, spaces, dots,
            dashes and underscores

    Returns:
        str: Nickname without surrounding whitespace
    """
    value = (value or '').strip()
    if not NICKNAME_PATTERN.match(value):
        raise serializers.ValidationError(
            "Nickname must be 2-30 characters of letters, digits, spaces, '.', '-' or '_'."
        )
    return value


def next_nickname_change_at(user):
    """Earliest time the user may change their nickname again, None if now"""
    if not user.nickname_changed_at:
        return None
    allowed_at = user.nickname_changed_at + timedelta(days=settings.NICKNAME_CHANGE_COOLDOWN_DAYS)
    if allowed_at <= timezone.now():
        return None
    return allowed_at


def validate_nickname_change(value, user):
    """
    Enforce the nickname change cooldown.

    Submitting the current nickname is not a change and always passes.

    Raises:
        serializers.ValidationError: If the previous change is within
            NICKNAME_CHANGE_COOLDOWN_DAYS
    """
    if value == user.nickname:
        return value

    allowed_at = next_nickname_change_at(user)
    if allowed_at is not None:
        raise serializers.ValidationError(
            f"Nickname can be changed once every {settings.NICKNAME_CHANGE_COOLDOWN_DAYS} days. "
            f"Next change allowed after {allowed_at.isoformat()}."
        )
    return value


def validate_email(value, exclude_user=None):
    """
    Validate email format and uniqueness.

    Args:
        value: Email string
        exclude_user: User instance to exclude from uniqueness check (for updates)

    Raises:
        serializers.ValidationError: If email format is invalid or already exists

    Returns:
        str: Validated email
    """
    if not value:
        return value

    email_pattern = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
    if not email_pattern.match(value):
        raise serializers.ValidationError("Invalid email format.")

    queryset = User.objects.filter(email=value)
    if exclude_user:
        queryset = queryset.exclude(pk=exclude_user.pk)

    if queryset.exists():
        raise serializers.ValidationError("Email already registered.")

    return value
