from decimal import Decimal

from django.conf import settings
from django.db import models


class UserProgressManager(models.Manager):

    def lock_for(self, user):
        """
        Row-lock the user's progress, creating it when missing.

        Must be called inside ``transaction.atomic()``. The locked row is the
        per-user mutex every tier and badge mutation goes through.
        """
        progress, _ = self.select_for_update().get_or_create(user=user)
        return progress


class UserProgress(models.Model):
    """A user's position on the tier ladder"""
    NO_TIER = 'no_tier'
    ACTIVE = 'active'
    PENDING_UPGRADE = 'pending_upgrade'
    STATE_CHOICES = [
        (NO_TIER, 'No tier'),
        (ACTIVE, 'Active'),
        (PENDING_UPGRADE, 'Pending upgrade'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tier_progress')
    trading_volume = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('0.00'))
    tier_level = models.PositiveSmallIntegerField(default=0)
    tier_state = models.CharField(max_length=20, choices=STATE_CHOICES, default=NO_TIER)
    tier_claimed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserProgressManager()

    class Meta:
        db_table = 'user_tier_progress'

    def __str__(self):
        return f"{self.user.username} - tier {self.tier_level} ({self.tier_state})"

    @property
    def holds_tier(self):
        return self.tier_state == self.ACTIVE and self.tier_level > 0

    @property
    def is_pending_upgrade(self):
        return self.tier_state == self.PENDING_UPGRADE
