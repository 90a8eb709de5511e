from django.conf import settings
from django.db import models


class TierChangeLog(models.Model):
    """History of tier changes"""
    CLAIM = 'claim'
    UPGRADE = 'upgrade'
    ROLLBACK = 'rollback'
    REASON_CHOICES = [
        (CLAIM, 'Claim'),
        (UPGRADE, 'Upgrade'),
        (ROLLBACK, 'Rollback'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tier_changes')
    from_level = models.PositiveSmallIntegerField(default=0)
    to_level = models.PositiveSmallIntegerField()
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    upgrade_request = models.ForeignKey(
        'UpgradeRequest', on_delete=models.SET_NULL, null=True, blank=True, related_name='change_logs'
    )
    trading_volume = models.DecimalField(max_digits=20, decimal_places=2)
    reference = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'tier_change_logs'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.user.username}: {self.from_level} -> {self.to_level} ({self.reason})"
