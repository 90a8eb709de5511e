from decimal import Decimal

from django.conf import settings
from django.db import models


class TradeRecord(models.Model):
    """One traded amount fed into a user's cumulative volume"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tier_trades')
    amount = models.DecimalField(max_digits=20, decimal_places=2)
    volume_after = models.DecimalField(max_digits=20, decimal_places=2)  # Cumulative volume after this trade
    fee = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)
    fee_discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    fee_saved = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('0.00'))
    tier_level = models.PositiveSmallIntegerField(default=0)  # Tier held when the trade was recorded
    reference_id = models.CharField(max_length=100, blank=True, null=True)  # Trade id from the feed
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'tier_trade_records'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'reference_id'], name='unique_trade_reference_per_user'),
        ]

    def __str__(self):
        return f"{self.user.username} - traded {self.amount}"
