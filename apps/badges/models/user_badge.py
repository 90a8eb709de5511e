from django.conf import settings
from django.db import models
from django.utils import timezone


class UserBadge(models.Model):
    """
    A catalog badge earned by a user.

    Badges without a row are ``not_earned``. Status only moves forward:
    owned -> activated -> consumed, and consumed is terminal except for an
    administrative upgrade rollback.
    """
    NOT_EARNED = 'not_earned'
    OWNED = 'owned'
    ACTIVATED = 'activated'
    CONSUMED = 'consumed'
    STATUS_CHOICES = [
        (OWNED, 'Owned'),
        (ACTIVATED, 'Activated'),
        (CONSUMED, 'Consumed'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='badges')
    badge_id = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=OWNED)
    earned_at = models.DateTimeField(auto_now_add=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    consumed_at = models.DateTimeField(null=True, blank=True)
    consumed_by = models.ForeignKey(
        'tiers.UpgradeRequest', on_delete=models.SET_NULL, null=True, blank=True, related_name='consumed_badges'
    )

    class Meta:
        db_table = 'user_badges'
        unique_together = ['user', 'badge_id']
        ordering = ['badge_id']

    def __str__(self):
        return f"{self.user.username} - badge {self.badge_id} ({self.status})"

    def activate(self):
        self.status = self.ACTIVATED
        self.activated_at = timezone.now()
        self.save(update_fields=['status', 'activated_at'])

    def consume(self, upgrade_request):
        self.status = self.CONSUMED
        self.consumed_at = timezone.now()
        self.consumed_by = upgrade_request
        self.save(update_fields=['status', 'consumed_at', 'consumed_by'])

    def restore(self):
        """Return a consumed badge to activated after a rolled back upgrade"""
        self.status = self.ACTIVATED
        self.consumed_at = None
        self.consumed_by = None
        self.save(update_fields=['status', 'consumed_at', 'consumed_by'])

    @classmethod
    def status_sets(cls, user):
        """(owned, activated, consumed) badge id sets of a user"""
        owned, activated, consumed = set(), set(), set()
        buckets = {cls.OWNED: owned, cls.ACTIVATED: activated, cls.CONSUMED: consumed}
        for badge_id, badge_status in cls.objects.filter(user=user).values_list('badge_id', 'status'):
            buckets[badge_status].add(badge_id)
        return owned, activated, consumed
