from django.conf import settings
from django.db import models
from django.utils import timezone


class UpgradeRequestQuerySet(models.QuerySet):

    def unfinished(self):
        """Requests that still hold the user in PendingUpgrade"""
        return self.filter(status__in=UpgradeRequest.UNFINISHED_STATUSES)

    def in_progress(self):
        """Unfinished requests that may still be driven automatically"""
        return self.filter(status__in=UpgradeRequest.IN_PROGRESS_STATUSES)


class UpgradeRequest(models.Model):
    """One burn-then-mint tier transition, keyed by its idempotency key"""
    BURN_PENDING = 'burn_pending'
    BURN_CONFIRMED = 'burn_confirmed'
    COMPLETED = 'completed'
    RECONCILIATION_REQUIRED = 'reconciliation_required'
    ROLLED_BACK = 'rolled_back'
    ROLLBACK_PENDING = 'rollback_pending'
    STATUS_CHOICES = [
        (BURN_PENDING, 'Burn pending'),
        (BURN_CONFIRMED, 'Burn confirmed'),
        (COMPLETED, 'Completed'),
        (RECONCILIATION_REQUIRED, 'Reconciliation required'),
        (ROLLBACK_PENDING, 'Rollback pending'),
        (ROLLED_BACK, 'Rolled back'),
    ]
    IN_PROGRESS_STATUSES = [BURN_PENDING, BURN_CONFIRMED]
    UNFINISHED_STATUSES = [BURN_PENDING, BURN_CONFIRMED, RECONCILIATION_REQUIRED, ROLLBACK_PENDING]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tier_upgrade_requests')
    request_key = models.CharField(max_length=64, db_index=True)
    from_level = models.PositiveSmallIntegerField()
    to_level = models.PositiveSmallIntegerField()
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=BURN_PENDING)
    burn_reference = models.CharField(max_length=200, blank=True)
    mint_reference = models.CharField(max_length=200, blank=True)
    # Set once the old token is gone; rollback has to re-issue it
    burned_at = models.DateTimeField(null=True, blank=True)
    retry_count = models.PositiveIntegerField(default=0)
    max_retries = models.PositiveIntegerField(default=3)
    last_error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = UpgradeRequestQuerySet.as_manager()

    class Meta:
        db_table = 'tier_upgrade_requests'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.username}: {self.from_level} -> {self.to_level} ({self.status})"

    @property
    def is_unfinished(self):
        return self.status in self.UNFINISHED_STATUSES

    @property
    def needs_reconciliation(self):
        return self.status == self.RECONCILIATION_REQUIRED

    @property
    def is_rolling_back(self):
        return self.status == self.ROLLBACK_PENDING

    @property
    def can_retry(self):
        """Whether posting the same upgrade again may still drive this request"""
        return self.status in self.IN_PROGRESS_STATUSES

    def status_history(self):
        """Phase timestamps of this request, oldest first"""
        history = [{'status': self.BURN_PENDING, 'at': self.created_at}]
        if self.burned_at is not None:
            history.append({'status': self.BURN_CONFIRMED, 'at': self.burned_at})
        if self.completed_at is not None:
            history.append({'status': self.COMPLETED, 'at': self.completed_at})
        elif self.status not in self.IN_PROGRESS_STATUSES:
            history.append({'status': self.status, 'at': self.updated_at})
        return history

    @property
    def issuer_key(self):
        """Idempotency key for issuer calls, stable across retries of this request"""
        return f"{self.request_key}:{self.pk}"

    def record_failure(self, error):
        """Count a failed issuer attempt, flagging the request once the budget is spent"""
        self.retry_count += 1
        self.last_error = str(error)[:1000]
        if self.retry_count >= self.max_retries:
            self.status = self.RECONCILIATION_REQUIRED
        self.save(update_fields=['retry_count', 'last_error', 'status', 'updated_at'])

    def mark_burned(self, reference):
        self.status = self.BURN_CONFIRMED
        self.burn_reference = reference
        self.burned_at = timezone.now()
        self.last_error = ''
        self.save(update_fields=['status', 'burn_reference', 'burned_at', 'last_error', 'updated_at'])

    def mark_completed(self, reference):
        self.status = self.COMPLETED
        self.mint_reference = reference
        self.completed_at = timezone.now()
        self.last_error = ''
        self.save(update_fields=['status', 'mint_reference', 'completed_at', 'last_error', 'updated_at'])
