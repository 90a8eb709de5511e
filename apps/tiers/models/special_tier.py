from django.conf import settings
from django.db import models


class UserSpecialTier(models.Model):
    """A special tier awarded to a user outside the volume ladder"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='special_tiers')
    code = models.CharField(max_length=50)
    reason = models.CharField(max_length=200, blank=True)
    awarded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_special_tiers'
        unique_together = ['user', 'code']
        ordering = ['awarded_at']

    def __str__(self):
        return f"{self.user.username} - {self.code}"
