"""
Signals for tiers app
"""
import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import UserProgress

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_progress(sender, instance, created, **kwargs):
    """Create tier progress when a new user is created"""
    if created:
        UserProgress.objects.get_or_create(user=instance)
        logger.info(f"Created tier progress for user {instance.pk}")
