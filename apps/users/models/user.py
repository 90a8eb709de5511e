from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom User model with a public nickname"""
    nickname = models.CharField(max_length=30, blank=True)
    nickname_changed_at = models.DateTimeField(null=True, blank=True)
    avatar = models.URLField(max_length=500, null=True, blank=True, help_text="Avatar URL stored in cloud storage")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.nickname or self.username or f"User {self.id}"
