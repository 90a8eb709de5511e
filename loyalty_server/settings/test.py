"""
Test settings for loyalty_server project.
"""

import os
import tempfile

from .base import *

# Use SQLite for testing
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        # BEGIN IMMEDIATE makes concurrent writers queue on the database lock
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
        # File backed so threads in TransactionTestCase share the test database
        'TEST': {
            'NAME': os.path.join(tempfile.gettempdir(), 'loyalty_server_test.sqlite3'),
        },
    }
}

# Disable migrations for faster testing
class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None

MIGRATION_MODULES = DisableMigrations()

# Use faster password hasher for testing
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Disable logging during tests
LOGGING_CONFIG = None

# Issuer calls should fail fast in tests
TIER_ISSUER_BACKEND = 'apps.tiers.issuers.LocalTierIssuer'
TIER_ISSUER_TIMEOUT_SECONDS = 2
TIER_UPGRADE_MAX_RETRIES = 3
TIER_PENDING_UPGRADE_STALE_SECONDS = 3600
TIER_CATALOG_PATH = ''

CSRF_COOKIE_SECURE = False
SESSION_COOKIE_SECURE = False
