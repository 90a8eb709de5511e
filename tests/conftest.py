"""
Test configuration for the loyalty server.
"""
import pytest

from apps.tiers.catalog import set_catalog


@pytest.fixture
def user_factory():
    """Factory for creating test users."""
    from tests.factories import UserFactory
    return UserFactory


@pytest.fixture
def use_catalog():
    """Install a catalog for the test and restore the default afterwards."""
    def install(catalog):
        set_catalog(catalog)
        return catalog

    yield install
    set_catalog(None)


@pytest.fixture
def api_client():
    """Unauthenticated DRF client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def auth_client(api_client, user_factory):
    """DRF client authenticated as a fresh user; the user is ``auth_client.user``."""
    user = user_factory()
    api_client.force_authenticate(user=user)
    api_client.user = user
    return api_client


@pytest.fixture
def staff_client(user_factory):
    """DRF client authenticated as a staff user feeding trades and awards."""
    from rest_framework.test import APIClient
    client = APIClient()
    user = user_factory(is_staff=True)
    client.force_authenticate(user=user)
    client.user = user
    return client
