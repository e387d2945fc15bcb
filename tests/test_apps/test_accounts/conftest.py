"""Shared fixtures for accounts app tests."""

import pytest
from django.contrib.auth import get_user_model

from server.apps.accounts.models import Account

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test auth user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='test@example.com',
        email='test@example.com',
    )


@pytest.fixture
def account(user):
    """Create profile for the test user.

    Returns:
        Account instance for testing.
    """
    return Account.objects.create(
        user=user,
        full_name='Test User',
        email=user.email,
    )
