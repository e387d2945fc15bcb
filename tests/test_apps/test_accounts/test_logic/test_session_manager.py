"""Tests for account session management and identity."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.accounts.logic.identity import (
    CurrentUser,
    get_current_user,
    normalize_email,
)
from server.apps.accounts.logic.session_manager import (
    cleanup_stale_sessions,
    create_session,
    end_session,
    get_active_session,
    get_session_timeout,
)
from server.apps.accounts.models import AccountSession


def _expire(session):
    AccountSession.objects.filter(pk=session.pk).update(
        last_activity=timezone.now() - timedelta(
            seconds=get_session_timeout() + 1,
        ),
    )


class TestSessionManagerConfig:
    """Tests for session configuration."""

    def test_get_session_timeout_default(self, settings):
        """Test default session timeout."""
        if hasattr(settings, 'ACCOUNTS_SESSION_TIMEOUT'):
            delattr(settings, 'ACCOUNTS_SESSION_TIMEOUT')

        assert get_session_timeout() == 60 * 60 * 24 * 7  # One week

    def test_get_session_timeout_from_settings(self, settings):
        """Test session timeout from settings."""
        settings.ACCOUNTS_SESSION_TIMEOUT = 3600

        assert get_session_timeout() == 3600


class TestCreateSession:
    """Tests for session creation."""

    @pytest.mark.django_db
    def test_create_session_success(self, user):
        """Test successful session creation."""
        session = create_session(
            user=user,
            ip_address='192.168.1.1',
            user_agent='Mozilla/5.0',
        )

        assert session.id is not None
        assert session.user == user
        assert session.ip_address == '192.168.1.1'
        assert session.user_agent == 'Mozilla/5.0'
        assert len(session.session_id) == 64  # 32 bytes = 64 hex chars

    @pytest.mark.django_db
    def test_create_session_unique_ids(self, user):
        """Test every session gets its own secret."""
        first = create_session(user)
        second = create_session(user)

        assert first.session_id != second.session_id

    @pytest.mark.django_db
    def test_create_session_truncates_user_agent(self, user):
        """Test that long user agents are truncated."""
        session = create_session(user, user_agent='A' * 500)

        assert len(session.user_agent) == 255

    @pytest.mark.django_db
    def test_create_session_cleans_stale(self, user):
        """Test stale sessions are removed when a new one starts."""
        stale = create_session(user)
        _expire(stale)

        create_session(user)

        assert not AccountSession.objects.filter(pk=stale.pk).exists()


class TestGetActiveSession:
    """Tests for session lookup."""

    @pytest.mark.django_db
    def test_get_active_session_success(self, user):
        """Test an active session is found by ID."""
        session = create_session(user)

        assert get_active_session(session.session_id) == session

    @pytest.mark.django_db
    def test_get_active_session_not_found(self):
        """Test unknown and empty IDs."""
        assert get_active_session('') is None
        assert get_active_session('nonexistent') is None

    @pytest.mark.django_db
    def test_get_active_session_timed_out(self, user):
        """Test sessions inactive past the timeout are not returned."""
        session = create_session(user)
        _expire(session)

        assert get_active_session(session.session_id) is None

    @pytest.mark.django_db
    def test_get_active_session_touches_activity(self, user):
        """Test a lookup restarts the inactivity timer."""
        session = create_session(user)
        old_activity = timezone.now() - timedelta(hours=1)
        AccountSession.objects.filter(pk=session.pk).update(
            last_activity=old_activity,
        )

        get_active_session(session.session_id)

        session.refresh_from_db()
        assert session.last_activity > old_activity


class TestEndSession:
    """Tests for ending sessions."""

    @pytest.mark.django_db
    def test_end_session_success(self, user):
        """Test ending a session."""
        session = create_session(user)

        assert end_session(session.session_id) is True
        assert not AccountSession.objects.filter(pk=session.pk).exists()

    @pytest.mark.django_db
    def test_end_session_not_found(self):
        """Test ending a session that does not exist."""
        assert end_session('nonexistent') is False

    @pytest.mark.django_db
    def test_cleanup_stale_sessions(self, user):
        """Test only stale sessions are removed."""
        stale = create_session(user)
        active = create_session(user)
        _expire(stale)

        assert cleanup_stale_sessions() == 1
        assert list(AccountSession.objects.values_list('pk', flat=True)) == [
            active.pk,
        ]


class TestIdentity:
    """Tests for resolving the signed-in user."""

    def test_normalize_email(self):
        """Test emails are stripped and lowercased."""
        assert normalize_email('  Jane.Doe@Example.COM ') == 'jane.doe@example.com'

    @pytest.mark.django_db
    def test_get_current_user(self, account):
        """Test a session resolves to the account identity."""
        session = create_session(account.user)

        assert get_current_user(session.session_id) == CurrentUser(
            id=account.pk,
            email=account.email,
            account_id=str(account.user_id),
        )

    @pytest.mark.django_db
    def test_get_current_user_without_account(self, user):
        """Test a user who never finished sign up has no identity."""
        session = create_session(user)

        assert get_current_user(session.session_id) is None

    @pytest.mark.django_db
    def test_get_current_user_no_session(self):
        """Test unknown sessions have no identity."""
        assert get_current_user('nonexistent') is None
