"""Session management for signed-in accounts.

Sessions are opened after a passcode is verified and expire after a
period of inactivity.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Final

from django.conf import settings
from django.utils import timezone

from server.apps.accounts.models import AccountSession

if TYPE_CHECKING:
    from django.contrib.auth.models import User

logger = logging.getLogger(__name__)

# Session ID length in bytes (generates 64 hex chars)
_SESSION_ID_BYTES: Final = 32
_USER_AGENT_MAX_LENGTH: Final = 255


def get_session_timeout() -> int:
    """Get session inactivity timeout in seconds.

    Returns:
        Timeout in seconds from settings or default of one week.
    """
    return getattr(settings, 'ACCOUNTS_SESSION_TIMEOUT', 60 * 60 * 24 * 7)


def _activity_cutoff() -> datetime:
    return timezone.now() - timedelta(seconds=get_session_timeout())


def create_session(
    user: 'User',
    ip_address: str | None = None,
    user_agent: str = '',
) -> AccountSession:
    """Create a new session for the user.

    Cleans stale sessions first.

    Args:
        user: Django user the session belongs to.
        ip_address: Client IP address, if known.
        user_agent: Client user agent string.

    Returns:
        Created AccountSession instance.
    """
    cleanup_stale_sessions()

    session = AccountSession.objects.create(
        user=user,
        session_id=secrets.token_hex(_SESSION_ID_BYTES),
        ip_address=ip_address,
        user_agent=user_agent[:_USER_AGENT_MAX_LENGTH],
    )
    logger.info(
        'Session created for user %s: %s',
        user.username,
        session.session_id[:8],
    )
    return session


def get_active_session(session_id: str) -> AccountSession | None:
    """Get a session by ID if it has not timed out.

    Touches the session so the inactivity timer restarts.

    Args:
        session_id: Session ID to look up.

    Returns:
        AccountSession if found and active, None otherwise.
    """
    if not session_id:
        return None

    try:
        session = AccountSession.objects.select_related('user').get(
            session_id=session_id,
            last_activity__gte=_activity_cutoff(),
        )
    except AccountSession.DoesNotExist:
        return None

    session.save(update_fields=['last_activity'])
    return session


def end_session(session_id: str) -> bool:
    """End a session.

    Args:
        session_id: Session ID to end.

    Returns:
        True if session was found and deleted, False otherwise.
    """
    deleted, _ = AccountSession.objects.filter(
        session_id=session_id,
    ).delete()

    if deleted:
        logger.info('Session ended: %s', session_id[:8])

    return deleted > 0


def cleanup_stale_sessions() -> int:
    """Remove sessions that have been inactive past the timeout.

    Returns:
        Number of sessions cleaned up.
    """
    deleted, _ = AccountSession.objects.filter(
        last_activity__lt=_activity_cutoff(),
    ).delete()

    if deleted:
        logger.info('Cleaned up %d stale sessions', deleted)

    return deleted
