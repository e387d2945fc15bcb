"""Resolution of the signed-in user for the files app."""

import logging
from dataclasses import dataclass
from typing import final

from server.apps.accounts.logic.session_manager import get_active_session
from server.apps.accounts.models import Account

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Identity of the caller as seen by file operations.

    Attributes:
        id: Primary key of the caller's Account (owner id of files).
        email: Normalized email, matched against file share lists.
        account_id: Auth account id recorded on uploaded files.
    """

    id: int
    email: str
    account_id: str

    @classmethod
    def from_account(cls, account: Account) -> 'CurrentUser':
        """Build the identity for an account.

        Args:
            account: Account of the signed-in user.

        Returns:
            CurrentUser for the account.
        """
        return cls(
            id=account.pk,
            email=account.email,
            account_id=account.account_id,
        )


def normalize_email(email: str) -> str:
    """Normalize an email address for storage and comparison.

    Args:
        email: Address as typed by a user.

    Returns:
        Address stripped of whitespace and lowercased.
    """
    return email.strip().lower()


def get_account_by_email(email: str) -> Account | None:
    """Find the account registered for an email.

    Args:
        email: Email address, normalized before lookup.

    Returns:
        Account if one exists, None otherwise.
    """
    return Account.objects.filter(email=normalize_email(email)).first()


def get_current_user(session_id: str) -> CurrentUser | None:
    """Resolve the user behind a session.

    Args:
        session_id: Session secret from the session cookie.

    Returns:
        CurrentUser if the session is active and the user has an
        account, None otherwise.
    """
    session = get_active_session(session_id)
    if session is None:
        return None

    try:
        account = Account.objects.get(user=session.user)
    except Account.DoesNotExist:
        logger.warning(
            'Session %s belongs to user without account: %s',
            session_id[:8],
            session.user.username,
        )
        return None

    return CurrentUser.from_account(account)
