"""Business logic for passcode sign-up and sign-in."""

import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import check_password, make_password
from django.core.mail import send_mail
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

from server.apps.accounts.exceptions import InvalidSecretError
from server.apps.accounts.logic.identity import (
    get_account_by_email,
    normalize_email,
)
from server.apps.accounts.logic.session_manager import (
    create_session,
    end_session,
)
from server.apps.accounts.models import Account, AccountSession, EmailToken

User = get_user_model()
logger = logging.getLogger(__name__)


def get_otp_length() -> int:
    """Get number of digits in a passcode.

    Returns:
        Passcode length from settings or default of 6.
    """
    return getattr(settings, 'ACCOUNTS_OTP_LENGTH', 6)


def get_otp_ttl() -> int:
    """Get passcode lifetime in seconds.

    Returns:
        Lifetime from settings or default of 900 (15 min).
    """
    return getattr(settings, 'ACCOUNTS_OTP_TTL', 900)


def _generate_secret() -> str:
    return ''.join(
        secrets.choice('0123456789') for _ in range(get_otp_length())
    )


def send_email_otp(email: str) -> str:
    """Email a one-time passcode, creating the auth user if needed.

    Args:
        email: Address to send the passcode to.

    Returns:
        Auth account id of the user the passcode was issued for.

    Raises:
        ValidationError: If the email address is invalid.
    """
    email = normalize_email(email)
    validate_email(email)

    secret = _generate_secret()
    with transaction.atomic():
        user, created = User.objects.get_or_create(
            username=email,
            defaults={'email': email},
        )
        if created:
            user.set_unusable_password()
            user.save(update_fields=['password'])
            logger.info('Created auth user for %s', email)

        EmailToken.objects.create(
            user=user,
            secret_hash=make_password(secret),
            expires_at=timezone.now() + timedelta(seconds=get_otp_ttl()),
        )

    try:
        send_mail(
            subject='Your StoreIt passcode',
            message=(
                f'Your one-time passcode is {secret}. '
                f'It expires in {get_otp_ttl() // 60} minutes.'
            ),
            from_email=None,
            recipient_list=[email],
        )
    except Exception:
        logger.exception('Failed to send passcode email to %s', email)
        raise

    logger.info('Passcode sent to %s', email)
    return str(user.pk)


def create_account(full_name: str, email: str) -> str:
    """Register an account and send a passcode to verify the email.

    Signing up again with a known email only sends a new passcode;
    the existing profile is kept.

    Args:
        full_name: Display name of the new user.
        email: Email address of the new user.

    Returns:
        Auth account id to verify the passcode against.

    Raises:
        ValidationError: If the email address is invalid.
    """
    existing = get_account_by_email(email)
    account_id = send_email_otp(email)

    if existing is None:
        account = Account.objects.create(
            user_id=int(account_id),
            full_name=full_name.strip(),
            email=normalize_email(email),
            avatar_url=getattr(settings, 'ACCOUNTS_AVATAR_PLACEHOLDER_URL', ''),
        )
        logger.info('Account created: %s (ID: %d)', account.email, account.pk)

    return account_id


def sign_in_user(email: str) -> str | None:
    """Send a passcode to an already registered email.

    Args:
        email: Email address of the account.

    Returns:
        Auth account id if the account exists, None otherwise.
    """
    account = get_account_by_email(email)
    if account is None:
        logger.info('Sign in attempted for unknown email: %s', email)
        return None

    send_email_otp(account.email)
    return account.account_id


def verify_secret(
    account_id: str,
    password: str,
    ip_address: str | None = None,
    user_agent: str = '',
) -> AccountSession:
    """Check a passcode and open a session.

    Only the newest unused, unexpired passcode is accepted. It is
    consumed whether or not the check succeeds.

    Args:
        account_id: Auth account id returned when the passcode was sent.
        password: Passcode typed by the user.
        ip_address: Client IP address, if known.
        user_agent: Client user agent string.

    Returns:
        Created AccountSession.

    Raises:
        InvalidSecretError: If there is no valid passcode or it does
            not match.
    """
    if not account_id.isdigit():
        raise InvalidSecretError('Unknown account')

    with transaction.atomic():
        token = (
            EmailToken.objects.select_for_update()
            .select_related('user')
            .filter(
                user_id=account_id,
                used_at__isnull=True,
                expires_at__gt=timezone.now(),
            )
            .order_by('-created_at', '-pk')
            .first()
        )
        if token is None:
            logger.warning('No valid passcode for account %s', account_id)
            raise InvalidSecretError('Passcode expired or not requested')

        token.used_at = timezone.now()
        token.save(update_fields=['used_at'])

    if not check_password(password, token.secret_hash):
        logger.warning('Wrong passcode for account %s', account_id)
        raise InvalidSecretError('Passcode does not match')

    return create_session(
        token.user,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def sign_out_user(session_id: str) -> bool:
    """End the caller's session.

    Args:
        session_id: Session secret from the session cookie.

    Returns:
        True if a session was ended, False if it did not exist.
    """
    return end_session(session_id)
