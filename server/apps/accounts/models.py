"""Database models for accounts app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_FULL_NAME_MAX_LENGTH: Final = 255
_SECRET_HASH_MAX_LENGTH: Final = 128
_SESSION_ID_MAX_LENGTH: Final = 64
_USER_AGENT_MAX_LENGTH: Final = 255


@final
class Account(models.Model):
    """Profile of a person who signed up with their email.

    The Django user is the auth account that passcodes and sessions are
    issued for. ``Account.pk`` is the owner id stored on files and
    ``account_id`` is the auth account id.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='account',
    )

    full_name = models.CharField(
        max_length=_FULL_NAME_MAX_LENGTH,
    )

    email = models.EmailField(
        unique=True,
        help_text='Normalized (lowercase) email address',
    )

    avatar_url = models.URLField(
        blank=True,
        default='',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Account'  # type: ignore[mutable-override]
        verbose_name_plural = 'Accounts'  # type: ignore[mutable-override]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.full_name} <{self.email}>'

    @property
    def account_id(self) -> str:
        """Identifier of the auth account behind this profile."""
        return str(self.user_id)


@final
class EmailToken(models.Model):
    """One-time passcode sent to a user's email.

    Only a hash of the passcode is stored.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='email_tokens',
    )

    secret_hash = models.CharField(
        max_length=_SECRET_HASH_MAX_LENGTH,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    expires_at = models.DateTimeField()

    used_at = models.DateTimeField(
        null=True,
        blank=True,
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Email token'  # type: ignore[mutable-override]
        verbose_name_plural = 'Email tokens'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', '-created_at'],
                name='email_tokens_user_recent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id} (expires {self.expires_at:%Y-%m-%d %H:%M})'


@final
class AccountSession(models.Model):
    """Signed-in session opened by a verified passcode."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='account_sessions',
        db_index=True,
    )

    session_id = models.CharField(
        max_length=_SESSION_ID_MAX_LENGTH,
        unique=True,
        help_text='Session secret kept in an HTTP-only cookie',
    )

    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text='Client IP address',
    )

    user_agent = models.CharField(
        max_length=_USER_AGENT_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Client user agent string',
    )

    started_at = models.DateTimeField(
        auto_now_add=True,
        help_text='Session start time',
    )

    last_activity = models.DateTimeField(
        auto_now=True,
        db_index=True,
        help_text='Last activity timestamp',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Account session'  # type: ignore[mutable-override]
        verbose_name_plural = 'Account sessions'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-last_activity']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', '-last_activity'],
                name='sessions_user_activity_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id} ({self.session_id[:8]})'
