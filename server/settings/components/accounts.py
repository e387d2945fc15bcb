"""Account, passcode and session settings."""

from server.settings.components import config

# Email one-time passcodes
ACCOUNTS_OTP_LENGTH = config('ACCOUNTS_OTP_LENGTH', cast=int, default=6)
ACCOUNTS_OTP_TTL = config('ACCOUNTS_OTP_TTL', cast=int, default=900)

# Session management
ACCOUNTS_SESSION_TIMEOUT = config(
    'ACCOUNTS_SESSION_TIMEOUT',
    cast=int,
    default=60 * 60 * 24 * 7,
)

ACCOUNTS_AVATAR_PLACEHOLDER_URL = config(
    'ACCOUNTS_AVATAR_PLACEHOLDER_URL',
    default='https://storeit.local/assets/images/avatar.png',
)
