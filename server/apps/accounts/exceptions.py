"""Exceptions for accounts app."""


class InvalidSecretError(Exception):
    """Raised when an emailed passcode is wrong, used or expired."""
