"""File storage settings."""

from server.settings.components import config

# Storage capacity shown on the usage dashboard (default: 2 GiB)
FILES_STORAGE_CAPACITY_BYTES = config(
    'FILES_STORAGE_CAPACITY_BYTES',
    cast=int,
    default=2 * 1024 * 1024 * 1024,
)
