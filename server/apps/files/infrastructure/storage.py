"""Custom storage backend for S3-compatible blob storage."""

import logging
from typing import Any, final, override

from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """S3 storage backend holding uploaded file blobs.

    Extends django-storages S3Storage with logging around writes and
    deletes. Error mapping is done by ``StorageBlobStore``.
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save blob to S3 with logging.

        Args:
            name: Blob key.
            content: File content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual key used (may differ from name if conflicts).

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.debug('Uploading blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
        except Exception:
            logger.exception('Failed to upload blob to storage: %s', name)
            raise
        else:
            logger.info('Uploaded blob: %s', saved_name)
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete blob from S3 with logging.

        Deleting a missing key is not an error.

        Args:
            name: Blob key to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.debug('Deleting blob from storage: %s', name)
            super().delete(name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise
        else:
            logger.info('Deleted blob: %s', name)
