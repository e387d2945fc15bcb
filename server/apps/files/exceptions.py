"""Exceptions for files app."""


class StoreError(Exception):
    """Base class for failures reported by the blob or metadata store."""


class BlobWriteError(StoreError):
    """Raised when the blob store is unreachable or rejects a write."""


class BlobDeleteError(StoreError):
    """Raised when the blob store fails to delete an object."""


class MetadataDeleteError(StoreError):
    """Raised when a file record cannot be deleted."""


class OrphanedBlobWarning(UserWarning):  # noqa: N818
    """Emitted when an upload rollback could not delete its blob.

    The blob stays in storage without a file record pointing at it.
    It is not retried; ``cleanup_orphaned_blobs`` removes it later.
    """

    def __init__(self, blob_ref: str) -> None:
        """Initialize OrphanedBlobWarning.

        Args:
            blob_ref: Key of the blob left behind in storage.
        """
        self.blob_ref = blob_ref
        super().__init__(f'Orphaned blob left in storage: {blob_ref}')


class MetadataWriteError(StoreError):
    """Raised when a file record cannot be written.

    Attributes:
        orphan: Set when the upload rollback failed as well and the
            blob written before the record is still in storage.
    """

    def __init__(
        self,
        message: str,
        orphan: OrphanedBlobWarning | None = None,
    ) -> None:
        """Initialize MetadataWriteError.

        Args:
            message: Human readable description of the failure.
            orphan: Warning describing a blob the rollback left behind.
        """
        self.orphan = orphan
        super().__init__(message)


class SagaStateError(Exception):
    """Raised on an illegal upload saga state transition."""
