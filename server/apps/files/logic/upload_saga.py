"""Upload saga: blob write, then record write, with rollback.

Blob storage and the metadata database fail independently, so an upload
is not atomic. The saga writes the blob first and the record second. If
the record cannot be written the blob is deleted again (one attempt, no
retries). If that delete fails too, the blob is reported as orphaned.

The caller either gets a committed ``File`` or an exception; there is no
half-uploaded result.
"""

import enum
import logging
import warnings
from typing import Final, final

from django.core.exceptions import ValidationError

from server.apps.files.exceptions import (
    BlobWriteError,
    MetadataWriteError,
    OrphanedBlobWarning,
    SagaStateError,
)
from server.apps.files.infrastructure.clients import AdminClient
from server.apps.files.infrastructure.metadata import (
    classify_file,
    generate_blob_key,
    validate_blob_key,
)
from server.apps.files.infrastructure.stores import FileDraft
from server.apps.files.models import File

logger = logging.getLogger(__name__)


class SagaState(enum.Enum):
    """Progress of one upload."""

    STARTED = 'started'
    BLOB_WRITTEN = 'blob_written'
    COMMITTED = 'committed'
    ROLLED_BACK = 'rolled_back'
    ORPHAN_FAILURE = 'orphan_failure'


_TRANSITIONS: Final = {
    # A failed blob write leaves nothing behind
    SagaState.STARTED: frozenset((SagaState.BLOB_WRITTEN, SagaState.ROLLED_BACK)),
    SagaState.BLOB_WRITTEN: frozenset((
        SagaState.COMMITTED,
        SagaState.ROLLED_BACK,
        SagaState.ORPHAN_FAILURE,
    )),
    SagaState.COMMITTED: frozenset(),
    SagaState.ROLLED_BACK: frozenset(),
    SagaState.ORPHAN_FAILURE: frozenset(),
}


@final
class UploadSaga:
    """Single-use coordinator for one upload.

    Example:
        saga = UploadSaga(create_admin_client())
        record = saga.run(content, 'report.pdf', owner_id, account_id)
    """

    def __init__(self, client: AdminClient) -> None:
        """Initialize the saga.

        Args:
            client: Handle with write access to both stores.
        """
        self._client = client
        self._state = SagaState.STARTED
        self._blob_ref: str | None = None

    @property
    def state(self) -> SagaState:
        """Current state of the saga."""
        return self._state

    @property
    def blob_ref(self) -> str | None:
        """Key of the blob written in step one, if any."""
        return self._blob_ref

    def run(
        self,
        content: bytes,
        name: str,
        owner_id: int,
        account_id: str,
    ) -> File:
        """Upload bytes and create the file record.

        Args:
            content: Raw file bytes, non-empty.
            name: File name as given by the user.
            owner_id: Account ID of the owner.
            account_id: Auth account ID of the uploader.

        Returns:
            Committed File instance.

        Raises:
            ValidationError: If an argument is empty.
            SagaStateError: If the saga has already run.
            BlobWriteError: If the blob could not be stored.
            MetadataWriteError: If the record could not be written. Its
                ``orphan`` attribute is set when the rollback failed.
        """
        if self._state is not SagaState.STARTED:
            raise SagaStateError(f'Upload saga already {self._state.value}')
        _validate_upload(content, name, owner_id, account_id)

        classification = classify_file(name)
        blob_key = generate_blob_key(owner_id, classification.extension)
        validate_blob_key(owner_id, blob_key)

        # Step 1: write blob
        try:
            self._blob_ref = self._client.blobs.put(content, blob_key)
        except Exception as exc:
            logger.exception('Failed to store blob for upload: %s', name)
            self._transition(SagaState.ROLLED_BACK)
            if isinstance(exc, BlobWriteError):
                raise
            raise BlobWriteError(f'Failed to write blob: {blob_key}') from exc
        self._transition(SagaState.BLOB_WRITTEN)

        # Step 2: write record
        draft = FileDraft(
            name=name,
            extension=classification.extension,
            type=classification.type,
            size_bytes=len(content),
            blob_ref=self._blob_ref,
            owner_id=owner_id,
            account_id=account_id,
        )
        try:
            record = self._client.records.insert(draft)
        except Exception as exc:
            logger.exception(
                'File record insert failed, rolling back blob: %s',
                self._blob_ref,
            )
            error = self._compensate(exc)
            cause = error.__cause__ if error is exc else exc
            try:
                if error.orphan is not None:
                    warnings.warn(error.orphan, stacklevel=2)
            finally:
                raise error from cause

        self._transition(SagaState.COMMITTED)
        logger.info(
            'Upload committed: %s -> %s (ID: %d)',
            name,
            record.blob_ref,
            record.id,
        )
        return record

    def _compensate(self, cause: Exception) -> MetadataWriteError:
        blob_ref = self._blob_ref
        if blob_ref is None:
            raise SagaStateError('Cannot roll back an upload without a blob')

        if isinstance(cause, MetadataWriteError):
            error = cause
        else:
            error = MetadataWriteError(f'Failed to create file record: {cause}')

        try:
            self._client.blobs.delete(blob_ref)
        except Exception:
            logger.exception('Failed to roll back upload, orphaned blob: %s', blob_ref)
            self._transition(SagaState.ORPHAN_FAILURE)
            error.orphan = OrphanedBlobWarning(blob_ref)
            return error

        logger.warning('Rolled back upload, deleted blob: %s', blob_ref)
        self._transition(SagaState.ROLLED_BACK)
        return error

    def _transition(self, target: SagaState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise SagaStateError(
                f'Illegal upload transition: {self._state.value} -> {target.value}',
            )
        logger.debug(
            'Upload saga %s -> %s',
            self._state.value,
            target.value,
        )
        self._state = target


def _validate_upload(
    content: bytes,
    name: str,
    owner_id: int,
    account_id: str,
) -> None:
    if not content:
        raise ValidationError('Cannot upload an empty file')
    if not name or not name.strip():
        raise ValidationError('File name cannot be empty')
    if not owner_id:
        raise ValidationError('Owner ID cannot be empty')
    if not account_id:
        raise ValidationError('Account ID cannot be empty')
