"""Blob and metadata store capabilities.

File operations talk to the two external systems through the narrow
``BlobStore`` and ``MetadataStore`` interfaces. The default
implementations wrap a Django storage backend and the ``File`` model;
tests inject in-memory fakes.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Final, Protocol, final

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.db import DatabaseError, transaction
from django.db.models import Q

from server.apps.files.exceptions import (
    BlobDeleteError,
    BlobWriteError,
    MetadataDeleteError,
    MetadataWriteError,
)
from server.apps.files.models import File, FileShare, FileType

logger = logging.getLogger(__name__)

# Logical sort keys mapped to model fields
_ORDER_FIELDS: Final = {
    'created_at': 'created_at',
    'updated_at': 'updated_at',
    'name': 'name',
    'size': 'size_bytes',
    'type': 'type',
}

SORT_FIELDS: Final = frozenset(_ORDER_FIELDS)


@final
@dataclass(frozen=True, slots=True)
class OwnedOrSharedWith:
    """Record is owned by ``owner_id`` or shared with ``email``."""

    owner_id: int
    email: str


@final
@dataclass(frozen=True, slots=True)
class OwnedBy:
    """Record is owned by ``owner_id``."""

    owner_id: int


@final
@dataclass(frozen=True, slots=True)
class AccountIs:
    """Record was uploaded by auth account ``account_id``."""

    account_id: str


@final
@dataclass(frozen=True, slots=True)
class TypeIn:
    """Record type is one of ``types``."""

    types: tuple[FileType, ...]


@final
@dataclass(frozen=True, slots=True)
class NameContains:
    """Record name contains ``text``."""

    text: str


Predicate = OwnedOrSharedWith | OwnedBy | AccountIs | TypeIn | NameContains


@final
@dataclass(frozen=True, slots=True)
class OrderBy:
    """Sort key, one of ``SORT_FIELDS``."""

    field: str
    descending: bool = True


@final
@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Query understood by a metadata store.

    Predicates are combined with AND. No ordering means newest first,
    no limit means every match.
    """

    predicates: tuple[Predicate, ...] = ()
    order_by: OrderBy | None = None
    limit: int | None = None


@final
@dataclass(frozen=True, slots=True)
class FileDraft:
    """Fields of a file record that is about to be inserted."""

    name: str
    extension: str
    type: FileType
    size_bytes: int
    blob_ref: str
    owner_id: int
    account_id: str


@final
@dataclass(frozen=True, slots=True)
class FilePatch:
    """Changes to a file record; ``None`` leaves a field untouched."""

    name: str | None = None
    extension: str | None = None
    shared_with: frozenset[str] | None = None


class BlobStore(Protocol):
    """Object storage holding raw file bytes."""

    def put(self, content: bytes, key: str) -> str:
        """Store bytes under key and return the blob reference."""

    def delete(self, blob_ref: str) -> None:
        """Delete a blob; deleting a missing blob is not an error."""

    def exists(self, blob_ref: str) -> bool:
        """Check whether a blob exists."""

    def size(self, blob_ref: str) -> int:
        """Byte length of a stored blob."""

    def modified_at(self, blob_ref: str) -> datetime:
        """Last modification time of a stored blob."""

    def iter_refs(self) -> Iterator[str]:
        """Iterate over every stored blob reference."""


class MetadataStore(Protocol):
    """Record store holding file metadata."""

    def insert(self, draft: FileDraft) -> File:
        """Atomically create a record."""

    def get(self, file_id: int) -> File:
        """Fetch a record by ID."""

    def query(self, spec: FilterSpec) -> list[File]:
        """Fetch records matching a filter, in order."""

    def update(self, file_id: int, patch: FilePatch) -> File:
        """Apply a patch to a record."""

    def delete(self, file_id: int) -> None:
        """Delete a record."""

    def known_blob_refs(self, blob_refs: Iterable[str]) -> set[str]:
        """Subset of blob refs that some record points at."""


@final
class StorageBlobStore:
    """Blob store backed by a Django storage backend."""

    def __init__(self, storage: Storage | None = None) -> None:
        """Initialize the blob store.

        Args:
            storage: Storage backend; ``default_storage`` when omitted.
        """
        self._storage = storage if storage is not None else default_storage

    def put(self, content: bytes, key: str) -> str:
        """Store bytes under key.

        Args:
            content: Raw bytes to store.
            key: Desired blob key.

        Returns:
            Key actually used by the storage backend.

        Raises:
            BlobWriteError: If the backend fails or rejects the write.
        """
        try:
            return self._storage.save(key, ContentFile(content))
        except Exception as exc:
            raise BlobWriteError(f'Failed to write blob: {key}') from exc

    def delete(self, blob_ref: str) -> None:
        """Delete a blob.

        Args:
            blob_ref: Key of the blob.

        Raises:
            BlobDeleteError: If the backend fails to delete.
        """
        try:
            self._storage.delete(blob_ref)
        except Exception as exc:
            raise BlobDeleteError(f'Failed to delete blob: {blob_ref}') from exc

    def exists(self, blob_ref: str) -> bool:
        """Check whether a blob exists.

        Args:
            blob_ref: Key of the blob.

        Returns:
            True if the blob is in storage.
        """
        return self._storage.exists(blob_ref)

    def size(self, blob_ref: str) -> int:
        """Get byte length of a blob.

        Args:
            blob_ref: Key of the blob.

        Returns:
            Size in bytes.
        """
        return self._storage.size(blob_ref)

    def modified_at(self, blob_ref: str) -> datetime:
        """Get last modification time of a blob.

        Args:
            blob_ref: Key of the blob.

        Returns:
            Timezone-aware modification time.
        """
        return self._storage.get_modified_time(blob_ref)

    def iter_refs(self, prefix: str = '') -> Iterator[str]:
        """Walk storage and yield every blob key.

        Args:
            prefix: Directory to start from; the bucket root by default.

        Yields:
            Blob keys relative to the storage root.
        """
        directories, files = self._storage.listdir(prefix)
        for filename in files:
            yield f'{prefix}/{filename}' if prefix else filename
        for directory in directories:
            yield from self.iter_refs(
                f'{prefix}/{directory}' if prefix else directory,
            )


def _predicate_to_q(predicate: Predicate) -> Q:
    if isinstance(predicate, OwnedOrSharedWith):
        return Q(owner_id=predicate.owner_id) | Q(shares__email=predicate.email)
    if isinstance(predicate, OwnedBy):
        return Q(owner_id=predicate.owner_id)
    if isinstance(predicate, AccountIs):
        return Q(account_id=predicate.account_id)
    if isinstance(predicate, TypeIn):
        return Q(type__in=predicate.types)
    if isinstance(predicate, NameContains):
        return Q(name__contains=predicate.text)
    raise TypeError(f'Unsupported predicate: {predicate!r}')


@final
class ModelMetadataStore:
    """Metadata store backed by the ``File`` model."""

    def insert(self, draft: FileDraft) -> File:
        """Create a file record in its own committed transaction.

        The transaction is durable, so the record is committed when this
        returns. Calling it inside an atomic block fails before anything
        is written.

        Args:
            draft: Fields of the new record.

        Returns:
            Created File instance.

        Raises:
            MetadataWriteError: If the database rejects the insert or the
                caller is inside an atomic block.
        """
        try:
            with transaction.atomic(durable=True):
                record = File.objects.create(
                    owner_id=draft.owner_id,
                    account_id=draft.account_id,
                    blob_ref=draft.blob_ref,
                    name=draft.name,
                    extension=draft.extension,
                    type=draft.type,
                    size_bytes=draft.size_bytes,
                )
        except RuntimeError as exc:
            # Raised by a durable block nested in an outer transaction
            logger.exception(
                'Refusing to create file record inside a transaction: %s',
                draft.blob_ref,
            )
            raise MetadataWriteError(
                'File records cannot be created inside an atomic block',
            ) from exc
        except DatabaseError as exc:
            logger.exception(
                'Failed to create file record for blob: %s',
                draft.blob_ref,
            )
            raise MetadataWriteError(
                f'Failed to create file record for blob: {draft.blob_ref}',
            ) from exc

        logger.info(
            'File record created: %s (ID: %d)',
            record.blob_ref,
            record.id,
        )
        return record

    def get(self, file_id: int) -> File:
        """Fetch a record.

        Args:
            file_id: ID of the record.

        Returns:
            File instance.

        Raises:
            File.DoesNotExist: If no such record exists.
        """
        return File.objects.prefetch_related('shares').get(pk=file_id)

    def query(self, spec: FilterSpec) -> list[File]:
        """Fetch records matching a filter.

        Args:
            spec: Predicates, ordering and limit.

        Returns:
            Matching File instances in order.
        """
        queryset = File.objects.all()
        for predicate in spec.predicates:
            queryset = queryset.filter(_predicate_to_q(predicate))

        if any(isinstance(pred, OwnedOrSharedWith) for pred in spec.predicates):
            # Joining shares can repeat an owned and shared record
            queryset = queryset.distinct()

        if spec.order_by is not None:
            prefix = '-' if spec.order_by.descending else ''
            queryset = queryset.order_by(
                f'{prefix}{_ORDER_FIELDS[spec.order_by.field]}',
                f'{prefix}pk',
            )

        queryset = queryset.prefetch_related('shares')
        if spec.limit is not None:
            queryset = queryset[:spec.limit]

        logger.debug('Querying file records: %r', spec)
        return list(queryset)

    def update(self, file_id: int, patch: FilePatch) -> File:
        """Apply a patch to a record.

        Args:
            file_id: ID of the record.
            patch: Fields to change.

        Returns:
            Updated File instance.

        Raises:
            File.DoesNotExist: If no such record exists.
            MetadataWriteError: If the database rejects the update.
        """
        try:
            with transaction.atomic():
                record = File.objects.select_for_update().get(pk=file_id)
                update_fields = ['updated_at']
                if patch.name is not None:
                    record.name = patch.name
                    update_fields.append('name')
                if patch.extension is not None:
                    record.extension = patch.extension
                    update_fields.append('extension')
                record.save(update_fields=update_fields)

                if patch.shared_with is not None:
                    self._replace_shares(record, patch.shared_with)
        except DatabaseError as exc:
            logger.exception('Failed to update file record: ID=%d', file_id)
            raise MetadataWriteError(
                f'Failed to update file record: {file_id}',
            ) from exc

        logger.info('File record updated: ID=%d', file_id)
        return record

    def delete(self, file_id: int) -> None:
        """Delete a record together with its shares.

        Args:
            file_id: ID of the record.

        Raises:
            MetadataDeleteError: If the database rejects the delete.
        """
        try:
            with transaction.atomic():
                File.objects.filter(pk=file_id).delete()
        except DatabaseError as exc:
            logger.exception('Failed to delete file record: ID=%d', file_id)
            raise MetadataDeleteError(
                f'Failed to delete file record: {file_id}',
            ) from exc

        logger.info('File record deleted: ID=%d', file_id)

    def known_blob_refs(self, blob_refs: Iterable[str]) -> set[str]:
        """Find which blob refs are referenced by records.

        Args:
            blob_refs: Candidate blob refs.

        Returns:
            The referenced subset.
        """
        return set(
            File.objects.filter(
                blob_ref__in=list(blob_refs),
            ).values_list('blob_ref', flat=True),
        )

    def _replace_shares(self, record: File, emails: frozenset[str]) -> None:
        record.shares.exclude(email__in=emails).delete()
        existing = set(record.shares.values_list('email', flat=True))
        FileShare.objects.bulk_create(
            FileShare(file=record, email=email)
            for email in sorted(emails - existing)
        )
