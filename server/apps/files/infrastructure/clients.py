"""Capability handles passed to file operations.

Writes go through an ``AdminClient``. Reads on behalf of a signed-in
user go through a ``SessionClient``, which can only see records the user
owns or that are shared with them. The two are separate types so that a
call site cannot escalate a session handle by flipping a flag.

Handles are built per call and passed explicitly, never cached at
module level.
"""

from dataclasses import dataclass, field
from typing import final

from django.core.files.storage import Storage

from server.apps.accounts.logic.identity import CurrentUser
from server.apps.files.infrastructure.stores import (
    BlobStore,
    FilterSpec,
    MetadataStore,
    ModelMetadataStore,
    OwnedBy,
    OwnedOrSharedWith,
    StorageBlobStore,
)
from server.apps.files.models import File


@final
@dataclass(frozen=True, slots=True)
class AdminClient:
    """Unrestricted access to blob and metadata stores."""

    blobs: BlobStore
    records: MetadataStore


@final
class ScopedRecords:
    """Read-only view of the records visible to one user."""

    def __init__(self, current_user: CurrentUser, store: MetadataStore) -> None:
        """Initialize the scoped view.

        Args:
            current_user: User whose access rights apply.
            store: Underlying metadata store.
        """
        self._access = OwnedOrSharedWith(
            owner_id=current_user.id,
            email=current_user.email,
        )
        self._owner = OwnedBy(owner_id=current_user.id)
        self._store = store

    def query(self, spec: FilterSpec) -> list[File]:
        """Query records the user owns or that are shared with them.

        The access predicate is added when the filter lacks it.

        Args:
            spec: Filter to apply.

        Returns:
            Matching records in order.
        """
        if self._access not in spec.predicates:
            spec = FilterSpec(
                predicates=(self._access, *spec.predicates),
                order_by=spec.order_by,
                limit=spec.limit,
            )
        return self._store.query(spec)

    def owned(self) -> list[File]:
        """List every record the user owns.

        Returns:
            Owned records, newest first.
        """
        return self._store.query(FilterSpec(predicates=(self._owner,)))


@final
@dataclass(frozen=True, slots=True)
class SessionClient:
    """Access limited to what the signed-in user may read."""

    current_user: CurrentUser
    records: ScopedRecords = field(repr=False)


def create_admin_client(
    storage: Storage | None = None,
    records: MetadataStore | None = None,
) -> AdminClient:
    """Build a handle with write access to both stores.

    Args:
        storage: Storage backend for blobs; ``default_storage`` when
            omitted.
        records: Metadata store; the ``File`` model when omitted.

    Returns:
        AdminClient instance.
    """
    return AdminClient(
        blobs=StorageBlobStore(storage),
        records=records if records is not None else ModelMetadataStore(),
    )


def create_session_client(
    current_user: CurrentUser,
    records: MetadataStore | None = None,
) -> SessionClient:
    """Build a read-only handle scoped to a user.

    Args:
        current_user: Signed-in user.
        records: Metadata store; the ``File`` model when omitted.

    Returns:
        SessionClient instance.
    """
    store = records if records is not None else ModelMetadataStore()
    return SessionClient(
        current_user=current_user,
        records=ScopedRecords(current_user, store),
    )
