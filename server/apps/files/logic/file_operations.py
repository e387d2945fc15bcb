"""Business logic for file operations."""

import logging
from collections.abc import Iterable

from django.core.exceptions import PermissionDenied, ValidationError
from django.core.validators import validate_email

from server.apps.accounts.logic.identity import CurrentUser, normalize_email
from server.apps.files.infrastructure.clients import (
    AdminClient,
    SessionClient,
    create_admin_client,
    create_session_client,
)
from server.apps.files.infrastructure.metadata import get_file_extension
from server.apps.files.infrastructure.stores import FilePatch
from server.apps.files.logic.queries import DEFAULT_SORT, build_query
from server.apps.files.logic.upload_saga import UploadSaga
from server.apps.files.models import File

logger = logging.getLogger(__name__)


def upload_file(
    current_user: CurrentUser,
    content: bytes,
    name: str,
    *,
    client: AdminClient | None = None,
) -> File:
    """Upload file to blob storage and create its record.

    Transaction safety: upload to storage first, then create the record.
    If the record cannot be created, the blob is deleted again
    (see ``UploadSaga``).

    Args:
        current_user: Owner of the new file.
        content: Raw file bytes.
        name: File name as given by the user.
        client: Store handle; built per call when omitted.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If the content or name is empty.
        BlobWriteError: If storage rejects the upload.
        MetadataWriteError: If the record cannot be created.
    """
    saga = UploadSaga(client or create_admin_client())
    return saga.run(
        content,
        name,
        owner_id=current_user.id,
        account_id=current_user.account_id,
    )


def get_files(  # noqa: WPS211
    current_user: CurrentUser,
    types: Iterable[str] = (),
    search_text: str = '',
    sort: str = DEFAULT_SORT,
    limit: int | None = None,
    *,
    client: SessionClient | None = None,
) -> list[File]:
    """List files the user owns or that are shared with them.

    Args:
        current_user: User listing the files.
        types: File types to include; all types when empty.
        search_text: Substring the file name must contain.
        sort: Sort string such as ``'size-asc'``.
        limit: Maximum number of files; unbounded when None.
        client: Session handle; built per call when omitted.

    Returns:
        Matching files in the requested order.

    Raises:
        ValidationError: If a filter argument is invalid.
    """
    session = client or create_session_client(current_user)
    spec = build_query(
        current_user.id,
        current_user.email,
        types=types,
        search_text=search_text,
        sort=sort,
        limit=limit,
    )
    return session.records.query(spec)


def _get_owned_file(
    current_user: CurrentUser,
    file_id: int,
    client: AdminClient,
) -> File:
    file_instance = client.records.get(file_id)
    if file_instance.owner_id != current_user.id:
        logger.warning(
            'User %d attempted to modify file %d owned by %d',
            current_user.id,
            file_id,
            file_instance.owner_id,
        )
        raise PermissionDenied('Only the owner can modify this file')
    return file_instance


def rename_file(
    current_user: CurrentUser,
    file_id: int,
    name: str,
    extension: str,
    *,
    client: AdminClient | None = None,
) -> File:
    """Rename a file.

    Only the display name changes; the blob and its key stay as they are.

    Args:
        current_user: Owner of the file.
        file_id: ID of the file.
        name: New name without extension.
        extension: Extension to append; empty for none.
        client: Store handle; built per call when omitted.

    Returns:
        Updated File instance.

    Raises:
        File.DoesNotExist: If file doesn't exist.
        PermissionDenied: If the user doesn't own the file.
        ValidationError: If the new name is empty.
        MetadataWriteError: If the record cannot be updated.
    """
    name = name.strip()
    if not name:
        raise ValidationError('File name cannot be empty')

    extension = extension.strip().lstrip('.')
    new_name = f'{name}.{extension}' if extension else name

    admin = client or create_admin_client()
    _get_owned_file(current_user, file_id, admin)

    logger.info('Renaming file ID=%d to %s', file_id, new_name)
    return admin.records.update(
        file_id,
        FilePatch(name=new_name, extension=get_file_extension(new_name)),
    )


def update_file_users(
    current_user: CurrentUser,
    file_id: int,
    emails: Iterable[str],
    *,
    client: AdminClient | None = None,
) -> File:
    """Replace the set of emails a file is shared with.

    Args:
        current_user: Owner of the file.
        file_id: ID of the file.
        emails: Addresses to share with; an empty list unshares.
        client: Store handle; built per call when omitted.

    Returns:
        Updated File instance.

    Raises:
        File.DoesNotExist: If file doesn't exist.
        PermissionDenied: If the user doesn't own the file.
        ValidationError: If an address is invalid.
        MetadataWriteError: If the record cannot be updated.
    """
    shared_with = frozenset(
        normalize_email(email) for email in emails if email.strip()
    )
    for email in shared_with:
        validate_email(email)

    admin = client or create_admin_client()
    _get_owned_file(current_user, file_id, admin)

    logger.info(
        'Sharing file ID=%d with %d users',
        file_id,
        len(shared_with),
    )
    return admin.records.update(file_id, FilePatch(shared_with=shared_with))


def delete_file(
    current_user: CurrentUser,
    file_id: int,
    *,
    client: AdminClient | None = None,
) -> None:
    """Delete file record and its blob.

    Transaction safety: delete the record first, then the blob. If the
    blob delete fails the blob is orphaned, but no record ever points
    at a missing blob.

    Args:
        current_user: Owner of the file.
        file_id: ID of file to delete.
        client: Store handle; built per call when omitted.

    Raises:
        File.DoesNotExist: If file doesn't exist.
        PermissionDenied: If the user doesn't own the file.
        MetadataDeleteError: If the record cannot be deleted.
        BlobDeleteError: If the blob cannot be deleted.
    """
    admin = client or create_admin_client()
    file_instance = _get_owned_file(current_user, file_id, admin)
    blob_ref = file_instance.blob_ref

    logger.info('Deleting file: ID=%d, blob=%s', file_id, blob_ref)
    admin.records.delete(file_id)

    try:
        admin.blobs.delete(blob_ref)
    except Exception:
        logger.exception(
            'Failed to delete blob after record delete (orphaned): %s',
            blob_ref,
        )
        raise
