"""Tests for file operations business logic."""

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.storage import default_storage

from server.apps.files.exceptions import BlobDeleteError
from server.apps.files.logic.file_operations import (
    delete_file,
    get_files,
    rename_file,
    update_file_users,
    upload_file,
)
from server.apps.files.logic.usage_operations import summarize
from server.apps.files.models import File, FileType


@pytest.mark.django_db
def test_upload_file_end_to_end(current_user, mock_s3):
    """Test upload, listing and usage against S3 storage."""
    record = upload_file(current_user, b'0123456789', 'a.txt')

    assert record.type == FileType.DOCUMENT
    assert record.extension == 'txt'
    assert record.size_bytes == 10
    assert record.owner_id == current_user.id
    assert record.account_id == current_user.account_id
    assert default_storage.size(record.blob_ref) == 10

    files = get_files(current_user, sort='size-desc')
    assert [file_instance.id for file_instance in files] == [record.id]
    assert summarize(files).document.size == 10


@pytest.mark.django_db
def test_upload_file_with_injected_client(current_user, admin_client, blob_store):
    """Test upload uses the given store handle."""
    record = upload_file(
        current_user,
        b'data',
        'photo.PNG',
        client=admin_client,
    )

    assert record.type == FileType.IMAGE
    assert record.name == 'photo.PNG'
    assert blob_store.exists(record.blob_ref)


@pytest.mark.django_db
def test_get_files_isolation_and_sharing(  # noqa: WPS211
    account,
    other_account,
    current_user,
    other_user,
    make_file,
):
    """Test users see own files and files shared with them only."""
    own = make_file(account, name='mine.txt')
    shared = make_file(
        other_account,
        name='theirs.txt',
        shared_with=(account.email,),
    )
    make_file(other_account, name='private.txt')

    visible = {file_instance.id for file_instance in get_files(current_user)}
    other_visible = {
        file_instance.name for file_instance in get_files(other_user)
    }

    assert visible == {own.id, shared.id}
    assert other_visible == {'theirs.txt', 'private.txt'}


@pytest.mark.django_db
def test_get_files_filters_and_sort(account, current_user, make_file):
    """Test type filter, search and ordering combined."""
    make_file(account, name='beach.jpg', file_type=FileType.IMAGE, size_bytes=30)
    make_file(account, name='beach.mp4', file_type=FileType.VIDEO, size_bytes=90)
    make_file(account, name='city.png', file_type=FileType.IMAGE, size_bytes=20)
    make_file(account, name='beach.txt', size_bytes=10)

    files = get_files(
        current_user,
        types=['image', 'video'],
        search_text='beach',
        sort='size-asc',
    )

    assert [file_instance.name for file_instance in files] == [
        'beach.jpg',
        'beach.mp4',
    ]


@pytest.mark.django_db
def test_get_files_limit(account, current_user, make_file):
    """Test the number of listed files is capped."""
    for index in range(3):
        make_file(account, name=f'file{index}.txt')

    assert len(get_files(current_user, limit=2)) == 2


@pytest.mark.django_db
def test_rename_file(account, current_user, admin_client, make_file):
    """Test renaming changes name and extension but not the blob."""
    record = make_file(account, name='draft.txt')

    renamed = rename_file(
        current_user,
        record.id,
        'final',
        'md',
        client=admin_client,
    )

    assert renamed.name == 'final.md'
    assert renamed.extension == 'md'
    assert renamed.blob_ref == record.blob_ref


@pytest.mark.django_db
def test_rename_file_without_extension(
    account,
    current_user,
    admin_client,
    make_file,
):
    """Test renaming to a name without extension."""
    record = make_file(account, name='draft.txt')

    renamed = rename_file(current_user, record.id, 'README', '', client=admin_client)

    assert renamed.name == 'README'
    assert renamed.extension == ''


@pytest.mark.django_db
def test_rename_file_empty_name(account, current_user, admin_client, make_file):
    """Test empty names are rejected."""
    record = make_file(account)

    with pytest.raises(ValidationError):
        rename_file(current_user, record.id, '  ', 'txt', client=admin_client)


@pytest.mark.django_db
def test_rename_file_not_owner(other_account, current_user, admin_client, make_file):
    """Test only the owner can rename, even when the file is shared."""
    record = make_file(
        other_account,
        name='theirs.txt',
        shared_with=(current_user.email,),
    )

    with pytest.raises(PermissionDenied):
        rename_file(current_user, record.id, 'mine', 'txt', client=admin_client)

    record.refresh_from_db()
    assert record.name == 'theirs.txt'


@pytest.mark.django_db
def test_update_file_users(account, current_user, admin_client, make_file):
    """Test share list is replaced with normalized addresses."""
    record = make_file(account, shared_with=('old@example.com',))

    updated = update_file_users(
        current_user,
        record.id,
        [' Friend@Example.com ', 'friend@example.com', 'team@example.com'],
        client=admin_client,
    )

    assert updated.shared_with == {'friend@example.com', 'team@example.com'}


@pytest.mark.django_db
def test_update_file_users_unshare(account, current_user, admin_client, make_file):
    """Test an empty list removes every share."""
    record = make_file(account, shared_with=('old@example.com',))

    updated = update_file_users(current_user, record.id, [], client=admin_client)

    assert updated.shared_with == frozenset()


@pytest.mark.django_db
def test_update_file_users_invalid_email(
    account,
    current_user,
    admin_client,
    make_file,
):
    """Test invalid addresses are rejected before any change."""
    record = make_file(account, shared_with=('old@example.com',))

    with pytest.raises(ValidationError):
        update_file_users(
            current_user,
            record.id,
            ['not-an-email'],
            client=admin_client,
        )

    assert record.shared_with == {'old@example.com'}


@pytest.mark.django_db
def test_delete_file(account, current_user, admin_client, blob_store, make_file):
    """Test delete removes record and blob."""
    record = make_file(account)

    delete_file(current_user, record.id, client=admin_client)

    assert not File.objects.filter(pk=record.id).exists()
    assert not blob_store.exists(record.blob_ref)


@pytest.mark.django_db
def test_delete_file_blob_failure_keeps_record_deleted(  # noqa: WPS211
    account,
    current_user,
    admin_client,
    blob_store,
    make_file,
):
    """Test a failed blob delete never leaves a dangling record."""
    record = make_file(account)
    blob_store.fail_delete = True

    with pytest.raises(BlobDeleteError):
        delete_file(current_user, record.id, client=admin_client)

    assert not File.objects.filter(pk=record.id).exists()
    assert blob_store.exists(record.blob_ref)


@pytest.mark.django_db
def test_delete_file_not_owner(  # noqa: WPS211
    other_account,
    current_user,
    admin_client,
    blob_store,
    make_file,
):
    """Test only the owner can delete."""
    record = make_file(other_account, shared_with=(current_user.email,))

    with pytest.raises(PermissionDenied):
        delete_file(current_user, record.id, client=admin_client)

    assert File.objects.filter(pk=record.id).exists()
    assert blob_store.exists(record.blob_ref)


@pytest.mark.django_db
def test_delete_file_not_found(current_user, admin_client):
    """Test deleting non-existent file."""
    with pytest.raises(File.DoesNotExist):
        delete_file(current_user, 99999, client=admin_client)
