"""Shared fixtures for files app tests."""

import uuid
from collections.abc import Iterator
from datetime import datetime

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from moto import mock_aws

from server.apps.accounts.logic.identity import CurrentUser
from server.apps.accounts.models import Account
from server.apps.files.exceptions import (
    BlobDeleteError,
    BlobWriteError,
    MetadataWriteError,
)
from server.apps.files.infrastructure.clients import AdminClient
from server.apps.files.infrastructure.stores import (
    FileDraft,
    ModelMetadataStore,
)
from server.apps.files.models import File, FileType

User = get_user_model()


class InMemoryBlobStore:
    """Blob store keeping blobs in a dict, with switchable failures."""

    def __init__(self, *, fail_put=False, fail_delete=False):
        self.blobs: dict[str, bytes] = {}
        self.modified: dict[str, datetime] = {}
        self.deleted: list[str] = []
        self.fail_put = fail_put
        self.fail_delete = fail_delete

    def put(self, content: bytes, key: str) -> str:
        if self.fail_put:
            raise BlobWriteError(f'Failed to write blob: {key}')
        self.blobs[key] = content
        self.modified[key] = timezone.now()
        return key

    def delete(self, blob_ref: str) -> None:
        if self.fail_delete:
            raise BlobDeleteError(f'Failed to delete blob: {blob_ref}')
        self.blobs.pop(blob_ref, None)
        self.modified.pop(blob_ref, None)
        self.deleted.append(blob_ref)

    def exists(self, blob_ref: str) -> bool:
        return blob_ref in self.blobs

    def size(self, blob_ref: str) -> int:
        return len(self.blobs[blob_ref])

    def modified_at(self, blob_ref: str) -> datetime:
        return self.modified[blob_ref]

    def iter_refs(self) -> Iterator[str]:
        yield from list(self.blobs)


class FailingMetadataStore:
    """Metadata store whose every insert fails."""

    def __init__(self, error=None):
        self.error = error or MetadataWriteError('database unavailable')
        self.inserted: list[FileDraft] = []

    def insert(self, draft: FileDraft) -> File:
        self.inserted.append(draft)
        raise self.error


def _create_account(username, full_name):
    user = User.objects.create_user(username=username, email=username)
    return Account.objects.create(
        user=user,
        full_name=full_name,
        email=username,
    )


@pytest.fixture
def account(db):
    """Create test account.

    Returns:
        Account instance for testing.
    """
    return _create_account('test@example.com', 'Test User')


@pytest.fixture
def other_account(db):
    """Create second test account for isolation tests.

    Returns:
        Second account instance.
    """
    return _create_account('other@example.com', 'Other User')


@pytest.fixture
def current_user(account):
    """Identity of the test account.

    Returns:
        CurrentUser for ``account``.
    """
    return CurrentUser.from_account(account)


@pytest.fixture
def other_user(other_account):
    """Identity of the second test account.

    Returns:
        CurrentUser for ``other_account``.
    """
    return CurrentUser.from_account(other_account)


@pytest.fixture
def mock_s3():
    """Mock S3 service with storeit bucket.

    Yields:
        boto3 S3 resource with storeit bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='storeit')
        yield conn


@pytest.fixture
def blob_store():
    """Empty in-memory blob store.

    Returns:
        InMemoryBlobStore instance.
    """
    return InMemoryBlobStore()


@pytest.fixture
def admin_client(db, blob_store):
    """Admin handle over the in-memory blob store and the File model.

    Returns:
        AdminClient instance.
    """
    return AdminClient(blobs=blob_store, records=ModelMetadataStore())


@pytest.fixture
def make_file(blob_store):
    """Factory for file records with a matching in-memory blob.

    Returns:
        Function creating a File for an account.
    """
    def factory(
        owner,
        name='notes.txt',
        file_type=FileType.DOCUMENT,
        size_bytes=10,
        shared_with=(),
    ):
        blob_ref = f'{owner.pk}/{uuid.uuid4().hex}'
        blob_store.put(b'x' * size_bytes, blob_ref)
        record = File.objects.create(
            owner=owner,
            account_id=owner.account_id,
            blob_ref=blob_ref,
            name=name,
            extension=name.rpartition('.')[2] if '.' in name else '',
            type=file_type,
            size_bytes=size_bytes,
        )
        for email in shared_with:
            record.shares.create(email=email)
        return record

    return factory


@pytest.fixture
def failing_records():
    """Metadata store rejecting every insert.

    Returns:
        FailingMetadataStore instance.
    """
    return FailingMetadataStore()


@pytest.fixture
def failing_client(blob_store, failing_records):
    """Admin handle whose record writes always fail.

    Returns:
        AdminClient instance.
    """
    return AdminClient(blobs=blob_store, records=failing_records)
