"""Database models for files app."""

from typing import ClassVar, Final, final, override

from django.core.files.storage import default_storage
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_EXTENSION_MAX_LENGTH: Final = 32
_TYPE_MAX_LENGTH: Final = 16
_ACCOUNT_ID_MAX_LENGTH: Final = 64
_BLOB_REF_MAX_LENGTH: Final = 1024


class FileType(models.TextChoices):
    """Category a file is sorted into by its extension."""

    DOCUMENT = 'document', 'Document'
    IMAGE = 'image', 'Image'
    VIDEO = 'video', 'Video'
    AUDIO = 'audio', 'Audio'
    OTHER = 'other', 'Other'


@final
class File(models.Model):
    """Metadata record for one uploaded file.

    The bytes live in blob storage under ``blob_ref``. A record is only
    written after its blob exists, and is deleted before its blob, so a
    committed record never points at a missing blob.
    """

    owner = models.ForeignKey(
        'accounts.Account',
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    account_id = models.CharField(
        max_length=_ACCOUNT_ID_MAX_LENGTH,
        db_index=True,
        help_text='Auth account that uploaded the file',
    )

    blob_ref = models.CharField(
        max_length=_BLOB_REF_MAX_LENGTH,
        unique=True,
        editable=False,
        help_text='Key in blob storage: {owner_id}/{uuid}.{ext}',
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
    )

    extension = models.CharField(
        max_length=_EXTENSION_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Lowercase extension without dot',
    )

    type = models.CharField(
        max_length=_TYPE_MAX_LENGTH,
        choices=FileType.choices,
        default=FileType.OTHER,
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize recent files queries
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
            # Optimize per-category listings
            models.Index(
                fields=['owner', 'type'],
                name='files_owner_type_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'

    @property
    def shared_with(self) -> frozenset[str]:
        """Emails the file is shared with.

        Returns:
            Set of email addresses, order is not meaningful.
        """
        return frozenset(share.email for share in self.shares.all())

    def get_url(self) -> str:
        """Get download URL for the blob.

        Returns:
            Full URL to access the blob via storage backend.
        """
        return default_storage.url(self.blob_ref)


@final
class FileShare(models.Model):
    """Grants read access to a file for one email address."""

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    email = models.EmailField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File share'  # type: ignore[mutable-override]
        verbose_name_plural = 'File shares'  # type: ignore[mutable-override]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['file', 'email'],
                name='file_shares_file_email_unique',
            ),
        ]

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['email'],
                name='file_shares_email_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file_id}->{self.email}'
