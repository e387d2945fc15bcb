"""Metadata helpers for files: classification and blob keys."""

import uuid
from pathlib import Path
from typing import Final, NamedTuple

from django.core.exceptions import ValidationError

from server.apps.files.models import FileType

_DOCUMENT_EXTENSIONS: Final = frozenset((
    'pdf', 'doc', 'docx', 'txt', 'xls', 'xlsx', 'csv', 'rtf', 'ods',
    'ppt', 'odp', 'md', 'html', 'htm', 'epub', 'pages', 'fig', 'psd',
    'ai', 'indd', 'xd', 'sketch', 'afdesign', 'afphoto',
))
_IMAGE_EXTENSIONS: Final = frozenset((
    'jpg', 'jpeg', 'png', 'gif', 'bmp', 'svg', 'webp',
))
_VIDEO_EXTENSIONS: Final = frozenset(('mp4', 'avi', 'mov', 'mkv', 'webm'))
_AUDIO_EXTENSIONS: Final = frozenset(('mp3', 'wav', 'ogg', 'flac'))

_CATEGORIES: Final = (
    (FileType.DOCUMENT, _DOCUMENT_EXTENSIONS),
    (FileType.IMAGE, _IMAGE_EXTENSIONS),
    (FileType.VIDEO, _VIDEO_EXTENSIONS),
    (FileType.AUDIO, _AUDIO_EXTENSIONS),
)


class FileClassification(NamedTuple):
    """Category and normalized extension of a file name."""

    type: FileType
    extension: str


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = Path(filename).suffix
    return extension.lstrip('.').lower()


def classify_file(filename: str) -> FileClassification:
    """Sort a file into a category by its extension.

    Pure and total: every name maps to exactly one category.

    Args:
        filename: Filename (e.g., 'photo.JPG').

    Returns:
        Classification, e.g. ``(FileType.IMAGE, 'jpg')``. Unknown
        extensions map to ``FileType.OTHER`` with the extension kept,
        names without extension to ``(FileType.OTHER, '')``.
    """
    extension = get_file_extension(filename)
    for file_type, extensions in _CATEGORIES:
        if extension in extensions:
            return FileClassification(file_type, extension)
    return FileClassification(FileType.OTHER, extension)


def generate_blob_key(owner_id: int, extension: str = '') -> str:
    """Generate a fresh blob storage key for an owner.

    The user's file name is never part of the key.

    Args:
        owner_id: Owner's account ID.
        extension: Normalized extension, kept so storage can guess
            the content type.

    Returns:
        Key of the form ``{owner_id}/{uuid}.{ext}``.
    """
    key = f'{owner_id}/{uuid.uuid4().hex}'
    if extension:
        return f'{key}.{extension}'
    return key


def validate_blob_key(owner_id: int, blob_key: str) -> None:
    """Validate blob key follows owner isolation rules.

    Ensures the key starts with the owner's ID so blobs of different
    owners never share a prefix.

    Args:
        owner_id: Owner's account ID.
        blob_key: Proposed blob key.

    Raises:
        ValidationError: If key doesn't start with owner_id or is invalid.
    """
    if not blob_key:
        raise ValidationError('Blob key cannot be empty')

    path_parts = Path(blob_key).parts
    if len(path_parts) < 2:
        raise ValidationError('Blob key must have an owner prefix and a name')

    try:
        key_owner_id = int(path_parts[0])
    except ValueError as error:
        raise ValidationError('Blob key must start with owner ID') from error

    if key_owner_id != owner_id:
        raise ValidationError(
            f'Blob key owner ID ({key_owner_id}) does not match '
            f'owner ({owner_id})',
        )
