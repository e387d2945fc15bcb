"""Business logic for storage usage reporting."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Final, Protocol, final

from django.conf import settings

from server.apps.accounts.logic.identity import CurrentUser
from server.apps.files.infrastructure.clients import (
    SessionClient,
    create_session_client,
)
from server.apps.files.models import FileType

# Default capacity: 2 GiB in bytes
_DEFAULT_CAPACITY_BYTES: Final = 2 * 1024 * 1024 * 1024

# Dashboard section slug -> file types it lists
_SECTION_TYPES: Final = {
    'documents': (FileType.DOCUMENT,),
    'images': (FileType.IMAGE,),
    'media': (FileType.VIDEO, FileType.AUDIO),
    'others': (FileType.OTHER,),
}

logger = logging.getLogger(__name__)


class UsageRecord(Protocol):
    """Fields of a file record that usage reporting reads."""

    type: str
    size_bytes: int
    updated_at: datetime


@final
@dataclass(frozen=True, slots=True)
class CategoryUsage:
    """Bytes used by one category and its latest modification."""

    size: int = 0
    latest_date: datetime | None = None

    def add(self, size_bytes: int, modified_at: datetime) -> 'CategoryUsage':
        """Account for one more record.

        Args:
            size_bytes: Size of the record.
            modified_at: Modification time of the record.

        Returns:
            New CategoryUsage including the record.
        """
        latest = self.latest_date
        if latest is None or modified_at > latest:
            latest = modified_at
        return CategoryUsage(size=self.size + size_bytes, latest_date=latest)


@final
@dataclass(frozen=True, slots=True)
class UsageSummary:
    """Storage used per category against the total capacity."""

    document: CategoryUsage
    image: CategoryUsage
    video: CategoryUsage
    audio: CategoryUsage
    other: CategoryUsage
    used: int
    capacity: int

    def for_type(self, file_type: str) -> CategoryUsage:
        """Get usage of one category.

        Args:
            file_type: One of the ``FileType`` values.

        Returns:
            CategoryUsage of that category.
        """
        return getattr(self, FileType(file_type).value)


@final
@dataclass(frozen=True, slots=True)
class UsageSection:
    """One row of the usage dashboard."""

    title: str
    slug: str
    size: int
    latest_date: datetime | None


def get_storage_capacity() -> int:
    """Get storage capacity in bytes.

    Returns:
        Capacity from settings or default of 2 GiB.
    """
    return getattr(
        settings,
        'FILES_STORAGE_CAPACITY_BYTES',
        _DEFAULT_CAPACITY_BYTES,
    )


def summarize(
    records: Iterable[UsageRecord],
    capacity: int | None = None,
) -> UsageSummary:
    """Total up storage usage per category in one pass.

    Pure: the result does not depend on the order of ``records``.

    Args:
        records: File records to account for.
        capacity: Total capacity; settings value when omitted.

    Returns:
        UsageSummary with zero sizes and no dates for empty input.
    """
    categories = {file_type: CategoryUsage() for file_type in FileType}
    used = 0

    for record in records:
        file_type = FileType(record.type)
        categories[file_type] = categories[file_type].add(
            record.size_bytes,
            record.updated_at,
        )
        used += record.size_bytes

    return UsageSummary(
        document=categories[FileType.DOCUMENT],
        image=categories[FileType.IMAGE],
        video=categories[FileType.VIDEO],
        audio=categories[FileType.AUDIO],
        other=categories[FileType.OTHER],
        used=used,
        capacity=get_storage_capacity() if capacity is None else capacity,
    )


def _latest(*dates: datetime | None) -> datetime | None:
    present = [date for date in dates if date is not None]
    return max(present) if present else None


def usage_sections(summary: UsageSummary) -> list[UsageSection]:
    """Group category usage into dashboard rows.

    Video and audio are shown together as media.

    Args:
        summary: Usage summary of a user.

    Returns:
        Rows for documents, images, media and others.
    """
    return [
        UsageSection(
            title='Documents',
            slug='documents',
            size=summary.document.size,
            latest_date=summary.document.latest_date,
        ),
        UsageSection(
            title='Images',
            slug='images',
            size=summary.image.size,
            latest_date=summary.image.latest_date,
        ),
        UsageSection(
            title='Media',
            slug='media',
            size=summary.video.size + summary.audio.size,
            latest_date=_latest(
                summary.video.latest_date,
                summary.audio.latest_date,
            ),
        ),
        UsageSection(
            title='Others',
            slug='others',
            size=summary.other.size,
            latest_date=summary.other.latest_date,
        ),
    ]


def types_for_section(slug: str) -> list[str]:
    """Get the file types listed by a dashboard section.

    Args:
        slug: Section slug such as ``'media'``.

    Returns:
        File type values; documents for unknown slugs.
    """
    file_types = _SECTION_TYPES.get(slug, (FileType.DOCUMENT,))
    return [file_type.value for file_type in file_types]


def get_total_space_used(
    current_user: CurrentUser,
    *,
    client: SessionClient | None = None,
) -> UsageSummary:
    """Summarize storage used by the files a user owns.

    Files shared with the user do not count against their storage.

    Args:
        current_user: User to report on.
        client: Session handle; built per call when omitted.

    Returns:
        UsageSummary for the user.
    """
    session = client or create_session_client(current_user)
    summary = summarize(session.records.owned())
    logger.debug(
        'Usage for account %d: %d/%d bytes',
        current_user.id,
        summary.used,
        summary.capacity,
    )
    return summary
