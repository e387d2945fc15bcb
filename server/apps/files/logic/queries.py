"""Translation of file listing requests into metadata store filters."""

import logging
from collections.abc import Iterable
from typing import Final

from django.core.exceptions import ValidationError

from server.apps.files.infrastructure.stores import (
    SORT_FIELDS,
    FilterSpec,
    NameContains,
    OrderBy,
    OwnedOrSharedWith,
    Predicate,
    TypeIn,
)
from server.apps.files.models import FileType

logger = logging.getLogger(__name__)

DEFAULT_SORT: Final = 'created_at-desc'


def parse_sort(sort: str) -> OrderBy | None:
    """Parse a ``<field>-<direction>`` sort string.

    The string is split on its last ``-``. Any direction other than
    ``asc`` sorts descending, so ``'size-weird'`` means ``'size-desc'``.

    Args:
        sort: Sort string such as ``'size-asc'``; empty for default order.

    Returns:
        Parsed ordering, or None for the store's default order.

    Raises:
        ValidationError: If the field is not sortable.
    """
    if not sort:
        return None

    field, separator, direction = sort.rpartition('-')
    if not separator:
        field, direction = direction, ''

    if field not in SORT_FIELDS:
        raise ValidationError(f'Cannot sort files by {field!r}')

    if direction not in {'asc', 'desc'}:
        logger.debug('Unknown sort direction %r, using desc', direction)

    return OrderBy(field=field, descending=direction != 'asc')


def build_query(  # noqa: WPS211
    current_user_id: int,
    current_user_email: str,
    types: Iterable[str] = (),
    search_text: str = '',
    sort: str = DEFAULT_SORT,
    limit: int | None = None,
) -> FilterSpec:
    """Build the filter for listing a user's files.

    Every filter is scoped to files the user owns or that are shared
    with the user's email. This is the only access check on listings.

    Args:
        current_user_id: Account ID of the caller.
        current_user_email: Email of the caller.
        types: File types to include; all types when empty.
        search_text: Substring the file name must contain.
        sort: Sort string, see ``parse_sort``.
        limit: Maximum number of files; unbounded when None.

    Returns:
        FilterSpec for the metadata store.

    Raises:
        ValidationError: If a type, the sort field or the limit is invalid.
    """
    predicates: list[Predicate] = [
        OwnedOrSharedWith(owner_id=current_user_id, email=current_user_email),
    ]

    requested_types = tuple(types)
    if requested_types:
        unknown = set(requested_types) - set(FileType.values)
        if unknown:
            raise ValidationError(
                f'Unknown file types: {", ".join(sorted(unknown))}',
            )
        predicates.append(
            TypeIn(types=tuple(FileType(value) for value in requested_types)),
        )

    if search_text:
        predicates.append(NameContains(text=search_text))

    if limit is not None and limit <= 0:
        raise ValidationError('Limit must be a positive number')

    return FilterSpec(
        predicates=tuple(predicates),
        order_by=parse_sort(sort),
        limit=limit,
    )
