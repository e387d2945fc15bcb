"""Tests for file listing filters."""

import pytest
from django.core.exceptions import ValidationError

from server.apps.files.infrastructure.stores import (
    NameContains,
    OrderBy,
    OwnedOrSharedWith,
    TypeIn,
)
from server.apps.files.logic.queries import DEFAULT_SORT, build_query, parse_sort
from server.apps.files.models import FileType


@pytest.mark.parametrize(('sort', 'expected'), [
    ('size-asc', OrderBy(field='size', descending=False)),
    ('size-desc', OrderBy(field='size', descending=True)),
    ('name-asc', OrderBy(field='name', descending=False)),
    ('created_at-desc', OrderBy(field='created_at', descending=True)),
    ('size-weird', OrderBy(field='size', descending=True)),
    ('size', OrderBy(field='size', descending=True)),
])
def test_parse_sort(sort, expected):
    """Test sort strings, with unknown directions sorting descending."""
    assert parse_sort(sort) == expected


def test_parse_sort_empty():
    """Test empty sort string keeps the default order."""
    assert parse_sort('') is None


def test_parse_sort_unknown_field():
    """Test sorting by an unknown field is rejected."""
    with pytest.raises(ValidationError):
        parse_sort('owner-asc')


def test_build_query_always_scopes_to_user():
    """Test the access predicate is present without any other filter."""
    spec = build_query(1, 'u1@example.com')

    assert spec.predicates == (
        OwnedOrSharedWith(owner_id=1, email='u1@example.com'),
    )
    assert spec.order_by == parse_sort(DEFAULT_SORT)
    assert spec.limit is None


def test_build_query_all_filters():
    """Test types, search text and limit are added after the access check."""
    spec = build_query(
        1,
        'u1@example.com',
        types=['image', 'video'],
        search_text='holiday',
        sort='name-asc',
        limit=10,
    )

    assert spec.predicates == (
        OwnedOrSharedWith(owner_id=1, email='u1@example.com'),
        TypeIn(types=(FileType.IMAGE, FileType.VIDEO)),
        NameContains(text='holiday'),
    )
    assert spec.order_by == OrderBy(field='name', descending=False)
    assert spec.limit == 10


def test_build_query_unknown_type():
    """Test unknown file types are rejected."""
    with pytest.raises(ValidationError, match='spreadsheet'):
        build_query(1, 'u1@example.com', types=['spreadsheet'])


@pytest.mark.parametrize('limit', [0, -5])
def test_build_query_invalid_limit(limit):
    """Test non-positive limits are rejected."""
    with pytest.raises(ValidationError):
        build_query(1, 'u1@example.com', limit=limit)
