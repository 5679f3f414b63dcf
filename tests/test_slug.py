"""Tests for slug derivation and validation."""

import pytest

from orgtree_api.services.slug import first_free_slug, slugify, validate_slug


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Acme Widgets", "acme-widgets"),
        ("Acme Widgets, Inc.", "acme-widgets-inc"),
        ("  --Acme__Group--  ", "acme-group"),
        ("ACME", "acme"),
        ("!!!", "org"),
        ("X", "x-org"),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_slugify_leaves_room_for_suffix():
    slug = slugify("a" * 100)

    assert len(slug) == 56
    assert validate_slug(f"{slug}-99") is None


def test_validate_slug():
    assert validate_slug("acme-widgets") is None
    assert validate_slug("-acme") is not None
    assert validate_slug("Acme") is not None
    assert "between" in validate_slug("a")


def test_first_free_slug():
    assert first_free_slug("acme", set()) == "acme"
    assert first_free_slug("acme", {"acme"}) == "acme-1"
    assert first_free_slug("acme", {"acme", "acme-1", "acme-3"}) == "acme-2"
