"""Slug derivation and validation for organizations."""

import re

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$")
SLUG_MIN_LENGTH = 2
SLUG_MAX_LENGTH = 64
# Room for a "-<n>" disambiguation suffix
BASE_SLUG_MAX_LENGTH = 56
FALLBACK_SLUG = "org"


def slugify(name: str) -> str:
    """Derive a base slug from an organization name.

    Lowercases, collapses every run of non-alphanumerics into one hyphen and
    trims hyphens from both ends (e.g. "Acme Widgets, Inc." -> "acme-widgets-inc").
    Names with no usable characters fall back to "org".
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    slug = slug[:BASE_SLUG_MAX_LENGTH].rstrip("-")
    if len(slug) < SLUG_MIN_LENGTH:
        return FALLBACK_SLUG if not slug else f"{slug}-{FALLBACK_SLUG}"
    return slug


def validate_slug(slug: str) -> str | None:
    """Return a reason the slug is unusable, or None if it is fine."""
    if not SLUG_PATTERN.match(slug):
        return (
            "Slug must be lowercase alphanumeric with hyphens, "
            "cannot start or end with hyphen"
        )
    if len(slug) < SLUG_MIN_LENGTH or len(slug) > SLUG_MAX_LENGTH:
        return (
            f"Slug must be between {SLUG_MIN_LENGTH} and "
            f"{SLUG_MAX_LENGTH} characters"
        )
    return None


def first_free_slug(base: str, taken: set[str]) -> str:
    """Pick ``base`` or the first ``base-<n>`` (n = 1, 2, ...) not in ``taken``.

    Terminates after at most len(taken) + 1 candidates.
    """
    if base not in taken:
        return base
    counter = 1
    while f"{base}-{counter}" in taken:
        counter += 1
    return f"{base}-{counter}"
