"""Slug derivation and the timestamp suffix used to keep post slugs apart."""

import time
from slugify import slugify

SUFFIX_PREFIX_DIGITS = 8


def generate_slug(text: str) -> str:
    """ASCII, lowercase, runs of other characters collapsed to '-'."""
    return slugify(text or "")


def current_millis() -> int:
    return int(time.time() * 1000)


def with_timestamp_suffix(slug: str) -> str:
    """
    Append ``-<epoch millis>`` unless the slug already carries a suffix from
    the current time window (its first eight digits).

    This only makes collisions unlikely; the unique index on ``posts.slug``
    is what actually enforces uniqueness.
    """
    now = str(current_millis())
    if f"-{now[:SUFFIX_PREFIX_DIGITS]}" in slug:
        return slug
    return f"{slug}-{now}"
