"""
Slugs: the URL-safe identifiers derived from human-readable names.
"""

import re
import unicodedata

from .errors import BadParameters

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def to_slug(name: str) -> str:
    """
    Deterministically convert a name to a slug, e.g. "My Team" -> "my-team".

    Raises
    ------
    BadParameters
        If nothing usable remains of the name.
    """
    normalized = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_ALPHANUMERIC.sub("-", normalized.lower()).strip("-")

    if not slug:
        raise BadParameters(f"Cannot create a slug from name {name!r}")

    return slug
