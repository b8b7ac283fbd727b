"""
Slug resolution.

Every document gets one URL-safe slug, unique across the corpus. The slug
is the explicit ``slug`` header when present, otherwise it is derived from
the publish date and title::

    title: "Hello, World!"   published_at: 2020-01-31T09:00:00-05:00
        -> 2020-01-31-hello-world

Collisions are never disambiguated (no ``-2`` suffixes): a silent rename
would break links that already point at the first owner. The registry
reports ``SlugCollisionError`` and the orchestrator applies its policy.
"""

from __future__ import annotations

import re
import threading
import unicodedata

from folio.core.errors import InvalidFieldValueError, SlugCollisionError
from folio.corpus.models import Header

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize_slug(text: str) -> str:
    """
    Lowercase ASCII with every other run of characters collapsed to ``-``.

    Examples:
        >>> normalize_slug("  Hello, World! ")
        'hello-world'
        >>> normalize_slug("Crème brûlée")
        'creme-brulee'
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG_RE.sub("-", folded.lower()).strip("-")


def derive_candidate(header: Header) -> str:
    """
    Candidate slug for a header, before uniqueness is checked.

    The date part uses the calendar date as written in the header, in its
    own offset.

    Raises:
        InvalidFieldValueError: If the source text normalizes to nothing
    """
    if header.slug is not None:
        candidate = normalize_slug(header.slug)
        if not candidate:
            raise InvalidFieldValueError("slug", header.slug, "Slug normalizes to an empty string")
        return candidate

    title = normalize_slug(header.title)
    if not title:
        raise InvalidFieldValueError(
            "title", header.title, "Title contains no characters usable in a slug"
        )
    if header.published_at is None:
        return title
    return f"{header.published_at.date().isoformat()}-{title}"


class SlugRegistry:
    """
    Run-scoped registry of claimed slugs.

    One instance per ingestion run; all access goes through a single lock,
    so registration attempts are serialized.
    """

    def __init__(self) -> None:
        self._owners: dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, candidate: str, document_id: int) -> str:
        """
        Claim ``candidate`` for ``document_id``.

        Raises:
            SlugCollisionError: If another document already owns the slug
        """
        with self._lock:
            owner = self._owners.get(candidate)
            if owner is not None and owner != document_id:
                raise SlugCollisionError(candidate, owner)
            self._owners[candidate] = document_id
            return candidate

    def owner_of(self, slug: str) -> int | None:
        with self._lock:
            return self._owners.get(slug)

    def __contains__(self, slug: object) -> bool:
        with self._lock:
            return slug in self._owners

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)


class SlugResolver:
    """Derive and register slugs against one registry."""

    def __init__(self, registry: SlugRegistry | None = None):
        self.registry = registry if registry is not None else SlugRegistry()

    def resolve(self, header: Header, document_id: int) -> str:
        """
        Return the unique slug for a document.

        Documents must be resolved in ingestion order so the lowest id wins
        a contested candidate.

        Raises:
            InvalidFieldValueError: If no usable candidate can be derived
            SlugCollisionError: If the candidate is already taken
        """
        return self.registry.register(derive_candidate(header), document_id)


__all__ = [
    "normalize_slug",
    "derive_candidate",
    "SlugRegistry",
    "SlugResolver",
]
