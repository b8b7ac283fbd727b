"""
Corpus data model.

The typed records that flow through the ingestion pipeline:

    RawDocument ──► ParsedDocument ──► Document
                                  └──► RelationEdge

``Header`` is a tagged record: the recognized fields are typed and
validated, and everything else a legacy source put in the header is kept
verbatim in ``Header.extra`` so renderers can still use it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.core.errors import FolioError, SourceError

RECOGNIZED_FIELDS: frozenset[str] = frozenset(
    {"title", "published_at", "author", "tags", "slug", "excerpt_marker"}
)


@dataclass(frozen=True)
class RawDocument:
    """
    Immutable input unit.

    Attributes:
        origin: Where the text came from (file path, URL, ...). Only used
            for error reporting.
        text: Full text: header block followed by the body.
    """

    origin: str
    text: str

    @classmethod
    def from_path(cls, path: Path | str) -> RawDocument:
        """Read a UTF-8 file; a leading BOM is dropped."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(f"Cannot read {path}: {e}", cause=e).with_context(
                origin=str(path)
            ) from e
        return cls(origin=str(path), text=text)


class Header(BaseModel):
    """
    Validated document header.

    Invariants:
        - ``title`` is non-empty after trimming
        - ``published_at`` is timezone-aware when present
        - ``tags`` are trimmed, non-empty and unique (case-sensitive),
          in first-seen order
    """

    model_config = ConfigDict(frozen=True)

    title: str
    published_at: datetime | None = None
    author: str | None = None
    tags: tuple[str, ...] = ()
    slug: str | None = None
    excerpt_marker: str | None = None
    extra: dict[str, str] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("published_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.utcoffset() is None:
            raise ValueError("published_at must carry a UTC offset")
        return v

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for tag in v:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return tuple(seen)

    @field_validator("author", "slug", "excerpt_marker")
    @classmethod
    def _blank_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def __hash__(self) -> int:
        return hash(
            (
                self.title,
                self.published_at,
                self.author,
                self.tags,
                self.slug,
                self.excerpt_marker,
                tuple(sorted(self.extra.items())),
            )
        )


@dataclass(frozen=True)
class ParsedDocument:
    """
    Parser output for one RawDocument.

    Attributes:
        origin: Origin of the RawDocument
        header: Header of the leading document
        segments: Body segments. ``segments[0]`` is the leading document's
            body; each later entry is the raw text that followed one
            relation-separator marker (header included, not yet parsed).
        split_offsets: Character offset of each marker within the text
            that follows the header block
    """

    origin: str
    header: Header
    segments: tuple[str, ...]
    split_offsets: tuple[int, ...] = ()

    @property
    def body(self) -> str:
        return self.segments[0]

    @property
    def is_split(self) -> bool:
        return len(self.segments) > 1


@dataclass(frozen=True)
class Document:
    """
    A parsed, normalized document owned by the corpus model.

    ``document_id`` is the ingestion order and is used for every
    deterministic tie-break.
    """

    document_id: int
    slug: str
    header: Header
    body: str
    origin: str
    segment_index: int = 0
    content_hash: str = ""
    permalink: str = ""

    @property
    def title(self) -> str:
        return self.header.title

    @property
    def published_at(self) -> datetime | None:
        return self.header.published_at

    @property
    def author(self) -> str | None:
        return self.header.author

    @property
    def tags(self) -> tuple[str, ...]:
        return self.header.tags

    @property
    def extra(self) -> dict[str, str]:
        return self.header.extra

    @property
    def excerpt(self) -> str | None:
        """Body text before the header's excerpt marker, if the marker occurs."""
        marker = self.header.excerpt_marker
        if not marker:
            return None
        head, found, _ = self.body.partition(marker)
        if not found:
            return None
        return head.strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "slug": self.slug,
            "permalink": self.permalink,
            "title": self.title,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "author": self.author,
            "tags": list(self.tags),
            "extra": dict(sorted(self.extra.items())),
            "excerpt": self.excerpt,
            "origin": self.origin,
            "segment_index": self.segment_index,
            "content_hash": self.content_hash,
        }


class RelationKind(str, Enum):
    """Kinds of relation between documents."""

    SPLIT_SIBLING = "split-sibling"


@dataclass(frozen=True, order=True)
class RelationEdge:
    """
    Directed storage of an undirected relation.

    Queries treat edges symmetrically: if A relates to B, B relates to A.
    """

    source_id: int
    target_id: int
    kind: RelationKind = RelationKind.SPLIT_SIBLING

    def __post_init__(self) -> None:
        if self.source_id == self.target_id:
            raise ValueError(f"Self-edge on document {self.source_id} is not allowed")

    def other(self, document_id: int) -> int:
        """The endpoint opposite ``document_id``."""
        if document_id == self.source_id:
            return self.target_id
        if document_id == self.target_id:
            return self.source_id
        raise ValueError(f"Document {document_id} is not an endpoint of {self}")


@dataclass(frozen=True)
class IngestionWarning:
    """A unit (document or segment) that was excluded from the corpus."""

    origin: str
    code: str
    message: str
    segment_index: int | None = None
    error: FolioError | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_error(
        cls,
        error: FolioError,
        origin: str,
        segment_index: int | None = None,
    ) -> IngestionWarning:
        return cls(
            origin=origin,
            code=error.code,
            message=error.message,
            segment_index=segment_index,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "origin": self.origin,
            "code": self.code,
            "message": self.message,
        }
        if self.segment_index is not None:
            result["segment_index"] = self.segment_index
        return result

    def __str__(self) -> str:
        where = self.origin
        if self.segment_index is not None:
            where = f"{where}#{self.segment_index}"
        return f"{where}: {self.code}: {self.message}"


__all__ = [
    "RECOGNIZED_FIELDS",
    "RawDocument",
    "Header",
    "ParsedDocument",
    "Document",
    "RelationKind",
    "RelationEdge",
    "IngestionWarning",
]
