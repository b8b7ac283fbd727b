"""
Structured error types for folio.

Every failure the ingestion pipeline can report is a ``FolioError``. Errors
carry a category for routing, an ``ErrorContext`` naming the origin of the
offending document, and an optional chained cause. Per-document errors are
turned into ``IngestionWarning`` records by the orchestrator; only
``FatalIngestionError`` escapes ``ingest_corpus``.

Manifesto:
    - **Typed hierarchy:** One class per failure mode, so callers can match
      on the kind of problem rather than on message text
    - **Origin first:** Operators fix source files, so every error knows
      which file (and which segment) it came from
    - **Error chaining:** Underlying exceptions are kept as ``cause``

Architecture:
    ::

        FolioError (category, context, cause)
          ├── ParseError (PARSE)
          │     ├── MalformedHeaderError
          │     ├── DuplicateHeaderKeyError(key)
          │     ├── InvalidFieldValueError(key, raw_value)
          │     └── OrphanSegmentError
          ├── SlugCollisionError(candidate, first_owner_id)   (COLLISION)
          ├── FatalIngestionError(warnings)                   (INGESTION)
          ├── SourceError (SOURCE)
          │     └── SourceNotFoundError
          └── ConfigError (CONFIG)

Examples:
    >>> err = DuplicateHeaderKeyError("title")
    >>> err.key
    'title'
    >>> err.with_context(origin="posts/a.md").context.origin
    'posts/a.md'

Tags:
    error-handling, exception-hierarchy, error-context, folio
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from folio.corpus.models import IngestionWarning


class ErrorCategory(str, Enum):
    """Standard error categories used for reporting."""

    PARSE = "PARSE"
    COLLISION = "COLLISION"
    INGESTION = "INGESTION"
    SOURCE = "SOURCE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        origin: Origin identifier of the RawDocument (usually a file path)
        segment_index: Position of the failing segment inside its RawDocument
        field: Header field involved, if any
        metadata: Additional key-value pairs
    """

    origin: str | None = None
    segment_index: int | None = None
    field: str | None = None
    metadata: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["origin", "segment_index", "field"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.metadata)
        return result


class FolioError(Exception):
    """
    Base class for all folio errors.

    Attributes:
        message: Human-readable description
        category: ErrorCategory for reporting
        context: ErrorContext with origin information
        cause: Underlying exception, if any
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        """Short machine-readable name of the failure mode."""
        return self.__class__.__name__.removesuffix("Error")

    def with_context(self, **kwargs: Any) -> FolioError:
        """
        Add context fields to this error (fluent API).

        Known fields are set on the ``ErrorContext``; anything else goes
        into ``metadata``.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PARSE ERRORS (recovered per document / segment)
# =============================================================================


class ParseError(FolioError):
    """A document or segment could not be decoded."""

    default_category = ErrorCategory.PARSE


class MalformedHeaderError(ParseError):
    """The header block is missing its delimiters or contains a bad line."""

    def __init__(self, message: str, *, line: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.line = line

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.line is not None:
            result["line"] = self.line
        return result


class DuplicateHeaderKeyError(ParseError):
    """A header key appears more than once."""

    def __init__(self, key: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Duplicate header key: {key!r}", **kwargs)
        self.key = key
        self.context.field = key


class InvalidFieldValueError(ParseError):
    """A recognized header field could not be coerced to its type."""

    def __init__(
        self,
        key: str,
        raw_value: Any,
        message: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(
            message or f"Invalid value for header field {key!r}: {raw_value!r}",
            **kwargs,
        )
        self.key = key
        self.raw_value = raw_value
        self.context.field = key

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["raw_value"] = repr(self.raw_value)
        return result


class OrphanSegmentError(ParseError):
    """A split segment does not start with its own header block."""


# =============================================================================
# INGESTION ERRORS
# =============================================================================


class SlugCollisionError(FolioError):
    """Two documents resolved to the same slug."""

    default_category = ErrorCategory.COLLISION

    def __init__(self, candidate: str, first_owner_id: int, **kwargs: Any):
        super().__init__(
            f"Slug {candidate!r} is already owned by document {first_owner_id}",
            **kwargs,
        )
        self.candidate = candidate
        self.first_owner_id = first_owner_id

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["candidate"] = self.candidate
        result["first_owner_id"] = self.first_owner_id
        return result


class FatalIngestionError(FolioError):
    """
    The corpus cannot produce a usable model.

    Raised when no document survives ingestion, or when slug collisions are
    configured as fatal. ``warnings`` holds every warning collected during
    the run so the operator sees the complete picture.
    """

    default_category = ErrorCategory.INGESTION

    def __init__(
        self,
        message: str,
        warnings: list[IngestionWarning] | tuple[IngestionWarning, ...] = (),
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.warnings = tuple(warnings)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["warnings"] = [w.to_dict() for w in self.warnings]
        return result


# =============================================================================
# SOURCE / CONFIG ERRORS
# =============================================================================


class SourceError(FolioError):
    """A corpus source could not be read."""

    default_category = ErrorCategory.SOURCE


class SourceNotFoundError(SourceError):
    """The corpus root does not exist."""


class ConfigError(FolioError):
    """Invalid configuration."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FolioError",
    "ParseError",
    "MalformedHeaderError",
    "DuplicateHeaderKeyError",
    "InvalidFieldValueError",
    "OrphanSegmentError",
    "SlugCollisionError",
    "FatalIngestionError",
    "SourceError",
    "SourceNotFoundError",
    "ConfigError",
]
