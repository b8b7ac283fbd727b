"""
Folio core primitives: errors, result envelope, settings and hashing.
"""

from folio.core.errors import (
    ConfigError,
    DuplicateHeaderKeyError,
    ErrorCategory,
    ErrorContext,
    FatalIngestionError,
    FolioError,
    InvalidFieldValueError,
    MalformedHeaderError,
    OrphanSegmentError,
    ParseError,
    SlugCollisionError,
    SourceError,
    SourceNotFoundError,
)
from folio.core.result import Err, Ok, Result, partition_results
from folio.core.settings import FolioSettings, get_settings

__all__ = [
    # Errors
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
    # Result
    "Result",
    "Ok",
    "Err",
    "partition_results",
    # Settings
    "FolioSettings",
    "get_settings",
]
