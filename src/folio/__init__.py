"""
Folio - corpus ingestion core for static publishing.

Loads a corpus of headered text documents into a consistent, queryable
model: validated metadata (legacy fields preserved), collision-free slugs,
split-sibling relations and chronological/tag/related indexes.

Example:
    >>> from folio import ingest_directory
    >>> model, warnings = ingest_directory("content/")
    >>> for doc in model.all_documents_chronological()[:5]:
    ...     print(doc.permalink, doc.title)
"""

__version__ = "0.1.0"

from folio.core.errors import FatalIngestionError, FolioError
from folio.core.settings import FolioSettings, get_settings
from folio.corpus import (
    CorpusModel,
    Document,
    IngestionReport,
    IngestionWarning,
    RawDocument,
    ingest_corpus,
    ingest_directory,
)

__all__ = [
    "__version__",
    "FolioError",
    "FatalIngestionError",
    "FolioSettings",
    "get_settings",
    "RawDocument",
    "Document",
    "CorpusModel",
    "IngestionWarning",
    "IngestionReport",
    "ingest_corpus",
    "ingest_directory",
]
