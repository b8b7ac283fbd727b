"""
Corpus ingestion: parsing, slug resolution, relation extraction, indexing.

Example:
    >>> from folio.corpus import RawDocument, ingest_corpus
    >>> model, warnings = ingest_corpus([RawDocument("a.md", "---\\ntitle: A\\n---\\nBody")])
    >>> model.document_by_slug("a").title
    'A'
"""

from folio.corpus.indexes import CorpusIndexes, IndexBuilder
from folio.corpus.ingest import IngestionReport, ingest_corpus, ingest_directory
from folio.corpus.loader import CorpusLoader
from folio.corpus.model import CorpusModel, Neighbors
from folio.corpus.models import (
    Document,
    Header,
    IngestionWarning,
    ParsedDocument,
    RawDocument,
    RelationEdge,
    RelationKind,
)
from folio.corpus.parser import DocumentParser
from folio.corpus.relations import RelationExtractor, SegmentCandidate, SegmentSplit
from folio.corpus.slugs import SlugRegistry, SlugResolver, derive_candidate, normalize_slug

__all__ = [
    # Models
    "RawDocument",
    "Header",
    "ParsedDocument",
    "Document",
    "RelationKind",
    "RelationEdge",
    "IngestionWarning",
    # Components
    "DocumentParser",
    "SlugRegistry",
    "SlugResolver",
    "normalize_slug",
    "derive_candidate",
    "RelationExtractor",
    "SegmentCandidate",
    "SegmentSplit",
    "IndexBuilder",
    "CorpusIndexes",
    "CorpusModel",
    "Neighbors",
    "CorpusLoader",
    # Entry points
    "IngestionReport",
    "ingest_corpus",
    "ingest_directory",
]
