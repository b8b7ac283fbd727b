"""
Index builder.

Materializes the derived views of a corpus in one pass, after every
document is known:

- ``chronological``: newest first; ties by ingestion order; undated
  documents last, in ingestion order
- ``by_tag``: tag -> ids, in chronological order
- ``related``: id -> ids one relation hop away (either direction),
  ascending ingestion order

The builder is a pure function of its inputs. Two builds over the same
documents and edges produce identical indexes, which ``fingerprint()``
makes checkable.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from folio.core.hashing import canonical_json, fingerprint
from folio.corpus.models import Document, RelationEdge

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def chronological_key(document: Document) -> tuple[int, timedelta, int]:
    """Sort key: dated before undated, newer first, then ingestion order."""
    if document.published_at is None:
        return (1, timedelta(0), document.document_id)
    return (0, -(document.published_at - _EPOCH), document.document_id)


@dataclass(frozen=True)
class CorpusIndexes:
    """Derived, read-only views over a corpus."""

    chronological: tuple[int, ...] = ()
    by_tag: dict[str, tuple[int, ...]] = field(default_factory=dict)
    related: dict[int, tuple[int, ...]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chronological": list(self.chronological),
            "by_tag": {tag: list(ids) for tag, ids in self.by_tag.items()},
            "related": {str(doc_id): list(ids) for doc_id, ids in self.related.items()},
        }

    def to_json(self) -> str:
        return canonical_json(self.to_dict())

    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form."""
        return fingerprint(self.to_dict())


class IndexBuilder:
    """Build ``CorpusIndexes`` from a complete document and edge set."""

    def build(
        self,
        documents: Iterable[Document],
        edges: Iterable[RelationEdge] = (),
    ) -> CorpusIndexes:
        """
        Build all indexes.

        Raises:
            ValueError: If an edge references a document not in ``documents``
        """
        docs = sorted(documents, key=lambda d: d.document_id)
        known = {d.document_id for d in docs}

        chronological = tuple(d.document_id for d in sorted(docs, key=chronological_key))
        return CorpusIndexes(
            chronological=chronological,
            by_tag=self._tag_index(docs, chronological),
            related=self._related_index(known, edges),
        )

    @staticmethod
    def _tag_index(
        docs: list[Document],
        chronological: tuple[int, ...],
    ) -> dict[str, tuple[int, ...]]:
        tags_of = {d.document_id: d.tags for d in docs}
        buckets: dict[str, list[int]] = defaultdict(list)
        for doc_id in chronological:
            for tag in tags_of[doc_id]:
                buckets[tag].append(doc_id)
        return {tag: tuple(buckets[tag]) for tag in sorted(buckets)}

    @staticmethod
    def _related_index(
        known: set[int],
        edges: Iterable[RelationEdge],
    ) -> dict[int, tuple[int, ...]]:
        neighbours: dict[int, set[int]] = {doc_id: set() for doc_id in known}
        for edge in edges:
            for endpoint in (edge.source_id, edge.target_id):
                if endpoint not in known:
                    raise ValueError(f"Edge {edge} references unknown document {endpoint}")
            neighbours[edge.source_id].add(edge.target_id)
            neighbours[edge.target_id].add(edge.source_id)
        return {doc_id: tuple(sorted(neighbours[doc_id])) for doc_id in sorted(known)}


__all__ = [
    "chronological_key",
    "CorpusIndexes",
    "IndexBuilder",
]
