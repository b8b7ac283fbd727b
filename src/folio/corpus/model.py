"""
Corpus model.

The in-memory aggregate produced by one ingestion run: every accepted
document (unique by slug), the relation edges between them and the derived
indexes. It is read-only; renderers, feed generators and site assemblers
query it.

Examples:
    >>> report = ingest_corpus(raw_documents)
    >>> corpus = report.model
    >>> [d.slug for d in corpus.documents_by_tag("python")]
    ['2021-06-01-typing-tricks', '2020-02-10-hello-python']
    >>> corpus.document_by_slug("nope") is None
    True
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from folio.corpus.indexes import CorpusIndexes, IndexBuilder
from folio.corpus.models import Document, RelationEdge


@dataclass(frozen=True)
class Neighbors:
    """Chronological neighbours used for previous/next navigation."""

    newer: Document | None
    older: Document | None


class CorpusModel:
    """Documents, relation graph and indexes of one corpus."""

    def __init__(
        self,
        documents: Iterable[Document],
        edges: Iterable[RelationEdge] = (),
        indexes: CorpusIndexes | None = None,
    ):
        self._by_id: dict[int, Document] = {}
        self._by_slug: dict[str, Document] = {}
        for document in sorted(documents, key=lambda d: d.document_id):
            if document.document_id in self._by_id:
                raise ValueError(f"Duplicate document id {document.document_id}")
            if document.slug in self._by_slug:
                raise ValueError(f"Duplicate slug {document.slug!r}")
            self._by_id[document.document_id] = document
            self._by_slug[document.slug] = document

        self.edges: tuple[RelationEdge, ...] = tuple(sorted(set(edges)))
        self.indexes = indexes or IndexBuilder().build(self._by_id.values(), self.edges)

        self._position = {doc_id: i for i, doc_id in enumerate(self.indexes.chronological)}

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def document_by_slug(self, slug: str) -> Document | None:
        return self._by_slug.get(slug)

    def document_by_id(self, document_id: int) -> Document | None:
        return self._by_id.get(document_id)

    def all_documents_chronological(self) -> list[Document]:
        """Every document, newest first; undated documents last."""
        return self._resolve(self.indexes.chronological)

    def documents_by_tag(self, tag: str) -> list[Document]:
        """Documents carrying ``tag`` (case-sensitive), newest first."""
        return self._resolve(self.indexes.by_tag.get(tag, ()))

    def related_documents(self, document_id: int) -> list[Document]:
        """
        Documents one relation hop away, in ingestion order.

        Raises:
            KeyError: If ``document_id`` is not in the corpus
        """
        if document_id not in self._by_id:
            raise KeyError(document_id)
        return self._resolve(self.indexes.related.get(document_id, ()))

    def tags(self) -> dict[str, int]:
        """Tag -> number of documents, sorted by tag."""
        return {tag: len(ids) for tag, ids in self.indexes.by_tag.items()}

    def neighbors(self, document_id: int) -> Neighbors:
        """The next newer and next older documents in chronological order."""
        if document_id not in self._position:
            raise KeyError(document_id)
        position = self._position[document_id]
        order = self.indexes.chronological
        newer = self._by_id[order[position - 1]] if position > 0 else None
        older = self._by_id[order[position + 1]] if position + 1 < len(order) else None
        return Neighbors(newer=newer, older=older)

    def _resolve(self, ids: Iterable[int]) -> list[Document]:
        return [self._by_id[doc_id] for doc_id in ids]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_manifest(self) -> dict[str, Any]:
        """
        JSON-serializable publication graph.

        Every cross-reference is a slug of a document in the manifest, so
        the output is link-consistent by construction.
        """
        documents = []
        for document in self.all_documents_chronological():
            entry = document.to_dict()
            neighbors = self.neighbors(document.document_id)
            entry["related"] = [d.slug for d in self.related_documents(document.document_id)]
            entry["newer"] = neighbors.newer.slug if neighbors.newer else None
            entry["older"] = neighbors.older.slug if neighbors.older else None
            documents.append(entry)

        return {
            "documents": documents,
            "tags": {
                tag: [self._by_id[doc_id].slug for doc_id in ids]
                for tag, ids in self.indexes.by_tag.items()
            },
            "edges": [
                {
                    "source": self._by_id[edge.source_id].slug,
                    "target": self._by_id[edge.target_id].slug,
                    "kind": edge.kind.value,
                }
                for edge in self.edges
            ],
            "fingerprint": self.indexes.fingerprint(),
        }

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Document]:
        """Iterate in ingestion order."""
        return iter(self._by_id.values())

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    def __repr__(self) -> str:
        return f"CorpusModel(documents={len(self)}, edges={len(self.edges)}, tags={len(self.indexes.by_tag)})"


__all__ = [
    "Neighbors",
    "CorpusModel",
]
