"""
Ingestion orchestrator.

``ingest_corpus`` is the single entry point of the core: raw documents in,
a ``CorpusModel`` plus a complete list of warnings out.

Architecture:
    ::

        raw documents
              │
              ▼  stage "parse"   (thread pool, results kept in input order)
        DocumentParser.parse ──► RelationExtractor.split
              │
              ▼  ids assigned in (input position, segment position) order
              │
              ▼  stage "slugs"   (ingestion order, one registry per run)
        SlugResolver.resolve
              │
              ▼  stage "relations"
        RelationExtractor.link   (accepted siblings only)
              │
              ▼  barrier: every input accepted or rejected
              │
              ▼  stage "index"   (single thread)
        IndexBuilder.build ──► CorpusModel

Guardrails:
    - Structural problems reject one document or segment, never the run
    - Slug collisions are fatal unless ``slug_collision_policy="warn"``,
      in which case the later document is dropped
    - Zero accepted documents is fatal
    - No state outlives a run: registry and id counter are local
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from folio.core.errors import FatalIngestionError, FolioError, SlugCollisionError
from folio.core.hashing import compute_content_hash
from folio.core.result import Err, Ok
from folio.core.settings import FolioSettings, get_settings
from folio.corpus.loader import CorpusLoader
from folio.corpus.model import CorpusModel
from folio.corpus.models import Document, IngestionWarning, RawDocument, RelationEdge
from folio.corpus.parser import DocumentParser
from folio.corpus.relations import RelationExtractor, SegmentCandidate, SegmentSplit
from folio.corpus.slugs import SlugRegistry, SlugResolver
from folio.logging import get_logger, log_step, new_run_id, push_context

log = get_logger(__name__)


@dataclass(frozen=True)
class IngestionReport:
    """Result of a successful run. Unpacks as ``model, warnings``."""

    model: CorpusModel
    warnings: tuple[IngestionWarning, ...]
    run_id: str = ""

    def __iter__(self) -> Iterator[Any]:
        yield self.model
        yield self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "documents": len(self.model),
            "edges": len(self.model.edges),
            "tags": len(self.model.indexes.by_tag),
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class _Pending:
    """A candidate waiting for slug resolution."""

    document_id: int
    position: int
    candidate: SegmentCandidate


def ingest_corpus(
    raw_documents: Iterable[RawDocument],
    settings: FolioSettings | None = None,
) -> IngestionReport:
    """
    Ingest a corpus.

    Args:
        raw_documents: Inputs, in the order that defines ingestion order
        settings: Run configuration (defaults to ``get_settings()``)

    Returns:
        IngestionReport with the corpus model and every warning, ordered by
        input position

    Raises:
        FatalIngestionError: If no document survives, or a slug collision
            occurs under the "fail" policy
    """
    settings = settings or get_settings()
    raws = list(raw_documents)
    run_id = new_run_id()
    token = push_context(run_id=run_id)
    try:
        return _run(raws, settings, run_id)
    finally:
        token.restore()


def ingest_directory(
    root: Path | str,
    settings: FolioSettings | None = None,
) -> IngestionReport:
    """Load every document under ``root`` with ``CorpusLoader`` and ingest it."""
    settings = settings or get_settings()
    loader = CorpusLoader(root, extensions=settings.extensions)
    return ingest_corpus(loader.load(), settings)


def _run(raws: list[RawDocument], settings: FolioSettings, run_id: str) -> IngestionReport:
    parser = DocumentParser.from_settings(settings)
    extractor = RelationExtractor(parser)
    per_input: list[list[IngestionWarning]] = [[] for _ in raws]

    log.info("ingest.start", documents=len(raws), workers=settings.worker_count)

    # ── parse ────────────────────────────────────────────────────────
    with log_step("ingest.parse", documents=len(raws)) as timer:
        outcomes = _parse_all(raws, extractor, settings.worker_count)

        pending: list[_Pending] = []
        split_positions: set[int] = set()
        for position, outcome in enumerate(outcomes):
            if isinstance(outcome, IngestionWarning):
                per_input[position].append(outcome)
                continue
            if len(outcome.candidates) + len(outcome.failures) > 1:
                split_positions.add(position)
            per_input[position].extend(outcome.failures)
            for candidate in outcome.candidates:
                pending.append(_Pending(len(pending), position, candidate))
        timer.add_metric("candidates", len(pending))

    # ── slugs ────────────────────────────────────────────────────────
    resolver = SlugResolver(SlugRegistry())
    accepted: list[Document] = []
    siblings: dict[int, list[int]] = {}
    collisions: list[IngestionWarning] = []

    with log_step("ingest.slugs", candidates=len(pending)) as timer:
        for item in pending:
            candidate = item.candidate
            segment_index = candidate.segment_index if item.position in split_positions else None
            try:
                slug = resolver.resolve(candidate.header, item.document_id)
            except FolioError as e:
                e.with_context(origin=candidate.origin, segment_index=segment_index)
                warning = IngestionWarning.from_error(e, candidate.origin, segment_index)
                per_input[item.position].append(warning)
                if isinstance(e, SlugCollisionError):
                    collisions.append(warning)
                continue

            accepted.append(_make_document(item, slug, settings))
            siblings.setdefault(item.position, []).append(item.document_id)
        timer.add_metric("accepted", len(accepted))
        timer.add_metric("collisions", len(collisions))

    warnings = tuple(w for bucket in per_input for w in bucket)
    for warning in warnings:
        log.warning(
            "ingest.rejected",
            origin=warning.origin,
            code=warning.code,
            reason=warning.message,
            segment_index=warning.segment_index,
        )

    if collisions and settings.slug_collision_policy == "fail":
        first = collisions[0].error
        raise FatalIngestionError(
            f"{len(collisions)} slug collision(s); first: {first.message if first else ''}",
            warnings,
            cause=first,
        ).with_context(run_id=run_id)

    if not accepted:
        raise FatalIngestionError(
            f"No valid documents among {len(raws)} input(s)",
            warnings,
        ).with_context(run_id=run_id)

    # ── relations ────────────────────────────────────────────────────
    edges: list[RelationEdge] = []
    with log_step("ingest.relations", groups=len(split_positions)) as timer:
        for ids in siblings.values():
            edges.extend(extractor.link(ids))
        timer.add_metric("edges", len(edges))

    # ── index (barrier: every input is settled) ──────────────────────
    with log_step("ingest.index", documents=len(accepted), edges=len(edges)) as timer:
        model = CorpusModel(accepted, edges)
        timer.add_metric("tags", len(model.indexes.by_tag))

    log.info(
        "ingest.complete",
        documents=len(model),
        edges=len(model.edges),
        warnings=len(warnings),
    )
    return IngestionReport(model=model, warnings=warnings, run_id=run_id)


def _parse_all(
    raws: list[RawDocument],
    extractor: RelationExtractor,
    workers: int,
) -> list[SegmentSplit | IngestionWarning]:
    """Parse and split every input concurrently; results keep input order."""
    if not raws:
        return []
    with ThreadPoolExecutor(max_workers=min(workers, len(raws)), thread_name_prefix="folio-parse") as pool:
        futures = [
            pool.submit(contextvars.copy_context().run, _parse_one, raw, extractor)
            for raw in raws
        ]
        return [future.result() for future in futures]


def _parse_one(raw: RawDocument, extractor: RelationExtractor) -> SegmentSplit | IngestionWarning:
    token = push_context(origin=raw.origin)
    try:
        match extractor.parser.parse(raw):
            case Ok(parsed):
                return extractor.split(parsed)
            case Err(error):
                return IngestionWarning.from_error(error, raw.origin)
    finally:
        token.restore()


def _make_document(item: _Pending, slug: str, settings: FolioSettings) -> Document:
    candidate = item.candidate
    body = candidate.body.strip()
    return Document(
        document_id=item.document_id,
        slug=slug,
        header=candidate.header,
        body=body,
        origin=candidate.origin,
        segment_index=candidate.segment_index,
        content_hash=compute_content_hash(body),
        permalink=settings.permalink_for(slug),
    )


__all__ = [
    "IngestionReport",
    "ingest_corpus",
    "ingest_directory",
]
