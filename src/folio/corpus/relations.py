"""
Relation extraction.

A source file may bundle several originally separate documents, joined by
relation-separator markers. The extractor recovers one candidate per
segment and links every pair of siblings from the same file with a
``split-sibling`` edge.

    RawDocument ──parse──► ParsedDocument(segments=[s0, s1, s2])
                                   │
                              split()           s0 uses the leading header;
                                   │            s1, s2 must carry their own
                                   ▼
                 SegmentSplit(candidates, failures)
                                   │
                     (ids assigned, slugs resolved by the orchestrator)
                                   │
                              link(ids) ──► (0,1) (0,2) (1,2)

A segment without its own header is rejected as ``OrphanSegment``; it does
not inherit metadata from its siblings, and its failure does not affect
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations

from folio.core.errors import FolioError, OrphanSegmentError
from folio.corpus.models import Header, IngestionWarning, ParsedDocument, RelationEdge, RelationKind
from folio.corpus.parser import DocumentParser


@dataclass(frozen=True)
class SegmentCandidate:
    """A segment that parsed cleanly and may become a Document."""

    origin: str
    segment_index: int
    header: Header
    body: str


@dataclass(frozen=True)
class SegmentSplit:
    """Outcome of splitting one ParsedDocument."""

    origin: str
    candidates: tuple[SegmentCandidate, ...]
    failures: tuple[IngestionWarning, ...] = ()


class RelationExtractor:
    """Turn segmented bodies into document candidates and sibling edges."""

    def __init__(self, parser: DocumentParser | None = None):
        self.parser = parser or DocumentParser()

    def split(self, parsed: ParsedDocument) -> SegmentSplit:
        """Parse every trailing segment; failures are collected, not raised."""
        candidates = [SegmentCandidate(parsed.origin, 0, parsed.header, parsed.body)]
        failures: list[IngestionWarning] = []

        for index, segment in enumerate(parsed.segments[1:], start=1):
            try:
                candidates.append(self._parse_segment(parsed.origin, index, segment))
            except FolioError as e:
                e.with_context(origin=parsed.origin, segment_index=index)
                failures.append(IngestionWarning.from_error(e, parsed.origin, index))

        return SegmentSplit(parsed.origin, tuple(candidates), tuple(failures))

    def _parse_segment(self, origin: str, index: int, text: str) -> SegmentCandidate:
        if not self.parser.starts_with_header(text):
            raise OrphanSegmentError(
                f"Segment {index} has no header block of its own",
            )
        header, body = self.parser.parse_text(text)
        return SegmentCandidate(origin, index, header, body)

    @staticmethod
    def link(
        document_ids: list[int] | tuple[int, ...],
        kind: RelationKind = RelationKind.SPLIT_SIBLING,
    ) -> tuple[RelationEdge, ...]:
        """
        One edge per unordered pair of siblings, stored low id -> high id.

        Examples:
            >>> [(e.source_id, e.target_id) for e in RelationExtractor.link([4, 2, 7])]
            [(2, 4), (2, 7), (4, 7)]
        """
        ids = sorted(set(document_ids))
        return tuple(RelationEdge(a, b, kind) for a, b in combinations(ids, 2))


__all__ = [
    "SegmentCandidate",
    "SegmentSplit",
    "RelationExtractor",
]
