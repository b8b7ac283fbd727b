"""
Tests for IndexBuilder.

Tests verify:
- Chronological order (newest first, ingestion-order ties, undated last)
- Tag buckets follow chronological order
- Related index is symmetric and covers every document
- Builds are deterministic and fingerprintable
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from folio.corpus.indexes import IndexBuilder, chronological_key
from folio.corpus.models import Document, Header, RelationEdge


def doc(document_id, published_at=None, tags=()):
    header = Header(title=f"Doc {document_id}", published_at=published_at, tags=tuple(tags))
    return Document(document_id=document_id, slug=f"doc-{document_id}", header=header, body="", origin="x")


def utc(year, month=1, day=1, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def builder() -> IndexBuilder:
    return IndexBuilder()


class TestChronological:
    def test_newest_first(self, builder):
        indexes = builder.build([doc(0, utc(2020)), doc(1, utc(2022)), doc(2, utc(2021))])
        assert indexes.chronological == (1, 2, 0)

    def test_ties_broken_by_ingestion_order(self, builder):
        same = utc(2021, 5, 5)
        indexes = builder.build([doc(2, same), doc(0, same), doc(1, same)])
        assert indexes.chronological == (0, 1, 2)

    def test_undated_last_in_ingestion_order(self, builder):
        indexes = builder.build([doc(0), doc(1, utc(2020)), doc(2), doc(3, utc(2019))])
        assert indexes.chronological == (1, 3, 0, 2)

    def test_offsets_compared_as_instants(self, builder):
        # 10:00+05:00 is 05:00 UTC, earlier than 06:00 UTC
        early = datetime(2021, 1, 1, 10, tzinfo=timezone(timedelta(hours=5)))
        indexes = builder.build([doc(0, early), doc(1, utc(2021, 1, 1, 6))])
        assert indexes.chronological == (1, 0)

    def test_key_orders_dated_before_undated(self):
        assert chronological_key(doc(5, utc(1900))) < chronological_key(doc(0))


class TestByTag:
    def test_buckets_are_chronological(self, builder):
        indexes = builder.build(
            [doc(0, utc(2020), ["x", "y"]), doc(1, utc(2022), ["y"]), doc(2, None, ["y"])]
        )
        assert indexes.by_tag == {"x": (0,), "y": (1, 0, 2)}

    def test_tags_sorted_and_case_sensitive(self, builder):
        indexes = builder.build([doc(0, tags=["b", "A", "a"])])
        assert list(indexes.by_tag) == ["A", "a", "b"]

    def test_untagged_documents_absent(self, builder):
        assert builder.build([doc(0)]).by_tag == {}


class TestRelated:
    def test_symmetric(self, builder):
        indexes = builder.build([doc(0), doc(1), doc(2)], [RelationEdge(0, 2)])
        assert indexes.related == {0: (2,), 1: (), 2: (0,)}

    def test_ascending_ids(self, builder):
        edges = [RelationEdge(3, 1), RelationEdge(1, 0), RelationEdge(1, 2)]
        indexes = builder.build([doc(i) for i in range(4)], edges)
        assert indexes.related[1] == (0, 2, 3)

    def test_unknown_endpoint_rejected(self, builder):
        with pytest.raises(ValueError, match="unknown document"):
            builder.build([doc(0)], [RelationEdge(0, 9)])


class TestDeterminism:
    def test_input_order_does_not_matter(self, builder):
        docs = [doc(i, utc(2020 + i % 3), ["t"] if i % 2 else []) for i in range(12)]
        edges = [RelationEdge(0, 1), RelationEdge(4, 7)]
        expected = builder.build(docs, edges)

        shuffled = docs[:]
        random.Random(7).shuffle(shuffled)
        again = builder.build(shuffled, list(reversed(edges)))

        assert again == expected
        assert again.fingerprint() == expected.fingerprint()

    def test_to_json_is_canonical(self, builder):
        indexes = builder.build([doc(0, utc(2020), ["x"]), doc(1)], [RelationEdge(0, 1)])
        assert indexes.to_json() == (
            '{"by_tag":{"x":[0]},"chronological":[0,1],"related":{"0":[1],"1":[0]}}'
        )
