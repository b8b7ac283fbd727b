"""
Tests for DocumentParser.

Tests verify:
- Header block detection and tokenization
- Coercion of recognized fields (title, published_at, tags, ...)
- Preservation of unrecognized legacy keys
- Structural errors returned as Err, never raised
- Body segmentation at relation-separator lines
"""

from datetime import datetime, timedelta, timezone

import pytest

from folio.core.errors import (
    DuplicateHeaderKeyError,
    InvalidFieldValueError,
    MalformedHeaderError,
)
from folio.core.result import Err, Ok
from folio.core.settings import FolioSettings
from folio.corpus.models import RawDocument
from folio.corpus.parser import DocumentParser


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser()


def parse_ok(parser, text, origin="doc.md"):
    result = parser.parse(RawDocument(origin, text))
    assert isinstance(result, Ok), result
    return result.value


def parse_err(parser, text, origin="doc.md"):
    result = parser.parse(RawDocument(origin, text))
    assert isinstance(result, Err), result
    return result.error


class TestHeaderBlock:
    """Locating the header block."""

    def test_minimal_document(self, parser):
        parsed = parse_ok(parser, "---\ntitle: A\n---\nBody text.\n")
        assert parsed.origin == "doc.md"
        assert parsed.header.title == "A"
        assert parsed.body == "Body text.\n"
        assert not parsed.is_split

    def test_leading_blank_lines_and_bom(self, parser):
        parsed = parse_ok(parser, "\ufeff\n\n---\ntitle: A\n---\nx")
        assert parsed.header.title == "A"
        assert parsed.body == "x"

    def test_crlf_line_endings(self, parser):
        parsed = parse_ok(parser, "---\r\ntitle: A\r\ntags: [x]\r\n---\r\nBody\r\n")
        assert parsed.header.title == "A"
        assert parsed.header.tags == ("x",)

    def test_missing_header(self, parser):
        err = parse_err(parser, "Just some text\n")
        assert isinstance(err, MalformedHeaderError)
        assert err.context.origin == "doc.md"

    def test_empty_document(self, parser):
        assert isinstance(parse_err(parser, ""), MalformedHeaderError)

    def test_unclosed_header(self, parser):
        err = parse_err(parser, "---\ntitle: A\nBody without a closing line\n")
        assert isinstance(err, MalformedHeaderError)
        assert err.line == 1

    def test_custom_delimiter(self):
        parser = DocumentParser(header_delimiter="+++")
        parsed = parse_ok(parser, "+++\ntitle: A\n+++\nBody")
        assert parsed.header.title == "A"

    def test_from_settings(self):
        settings = FolioSettings(header_delimiter="+++", relation_separator="@@", default_utc_offset="+02:00")
        parser = DocumentParser.from_settings(settings)
        assert parser.header_delimiter == "+++"
        assert parser.relation_separator == "@@"
        assert parser.default_tz.utcoffset(None) == timedelta(hours=2)


class TestHeaderLines:
    """Tokenizing header lines."""

    def test_comments_and_blank_lines_skipped(self, parser):
        parsed = parse_ok(parser, "---\n# imported\n\ntitle: A\n---\n")
        assert parsed.header.title == "A"
        assert parsed.header.extra == {}

    def test_duplicate_key(self, parser):
        err = parse_err(parser, "---\ntitle: A\ntitle: B\n---\n")
        assert isinstance(err, DuplicateHeaderKeyError)
        assert err.key == "title"

    def test_duplicate_unrecognized_key(self, parser):
        err = parse_err(parser, "---\ntitle: A\nlegacy: 1\nlegacy: 2\n---\n")
        assert isinstance(err, DuplicateHeaderKeyError)
        assert err.key == "legacy"

    def test_line_without_colon(self, parser):
        err = parse_err(parser, "---\ntitle: A\nthis is not a field\n---\n")
        assert isinstance(err, MalformedHeaderError)
        assert err.line == 3

    def test_stray_indented_line(self, parser):
        err = parse_err(parser, "---\ntitle: A\n   continued\n---\n")
        assert isinstance(err, MalformedHeaderError)

    def test_list_item_without_key(self, parser):
        err = parse_err(parser, "---\n- orphan\ntitle: A\n---\n")
        assert isinstance(err, MalformedHeaderError)


class TestRecognizedFields:
    """Coercion of recognized fields."""

    def test_quoted_title_keeps_colon(self, parser):
        parsed = parse_ok(parser, '---\ntitle: "Moving: day"\n---\n')
        assert parsed.header.title == "Moving: day"

    def test_single_quoted_title(self, parser):
        parsed = parse_ok(parser, "---\ntitle: 'It''s here'\n---\n")
        assert parsed.header.title == "It's here"

    def test_title_is_trimmed(self, parser):
        assert parse_ok(parser, '---\ntitle: "  A  "\n---\n').header.title == "A"

    def test_missing_title(self, parser):
        err = parse_err(parser, "---\nauthor: someone\n---\n")
        assert isinstance(err, InvalidFieldValueError)
        assert err.key == "title"

    def test_empty_title(self, parser):
        err = parse_err(parser, '---\ntitle: ""\n---\n')
        assert isinstance(err, InvalidFieldValueError)
        assert err.key == "title"

    def test_title_as_list(self, parser):
        err = parse_err(parser, "---\ntitle: [a, b]\n---\n")
        assert isinstance(err, InvalidFieldValueError)
        assert err.key == "title"

    def test_optional_fields(self, parser):
        header = parse_ok(
            parser,
            "---\ntitle: A\nauthor: Sam\nslug: custom\nexcerpt_marker: <!-- more -->\n---\n",
        ).header
        assert header.author == "Sam"
        assert header.slug == "custom"
        assert header.excerpt_marker == "<!-- more -->"

    def test_blank_optional_field_is_none(self, parser):
        header = parse_ok(parser, "---\ntitle: A\nauthor:\n---\n").header
        assert header.author is None


class TestPublishedAt:
    def test_offset_kept(self, parser):
        header = parse_ok(parser, "---\ntitle: A\npublished_at: 2021-03-04T10:00:00+01:00\n---\n").header
        assert header.published_at == datetime(2021, 3, 4, 10, tzinfo=timezone(timedelta(hours=1)))
        assert header.published_at.utcoffset() == timedelta(hours=1)

    def test_zulu_suffix(self, parser):
        header = parse_ok(parser, "---\ntitle: A\npublished_at: 2020-01-01T00:00:00Z\n---\n").header
        assert header.published_at == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_naive_value_gets_default_offset(self):
        parser = DocumentParser(default_tz=timezone(timedelta(hours=-5)))
        header = parse_ok(parser, "---\ntitle: A\npublished_at: 2020-01-01 08:30\n---\n").header
        assert header.published_at.utcoffset() == timedelta(hours=-5)
        assert header.published_at.hour == 8

    def test_bare_date(self, parser):
        header = parse_ok(parser, "---\ntitle: A\npublished_at: 2020-02-29\n---\n").header
        assert header.published_at == datetime(2020, 2, 29, tzinfo=timezone.utc)

    def test_quoted_timestamp(self, parser):
        header = parse_ok(parser, '---\ntitle: A\npublished_at: "2020-02-29T10:00:00Z"\n---\n').header
        assert header.published_at.year == 2020

    def test_empty_value_means_undated(self, parser):
        assert parse_ok(parser, "---\ntitle: A\npublished_at:\n---\n").header.published_at is None

    @pytest.mark.parametrize("raw", ["yesterday", "2020-13-01", "01/02/2020"])
    def test_unparseable(self, parser, raw):
        err = parse_err(parser, f"---\ntitle: A\npublished_at: {raw}\n---\n")
        assert isinstance(err, InvalidFieldValueError)
        assert err.key == "published_at"
        assert err.raw_value == raw


class TestTags:
    def test_flow_sequence(self, parser):
        header = parse_ok(parser, '---\ntitle: A\ntags: [news, "office, misc"]\n---\n').header
        assert header.tags == ("news", "office, misc")

    def test_block_sequence(self, parser):
        header = parse_ok(parser, "---\ntitle: A\ntags:\n  - one\n  - two\nauthor: B\n---\n").header
        assert header.tags == ("one", "two")
        assert header.author == "B"

    def test_comma_separated_scalar(self, parser):
        header = parse_ok(parser, "---\ntitle: A\ntags: a, b ,c\n---\n").header
        assert header.tags == ("a", "b", "c")

    def test_duplicates_and_blanks_removed(self, parser):
        header = parse_ok(parser, "---\ntitle: A\ntags: [b, a, b, , a]\n---\n").header
        assert header.tags == ("b", "a")

    def test_tags_are_case_sensitive(self, parser):
        header = parse_ok(parser, "---\ntitle: A\ntags: [Python, python]\n---\n").header
        assert header.tags == ("Python", "python")

    def test_empty_sequence(self, parser):
        assert parse_ok(parser, "---\ntitle: A\ntags: []\n---\n").header.tags == ()

    @pytest.mark.parametrize("raw", ["[a, b", "[a, [b]]", "[a, {b: c}]", '["a, b]'])
    def test_invalid_sequences(self, parser, raw):
        err = parse_err(parser, f"---\ntitle: A\ntags: {raw}\n---\n")
        assert isinstance(err, InvalidFieldValueError)
        assert err.key == "tags"


class TestUnrecognizedFields:
    """Legacy keys survive as raw text."""

    def test_scalar_kept_verbatim(self, parser):
        header = parse_ok(parser, '---\ntitle: A\nwp_post_id: 812\nlayout: "post"\n---\n').header
        assert header.extra == {"wp_post_id": "812", "layout": '"post"'}

    def test_block_list_kept_as_lines(self, parser):
        header = parse_ok(parser, "---\ntitle: A\naliases:\n  - /old/\n  - /older/\n---\n").header
        assert header.extra == {"aliases": "/old/\n/older/"}

    def test_unrecognized_value_never_interpreted(self, parser):
        header = parse_ok(parser, "---\ntitle: A\ndate: not-a-date [\n---\n").header
        assert header.extra["date"] == "not-a-date ["

    def test_nested_mapping_kept_as_text(self, parser):
        parsed = parse_ok(parser, "---\ntitle: Moved\nwp:\n  post_id: 4411\n  status: publish\n---\nBody")
        assert parsed.header.title == "Moved"
        assert parsed.header.extra == {"wp": "post_id: 4411\nstatus: publish"}
        assert parsed.body == "Body"

    def test_nested_mapping_keeps_relative_indent(self, parser):
        header = parse_ok(parser, "---\ntitle: A\nwp:\n  meta:\n    views: 3\n---\n").header
        assert header.extra["wp"] == "meta:\n  views: 3"

    def test_block_scalar_kept_with_indicator(self, parser):
        header = parse_ok(
            parser, "---\ntitle: A\ndescription: |\n  line one\n  line two\nauthor: Sam\n---\n"
        ).header
        assert header.extra == {"description": "|\nline one\nline two"}
        assert header.author == "Sam"

    def test_key_with_spaces(self, parser):
        header = parse_ok(parser, "---\ntitle: A\nPost Type: page\n---\n").header
        assert header.extra == {"Post Type": "page"}

    def test_indented_block_under_recognized_key_rejected(self, parser):
        err = parse_err(parser, "---\ntitle: A\nauthor:\n  name: Sam\n---\n")
        assert isinstance(err, MalformedHeaderError)
        assert err.line == 4


class TestBodySplitting:
    def test_split_offsets(self, parser, separator):
        parsed = parse_ok(parser, f"---\ntitle: A\n---\none\n{separator}\ntwo\n")
        assert parsed.segments == ("one\n", "two\n")
        assert parsed.split_offsets == (4,)
        assert parsed.is_split

    def test_marker_must_fill_the_line(self, parser, separator):
        parsed = parse_ok(parser, f"---\ntitle: A\n---\nsee {separator} inline\n")
        assert not parsed.is_split

    def test_marker_with_surrounding_whitespace(self, parser, separator):
        parsed = parse_ok(parser, f"---\ntitle: A\n---\none\n   {separator}  \ntwo")
        assert parsed.segments == ("one\n", "two")

    def test_adjacent_markers_give_empty_segment(self, parser, separator):
        parsed = parse_ok(parser, f"---\ntitle: A\n---\none\n{separator}\n{separator}\n")
        assert parsed.segments == ("one\n", "", "")

    def test_custom_separator(self):
        parser = DocumentParser(relation_separator="<!-- more -->")
        parsed = parse_ok(parser, "---\ntitle: A\n---\na\n<!-- more -->\nb\n")
        assert len(parsed.segments) == 2


class TestDeterminism:
    def test_parse_is_repeatable(self, parser, make_text, separator):
        text = make_text(
            f"Body\n{separator}\n---\ntitle: B\n---\nMore\n",
            title='"A"',
            published_at="2020-01-01T00:00:00Z",
            tags="[x, y]",
            legacy="1",
        )
        raw = RawDocument("a.md", text)
        assert parser.parse(raw) == parser.parse(raw)
