"""
Document parser.

Splits a RawDocument into a header block and a body, decodes the header
into a typed ``Header`` and cuts the body at relation-separator markers.

Format::

    ---
    title: "Moving day"
    published_at: 2021-03-04T10:00:00+01:00
    tags: [news, "office, misc"]
    legacy_id: 4411
    ---
    Body text...
    <!-- folio:split -->
    ---
    title: A sibling that was bundled into the same file
    ---
    Sibling body...

Header lines are ``key: value``. Values are quoted strings (single or
double quotes, decoded with PyYAML), bare scalars, flow sequences
(``[a, b]``) or block sequences (``key:`` followed by ``- item`` lines).
Only recognized keys are interpreted; every other key (``legacy_id``
above) is stored as raw text in ``Header.extra``. Unrecognized keys may
contain spaces and may be followed by an indented block, such as a nested
mapping or a ``|`` scalar, which is kept dedented under the same key.

The parser performs no I/O and never raises for document problems: it
returns ``Ok(ParsedDocument)`` or ``Err(<ParseError>)``.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo

import yaml
from pydantic import ValidationError

from folio.core.errors import (
    DuplicateHeaderKeyError,
    FolioError,
    InvalidFieldValueError,
    MalformedHeaderError,
)
from folio.core.result import Err, Ok, Result
from folio.core.settings import FolioSettings
from folio.corpus.models import RECOGNIZED_FIELDS, Header, ParsedDocument, RawDocument

DEFAULT_HEADER_DELIMITER = "---"
DEFAULT_RELATION_SEPARATOR = "<!-- folio:split -->"

_KEY_LINE_RE = re.compile(r"^(?P<key>[^\s#:-][^:]*?)\s*:(?P<value>.*)$")
_QUOTES = ("'", '"')


@dataclass(frozen=True)
class RawField:
    """One undecoded header entry."""

    key: str
    raw: str
    line: int
    items: tuple[str, ...] | None = None  # set for block sequences


class DocumentParser:
    """Parse raw documents into headers and segmented bodies.

    Guardrails:
        - A duplicate key is an error; the last value never silently wins
        - Unrecognized keys are never interpreted, only preserved
        - Parsing the same input twice yields equal output
    """

    def __init__(
        self,
        header_delimiter: str = DEFAULT_HEADER_DELIMITER,
        relation_separator: str = DEFAULT_RELATION_SEPARATOR,
        default_tz: tzinfo = timezone.utc,
    ):
        self.header_delimiter = header_delimiter
        self.relation_separator = relation_separator
        self.default_tz = default_tz

    @classmethod
    def from_settings(cls, settings: FolioSettings) -> DocumentParser:
        return cls(
            header_delimiter=settings.header_delimiter,
            relation_separator=settings.relation_separator,
            default_tz=settings.default_tzinfo,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, raw: RawDocument) -> Result[ParsedDocument]:
        """Parse a RawDocument, splitting its body at separator markers."""
        try:
            header, body = self.parse_text(raw.text)
        except FolioError as e:
            return Err(e.with_context(origin=raw.origin))

        segments, offsets = self.split_body(body)
        return Ok(
            ParsedDocument(
                origin=raw.origin,
                header=header,
                segments=segments,
                split_offsets=offsets,
            )
        )

    def parse_text(self, text: str) -> tuple[Header, str]:
        """Decode the header of ``text`` and return ``(header, body)``.

        Raises:
            MalformedHeaderError, DuplicateHeaderKeyError, InvalidFieldValueError
        """
        header_lines, body, first_line = self.split_header(text)
        fields = self.read_fields(header_lines, first_line)
        return self.decode_header(fields), body

    def starts_with_header(self, text: str) -> bool:
        """True if the first non-blank line of ``text`` is the header delimiter."""
        for line in text.splitlines():
            if line.strip():
                return line.strip() == self.header_delimiter
        return False

    # ------------------------------------------------------------------
    # Header block
    # ------------------------------------------------------------------

    def split_header(self, text: str) -> tuple[list[str], str, int]:
        """Return (header lines, body, line number of the first header line)."""
        lines = text.removeprefix("\ufeff").splitlines(keepends=True)
        start = 0
        while start < len(lines) and not lines[start].strip():
            start += 1

        if start == len(lines) or lines[start].strip() != self.header_delimiter:
            raise MalformedHeaderError(
                f"Document does not start with a {self.header_delimiter!r} header block",
                line=start + 1 if start < len(lines) else None,
            )

        for end in range(start + 1, len(lines)):
            if lines[end].strip() == self.header_delimiter:
                header_lines = [line.rstrip("\r\n") for line in lines[start + 1:end]]
                return header_lines, "".join(lines[end + 1:]), start + 2

        raise MalformedHeaderError(
            f"Header block opened on line {start + 1} is never closed",
            line=start + 1,
        )

    def read_fields(self, lines: list[str], first_line: int = 1) -> dict[str, RawField]:
        """Tokenize header lines into raw fields, in declaration order.

        Unrecognized keys may carry an indented block (a nested mapping or a
        block scalar); it is kept as dedented raw text after the inline value.
        """
        fields: dict[str, RawField] = {}
        open_field: RawField | None = None
        items: list[str] = []
        block: list[str] = []

        def close_field() -> None:
            nonlocal open_field, items, block
            if open_field is None:
                return
            key, line_no = open_field.key, open_field.line
            if items and len(items) == len(block):
                fields[key] = RawField(key, "\n".join(items), line_no, tuple(items))
            elif block:
                text = textwrap.dedent("\n".join(block))
                raw = f"{open_field.raw}\n{text}" if open_field.raw else text
                fields[key] = RawField(key, raw, line_no)
            else:
                fields[key] = open_field
            open_field, items, block = None, [], []

        for offset, line in enumerate(lines):
            line_no = first_line + offset
            stripped = line.strip()
            if not stripped:
                continue

            if open_field is not None:
                if stripped.startswith("-") and not open_field.raw and len(items) == len(block):
                    items.append(stripped[1:].strip())
                    block.append(line.rstrip())
                    continue
                if line[0].isspace() and open_field.key not in RECOGNIZED_FIELDS:
                    block.append(line.rstrip())
                    continue

            if stripped.startswith("#"):
                continue

            if line[0].isspace():
                raise MalformedHeaderError(
                    f"Unexpected indented line {line_no}: {stripped!r}", line=line_no
                )

            match = _KEY_LINE_RE.match(line)
            if match is None:
                raise MalformedHeaderError(
                    f"Expected 'key: value' on line {line_no}, got {stripped!r}",
                    line=line_no,
                )

            close_field()
            key = match["key"]
            if key in fields:
                raise DuplicateHeaderKeyError(key)
            open_field = RawField(key, match["value"].strip(), line_no)

        close_field()
        return fields

    def decode_header(self, fields: dict[str, RawField]) -> Header:
        """Coerce recognized fields and collect the rest into ``extra``."""
        if "title" not in fields:
            raise InvalidFieldValueError("title", None, "Missing required header field 'title'")

        values: dict[str, object] = {}
        extra: dict[str, str] = {}
        for key, field in fields.items():
            if key not in RECOGNIZED_FIELDS:
                extra[key] = field.raw
            elif key == "tags":
                values["tags"] = self._sequence(field)
            elif key == "published_at":
                values["published_at"] = self._timestamp(field)
            else:
                values[key] = self._scalar(field)

        try:
            return Header(**values, extra=extra)
        except ValidationError as e:
            key = str(e.errors()[0]["loc"][0])
            raw = fields[key].raw if key in fields else None
            raise InvalidFieldValueError(key, raw, cause=e) from e

    # ------------------------------------------------------------------
    # Value coercion
    # ------------------------------------------------------------------

    def _scalar(self, field: RawField) -> str:
        if field.items is not None or field.raw.startswith("["):
            raise InvalidFieldValueError(
                field.key, field.raw, f"Header field {field.key!r} expects a single value"
            )
        return self._unquote(field.key, field.raw)

    def _timestamp(self, field: RawField) -> datetime | None:
        text = self._scalar(field).strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidFieldValueError(field.key, field.raw, cause=e) from e
        if value.utcoffset() is None:
            value = value.replace(tzinfo=self.default_tz)
        return value

    def _sequence(self, field: RawField) -> tuple[str, ...]:
        if field.items is not None:
            parts = list(field.items)
        elif field.raw.startswith("["):
            if not field.raw.endswith("]"):
                raise InvalidFieldValueError(
                    field.key, field.raw, f"Unterminated sequence for {field.key!r}"
                )
            parts = self._split_flow(field.key, field.raw[1:-1])
        else:
            parts = self._split_flow(field.key, field.raw)

        values = []
        for part in parts:
            part = part.strip()
            if not part:
                continue
            if part.startswith("[") or part.startswith("{"):
                raise InvalidFieldValueError(
                    field.key, field.raw, f"Nested values are not allowed in {field.key!r}"
                )
            values.append(self._unquote(field.key, part))
        return tuple(values)

    @staticmethod
    def _split_flow(key: str, text: str) -> list[str]:
        """Split on commas that are not inside quotes."""
        parts: list[str] = []
        current: list[str] = []
        quote: str | None = None
        for char in text:
            if quote:
                current.append(char)
                if char == quote:
                    quote = None
            elif char in _QUOTES:
                quote = char
                current.append(char)
            elif char == ",":
                parts.append("".join(current))
                current = []
            else:
                current.append(char)
        if quote:
            raise InvalidFieldValueError(key, text, f"Unterminated quote in {key!r}")
        parts.append("".join(current))
        return parts

    @staticmethod
    def _unquote(key: str, text: str) -> str:
        text = text.strip()
        if not text or text[0] not in _QUOTES:
            return text
        try:
            value = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise InvalidFieldValueError(key, text, cause=e) from e
        if not isinstance(value, str):
            raise InvalidFieldValueError(key, text)
        return value

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------

    def split_body(self, body: str) -> tuple[tuple[str, ...], tuple[int, ...]]:
        """Cut ``body`` at lines consisting solely of the relation separator.

        Returns:
            (segments, offsets) where ``offsets[i]`` is the character offset
            of the i-th marker in ``body``. Markers are not part of any
            segment.
        """
        segments: list[str] = []
        offsets: list[int] = []
        current: list[str] = []
        position = 0
        for line in body.splitlines(keepends=True):
            if line.strip() == self.relation_separator:
                segments.append("".join(current))
                offsets.append(position)
                current = []
            else:
                current.append(line)
            position += len(line)
        segments.append("".join(current))
        return tuple(segments), tuple(offsets)


__all__ = [
    "DEFAULT_HEADER_DELIMITER",
    "DEFAULT_RELATION_SEPARATOR",
    "DocumentParser",
    "RawField",
]
