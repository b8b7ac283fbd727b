"""Filesystem loader for a corpus directory."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from folio.core.errors import SourceNotFoundError
from folio.corpus.models import RawDocument
from folio.logging import get_logger

log = get_logger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".markdown", ".txt")


class CorpusLoader:
    """
    Find and read corpus documents under a root directory.

    Files are returned in sorted path order, which becomes the ingestion
    order. Hidden files and directories (names starting with ``.``) are
    skipped.
    """

    def __init__(self, root: Path | str, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.root = Path(root)
        self.extensions = tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions
        )

    def find_files(self) -> list[Path]:
        """All matching files, sorted for a stable ingestion order.

        Raises:
            SourceNotFoundError: If the root does not exist
        """
        if not self.root.exists():
            raise SourceNotFoundError(f"Corpus root not found: {self.root}").with_context(
                origin=str(self.root)
            )
        if self.root.is_file():
            return [self.root]

        files = []
        for path in self.root.rglob("*"):
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if path.is_file() and path.suffix.lower() in self.extensions:
                files.append(path)
        return sorted(files)

    def iter_documents(self) -> Iterator[RawDocument]:
        for path in self.find_files():
            yield RawDocument.from_path(path)

    def load(self) -> list[RawDocument]:
        """Read every matching file.

        Raises:
            SourceError: If a file cannot be read or is not valid UTF-8
        """
        documents = list(self.iter_documents())
        log.debug("loader.loaded", root=str(self.root), files=len(documents))
        return documents


__all__ = [
    "DEFAULT_EXTENSIONS",
    "CorpusLoader",
]
