"""
Shared pytest fixtures and configuration for folio tests.

This module provides:
- Logging configured once per session (stderr, WARNING)
- Log-context cleanup for test isolation
- Builders for header text and RawDocuments
- A temporary corpus directory

Usage:
    def test_something(make_raw):
        raw = make_raw("a.md", title="A", tags="[x, y]")
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Ensure folio package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from folio.core.settings import FolioSettings  # noqa: E402
from folio.corpus.models import RawDocument  # noqa: E402
from folio.logging import clear_context, configure_logging  # noqa: E402

SEPARATOR = "<!-- folio:split -->"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path) or "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _session_logging() -> None:
    """Configure logging once so CLI invocations do not rebind handlers."""
    configure_logging(level="WARNING", format="console", force=True)


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()


# =============================================================================
# Document builders
# =============================================================================


def header_text(body: str = "Body text.\n", **fields: str) -> str:
    """
    Build a headered document.

    Field values are written verbatim, so callers control quoting:

        header_text(title='"A"', tags="[x, y]")
    """
    lines = ["---"]
    lines.extend(f"{key}: {value}" for key, value in fields.items())
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def make_text() -> Callable[..., str]:
    return header_text


@pytest.fixture
def make_raw() -> Callable[..., RawDocument]:
    def _make(origin: str, body: str = "Body text.\n", **fields: str) -> RawDocument:
        return RawDocument(origin=origin, text=header_text(body, **fields))

    return _make


@pytest.fixture
def separator() -> str:
    return SEPARATOR


# =============================================================================
# Settings / filesystem
# =============================================================================


@pytest.fixture
def settings() -> FolioSettings:
    """Default settings with a small, fixed worker pool."""
    return FolioSettings(max_workers=4)


@pytest.fixture
def warn_settings() -> FolioSettings:
    """Settings that downgrade slug collisions to warnings."""
    return FolioSettings(max_workers=4, slug_collision_policy="warn")


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """
    A small corpus on disk:

        posts/2020-a.md      A (2020, tags x y)
        posts/2021-b.md      B (2021, tag y)
        bundle.md            C + D joined by a separator
        notes/undated.txt    E (no date, legacy fields)
        .drafts/hidden.md    ignored (hidden directory)
        README.rst           ignored (extension)
    """
    root = tmp_path / "content"
    (root / "posts").mkdir(parents=True)
    (root / "notes").mkdir()
    (root / ".drafts").mkdir()

    (root / "posts" / "2020-a.md").write_text(
        header_text(title="A", published_at="2020-01-01T00:00:00Z", tags="[x, y]"),
        encoding="utf-8",
    )
    (root / "posts" / "2021-b.md").write_text(
        header_text(title="B", published_at="2021-01-01T00:00:00Z", tags="[y]"),
        encoding="utf-8",
    )
    (root / "bundle.md").write_text(
        header_text("First half.\n", title="C", published_at="2019-05-05T12:00:00+02:00")
        + f"{SEPARATOR}\n"
        + header_text("Second half.\n", title="D", published_at="2019-05-06T12:00:00+02:00"),
        encoding="utf-8",
    )
    (root / "notes" / "undated.txt").write_text(
        header_text(title="E", wp_post_id="812", legacy_category="Uncategorized"),
        encoding="utf-8",
    )
    (root / ".drafts" / "hidden.md").write_text(header_text(title="Hidden"), encoding="utf-8")
    (root / "README.rst").write_text("not a document", encoding="utf-8")
    return root
