"""
CLI helpers: settings resolution, corpus loading and output.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from folio.core.errors import FatalIngestionError, FolioError
from folio.core.settings import FolioSettings
from folio.corpus.ingest import IngestionReport, ingest_directory
from folio.corpus.models import Document, IngestionWarning
from folio.logging import configure_logging

console = Console()
err_console = Console(stderr=True)


class CollisionPolicy(str, Enum):
    fail = "fail"
    warn = "warn"


# ── Settings / loading ───────────────────────────────────────────────────


def resolve_settings(
    config: Path | None = None,
    on_collision: CollisionPolicy | None = None,
) -> FolioSettings:
    """Settings from a YAML file (or the environment) with CLI overrides."""
    try:
        settings = FolioSettings.from_yaml(config) if config else FolioSettings.from_env()
    except FolioError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.code}): {escape(e.message)}")
        raise typer.Exit(code=1) from e
    if on_collision is not None:
        settings = settings.model_copy(update={"slug_collision_policy": on_collision.value})
    return settings


def load_corpus(
    path: Path,
    config: Path | None = None,
    on_collision: CollisionPolicy | None = None,
) -> IngestionReport:
    """Ingest ``path``; fatal errors are reported and exit with code 1."""
    settings = resolve_settings(config, on_collision)
    configure_logging(settings)
    try:
        return ingest_directory(path, settings)
    except FatalIngestionError as e:
        err_console.print(f"[bold red]Ingestion failed[/bold red]: {escape(e.message)}")
        print_warnings(e.warnings, stderr=True)
        raise typer.Exit(code=1) from e
    except FolioError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.code}): {escape(e.message)}")
        raise typer.Exit(code=1) from e


def require_document(report: IngestionReport, slug: str) -> Document:
    document = report.model.document_by_slug(slug)
    if document is None:
        err_console.print(f"[bold red]Error[/bold red]: no document with slug {slug!r}")
        raise typer.Exit(code=1)
    return document


# ── Output helpers ───────────────────────────────────────────────────────


def echo_json(payload: Any) -> None:
    """Plain JSON on stdout (no markup, safe to pipe)."""
    typer.echo(json.dumps(payload, indent=2, default=str))


def print_documents(documents: list[Document], *, title: str = "") -> None:
    """Render documents as a Rich table."""
    if not documents:
        console.print("[dim]No documents.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("id", justify="right")
    table.add_column("slug", overflow="fold")
    table.add_column("published", overflow="fold")
    table.add_column("title", overflow="fold")
    table.add_column("tags", overflow="fold")
    for doc in documents:
        table.add_row(
            str(doc.document_id),
            doc.slug,
            doc.published_at.isoformat() if doc.published_at else "-",
            escape(doc.title),
            escape(", ".join(doc.tags)),
        )
    console.print(table)


def print_document(document: Document) -> None:
    """Render a single document as key-value pairs."""
    console.print(f"[bold]{escape(document.title)}[/bold]")
    for key, value in document.to_dict().items():
        if key in ("title", "extra"):
            continue
        console.print(f"  [cyan]{key}[/cyan]: {escape(str(value))}")
    for key, value in sorted(document.extra.items()):
        console.print(f"  [magenta]{escape(key)}[/magenta]: {escape(value)}")


def print_warnings(warnings: tuple[IngestionWarning, ...], *, stderr: bool = False) -> None:
    """Render warnings as a Rich table."""
    target = err_console if stderr else console
    if not warnings:
        return
    table = Table(title="Warnings", show_lines=False, pad_edge=False)
    table.add_column("origin", overflow="fold")
    table.add_column("segment", justify="right")
    table.add_column("code")
    table.add_column("reason", overflow="fold")
    for warning in warnings:
        table.add_row(
            warning.origin,
            "-" if warning.segment_index is None else str(warning.segment_index),
            warning.code,
            escape(warning.message),
        )
    target.print(table)
