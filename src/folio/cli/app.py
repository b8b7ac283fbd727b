"""
Root Typer application for the folio CLI.

    folio ingest content/                  summary and warnings
    folio show content/ 2021-06-01-hello   one document
    folio tag content/ python              documents carrying a tag
    folio related content/ 2021-06-01-a    split siblings of a document
    folio export content/ -o site.json     publication graph as JSON
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from folio.cli.utils import (
    CollisionPolicy,
    console,
    echo_json,
    load_corpus,
    print_document,
    print_documents,
    print_warnings,
    require_document,
)

app = typer.Typer(
    name="folio",
    help="folio: ingest a document corpus into a consistent, queryable model.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _path_arg() -> typer.models.ArgumentInfo:
    return typer.Argument(..., exists=True, help="Corpus directory (or single file).")


def _config_opt() -> typer.models.OptionInfo:
    return typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML settings file.")


def _collision_opt() -> typer.models.OptionInfo:
    return typer.Option(None, "--on-collision", help="Slug collision policy (overrides settings).")


def _json_opt() -> typer.models.OptionInfo:
    return typer.Option(False, "--json", help="Emit JSON.")


def _version_callback(value: bool) -> None:
    if value:
        from folio import __version__

        typer.echo(f"folio {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """folio CLI: ingest, query and export a corpus."""


@app.command("ingest")
def ingest(
    path: Path = _path_arg(),
    config: Path | None = _config_opt(),
    on_collision: CollisionPolicy | None = _collision_opt(),
    json_out: bool = _json_opt(),
) -> None:
    """Ingest a corpus and report documents, tags and warnings."""
    report = load_corpus(path, config, on_collision)
    if json_out:
        echo_json(report.to_dict())
        return

    model = report.model
    console.print(
        f"[bold green]Ingested[/bold green] {len(model)} document(s), "
        f"{len(model.edges)} relation(s), {len(model.indexes.by_tag)} tag(s)"
    )
    print_warnings(report.warnings)


@app.command("show")
def show(
    path: Path = _path_arg(),
    slug: str = typer.Argument(..., help="Document slug."),
    config: Path | None = _config_opt(),
    on_collision: CollisionPolicy | None = _collision_opt(),
    json_out: bool = _json_opt(),
) -> None:
    """Show one document by slug."""
    report = load_corpus(path, config, on_collision)
    document = require_document(report, slug)
    if json_out:
        echo_json(document.to_dict())
    else:
        print_document(document)


@app.command("tag")
def tag(
    path: Path = _path_arg(),
    name: str = typer.Argument(..., help="Tag (case-sensitive)."),
    config: Path | None = _config_opt(),
    on_collision: CollisionPolicy | None = _collision_opt(),
    json_out: bool = _json_opt(),
) -> None:
    """List documents carrying a tag, newest first."""
    report = load_corpus(path, config, on_collision)
    documents = report.model.documents_by_tag(name)
    if json_out:
        echo_json([d.slug for d in documents])
    else:
        print_documents(documents, title=f"Tag: {name}")


@app.command("related")
def related(
    path: Path = _path_arg(),
    slug: str = typer.Argument(..., help="Document slug."),
    config: Path | None = _config_opt(),
    on_collision: CollisionPolicy | None = _collision_opt(),
    json_out: bool = _json_opt(),
) -> None:
    """List documents related to a document."""
    report = load_corpus(path, config, on_collision)
    document = require_document(report, slug)
    documents = report.model.related_documents(document.document_id)
    if json_out:
        echo_json([d.slug for d in documents])
    else:
        print_documents(documents, title=f"Related to {slug}")


@app.command("export")
def export(
    path: Path = _path_arg(),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write manifest here instead of stdout."),
    config: Path | None = _config_opt(),
    on_collision: CollisionPolicy | None = _collision_opt(),
) -> None:
    """Export the publication graph (documents, tags, relations) as JSON."""
    report = load_corpus(path, config, on_collision)
    manifest = report.model.to_manifest()
    if output is None:
        echo_json(manifest)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    console.print(f"Wrote {len(report.model)} document(s) to {output}")
    print_warnings(report.warnings)
