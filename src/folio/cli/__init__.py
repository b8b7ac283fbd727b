"""Command-line interface for folio."""

from folio.cli.app import app

__all__ = ["app"]
