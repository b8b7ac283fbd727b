"""
Centralized settings for folio.

One validated, cached settings object holds every tunable of an ingestion
run: the reserved tokens of the document format, the slug collision policy,
worker parallelism and logging. Values come from ``FOLIO_*`` environment
variables, a ``.env`` file, or an explicit YAML file.

Examples:
    >>> settings = FolioSettings(slug_collision_policy="warn")
    >>> settings.default_tzinfo
    datetime.timezone.utc

Tags:
    folio, configuration, settings, pydantic, validation
"""

from __future__ import annotations

import os
import re
from datetime import timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from folio.core.errors import ConfigError

SlugCollisionPolicy = Literal["fail", "warn"]

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")


class FolioSettings(BaseSettings):
    """Folio configuration.

    All fields can be set via ``FOLIO_*`` environment variables (e.g.
    ``FOLIO_SLUG_COLLISION_POLICY=warn``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FOLIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Document format ──────────────────────────────────────────
    header_delimiter: str = Field(default="---", min_length=1)
    relation_separator: str = Field(default="<!-- folio:split -->", min_length=1)
    default_utc_offset: str = Field(
        default="+00:00",
        description="Offset applied to published_at values written without one",
    )

    # ── Ingestion policy ─────────────────────────────────────────
    slug_collision_policy: SlugCollisionPolicy = Field(default="fail")
    max_workers: int | None = Field(default=None, ge=1)

    # ── Loader ───────────────────────────────────────────────────
    extensions: list[str] = Field(default=[".md", ".markdown", ".txt"])

    # ── Output ───────────────────────────────────────────────────
    permalink_template: str = Field(default="/{slug}/")

    # ── Logging ──────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")

    @field_validator("default_utc_offset")
    @classmethod
    def _check_offset(cls, v: str) -> str:
        if v.upper() == "Z":
            return "+00:00"
        match = _OFFSET_RE.match(v)
        if not match or int(match["hours"]) > 23 or int(match["minutes"]) > 59:
            raise ValueError(f"Invalid UTC offset {v!r}; expected +HH:MM")
        return f"{match['sign']}{match['hours']}:{match['minutes']}"

    @field_validator("permalink_template")
    @classmethod
    def _check_permalink(cls, v: str) -> str:
        if "{slug}" not in v:
            raise ValueError("permalink_template must contain '{slug}'")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    # ── Derived properties ───────────────────────────────────────

    @property
    def default_tzinfo(self) -> timezone:
        """The default offset as a ``datetime.timezone``."""
        sign = -1 if self.default_utc_offset.startswith("-") else 1
        hours, minutes = self.default_utc_offset[1:].split(":")
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        if not offset:
            return timezone.utc
        return timezone(sign * offset)

    @property
    def worker_count(self) -> int:
        """Number of parser threads to use for a run."""
        return self.max_workers or min(32, (os.cpu_count() or 1) + 4)

    def permalink_for(self, slug: str) -> str:
        return self.permalink_template.format(slug=slug)

    @classmethod
    def from_yaml(cls, yaml_path: Path | str) -> FolioSettings:
        """Load settings from a YAML file.

        Keys are field names; anything not set in the file falls back to the
        environment and then to defaults.
        """
        path = Path(yaml_path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}", cause=e) from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in settings file {path}", cause=e) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {path}: {_first_error(e)}", cause=e) from e

    @classmethod
    def from_env(cls) -> FolioSettings:
        """Load settings from ``FOLIO_*`` variables and ``.env``."""
        try:
            return cls()
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in environment: {_first_error(e)}", cause=e) from e


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "settings"
    return f"{location}: {first['msg']}"


@lru_cache(maxsize=1)
def get_settings() -> FolioSettings:
    """Return the process-wide settings (cached)."""
    return FolioSettings()


__all__ = [
    "FolioSettings",
    "SlugCollisionPolicy",
    "get_settings",
]
