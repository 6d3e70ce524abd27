"""Configuration schema for mirror_sync.

Defines Pydantic models for the YAML config document.  The top level keeps
the classic flat shape::

    url: https://github.example.com
    token: ${GITHUB_TOKEN}
    orgs:
      - name: acme
        output: ./mirrors/acme

and adds optional tuning keys with defaults.

Usage:
    from mirror_sync.config_schema import build_config

    raw = load_config_file()
    schema = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class OrgConfig(BaseModel):
    """One organization to mirror and the directory its mirrors live in."""

    name: str = Field(min_length=1, description="Organization name")
    output: str = Field(
        min_length=1, description="Local directory holding the mirrors"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log record format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class MirrorSyncConfig(BaseModel):
    """Top-level configuration document.

    ``url`` and ``token`` are optional here because env vars and CLI args
    can supply them; ``mirror_sync.config.load_config`` enforces that they
    are present after all sources are merged.
    """

    url: str | None = Field(default=None, description="Server base URL")
    token: str | None = Field(
        default=None, description="Personal access token"
    )
    orgs: list[OrgConfig] = Field(default_factory=list)
    listing: Literal["orgs", "search"] = Field(
        default="orgs",
        description="Directory strategy: org repos endpoint or search API",
    )
    api_prefix: str = Field(
        default="/api/v3",
        description="Path between the server URL and the REST endpoints",
    )
    max_parallel: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum concurrent clone/pull operations (1-100)",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Listing page size (1-100)",
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    hooks: bool = Field(
        default=True, description="Install read-only guard hooks"
    )
    stall_timeout: int = Field(
        default=60,
        ge=1,
        description="Seconds below 1 KB/s before a git transfer is aborted",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Read timeout in seconds for listing requests",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> MirrorSyncConfig:
    """Construct a ``MirrorSyncConfig`` from the raw dict returned by
    ``load_config_file()``.

    Args:
        raw_data: Parsed configuration mapping.

    Returns:
        Validated ``MirrorSyncConfig`` instance.

    Raises:
        ConfigError: If any field fails validation.
    """
    if not raw_data:
        return MirrorSyncConfig()

    try:
        return MirrorSyncConfig(**raw_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
