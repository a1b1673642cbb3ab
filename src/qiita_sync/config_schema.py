"""Configuration file schema for qiita-sync.

Defines Pydantic models for the YAML config file, with dedicated
sections for the Qiita connection, mapping/sync policy and logging, plus
an adapter that flattens the file into the fallback dict consumed by
``config.load_config()``.

Usage:
    from qiita_sync.config_schema import build_config, to_yaml_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_yaml_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class QiitaConfig(BaseModel):
    """Qiita API connection settings.

    All fields are optional so environment variables and CLI args can
    supply them at runtime instead.
    """

    access_token: str | None = Field(
        default=None, description="Qiita personal access token"
    )
    api_base_url: str | None = Field(
        default=None, description="Qiita base URL"
    )
    timeout: int = Field(
        default=60,
        ge=1,
        le=600,
        description="Read timeout for API calls in seconds (1-600)",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Mapping file and decision policy settings."""

    mapping_filepath: str | None = Field(
        default=None, description="Path of the path-to-item mapping file"
    )
    strict: bool = Field(
        default=False,
        description="Fail updates of unmapped articles instead of creating them",
    )
    match_strategy: Literal["prefix", "exact"] = Field(
        default="prefix",
        description="How mapping lines are matched against article paths",
    )
    article_root: str | None = Field(
        default=None,
        description="Directory that mapping paths are relative to",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        debug: Force DEBUG level.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration file model.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    qiita: QiitaConfig = Field(default_factory=QiitaConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw merged YAML dict.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section has invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_yaml_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten a ``UnifiedConfig`` into the ``yaml_fallbacks`` dict
    understood by ``load_config()``.

    Only values that differ from "unset" are included for optional
    fields, so environment variables still take precedence over them.
    """
    fallbacks: dict = {
        "timeout": unified.qiita.timeout,
        "strict": unified.sync.strict,
        "match_strategy": unified.sync.match_strategy,
        "debug": unified.logging.debug,
    }
    optional = {
        "access_token": unified.qiita.access_token,
        "api_base_url": unified.qiita.api_base_url,
        "mapping_filepath": unified.sync.mapping_filepath,
        "article_root": unified.sync.article_root,
    }
    fallbacks.update({k: v for k, v in optional.items() if v})
    return fallbacks
