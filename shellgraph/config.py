"""
Process-wide configuration, read from the environment once at startup.

A ``.env`` file in the working directory is loaded into the environment
first, so settings can be kept there without exporting them. Spawned scripts
inherit those variables too.

    SHELLGRAPH_SCRATCH_DIR     where scripts and FIFOs are created
                               (default: $XDG_RUNTIME_DIR/shell-graph, else /tmp/shell-graph)
    SHELLGRAPH_TICK_INTERVAL   seconds between server ticks (default 0.1)
    SHELLGRAPH_HOST            server bind address (default 127.0.0.1)
    SHELLGRAPH_PORT            server port (default 3001)
    SHELLGRAPH_LOG_LEVEL       logging level (default INFO)
    SHELLGRAPH_PROJECT         project file the server loads on startup
"""
from __future__ import annotations

import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "SHELLGRAPH_"
SCRATCH_DIR_NAME = "shell-graph"
FALLBACK_RUNTIME_DIR = "/tmp"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def resolve_scratch_dir(environ: Mapping[str, str]) -> Path:
    override = environ.get("SHELLGRAPH_SCRATCH_DIR")
    if override:
        return Path(override)
    runtime_dir = environ.get("XDG_RUNTIME_DIR") or FALLBACK_RUNTIME_DIR
    return Path(runtime_dir) / SCRATCH_DIR_NAME


class Settings(BaseSettings):
    """Settings loaded from ``SHELLGRAPH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    scratch_dir: Path = Field(
        default=None,
        validate_default=True,
        description="Directory for run scripts and FIFOs",
    )
    tick_interval: float = Field(default=0.1, gt=0, description="Seconds between server ticks")
    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3001, description="Server port")
    log_level: str = Field(default="INFO", description="Log level")
    project: Optional[Path] = Field(default=None, description="Project file loaded on server startup")

    @field_validator("scratch_dir", mode="before")
    @classmethod
    def _default_scratch_dir(cls, value: Any) -> Any:
        if value is None or value == "":
            return resolve_scratch_dir(os.environ)
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def project_path(self) -> Optional[Path]:
        return self.project


def load_settings(environ: Optional[Mapping[str, str]] = None, env_file: Optional[str] = None) -> Settings:
    """
    Build settings from *environ* when given, otherwise from the process
    environment after loading *env_file* (default: the nearest ``.env``).
    """
    if environ is None:
        load_dotenv(env_file)
        return Settings()

    values = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.upper().startswith(ENV_PREFIX) and value != ""
    }
    values.setdefault("scratch_dir", resolve_scratch_dir(environ))
    return Settings(**values)


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
