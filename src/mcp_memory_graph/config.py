"""
Configuration for the memory graph server.

Settings are read from environment variables (and an optional ``.env`` file)
through pydantic-settings. Each concern has its own prefix:

    MCP_FALKORDB_*   connection to the backing FalkorDB instance
    MCP_MEMORY_*     label/relationship policy and the default project

List values accept either JSON (``["Project","Task"]``) or a comma separated
string (``Project,Task``).
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, SecretStr
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models.memory_config import MemoryConfig
from .models.validators import normalize_labels


def _csv_or_json(v: Any) -> list[str]:
    if isinstance(v, str) and v.strip().startswith("["):
        v = json.loads(v)
    return normalize_labels(v)


CsvList = Annotated[list[str], NoDecode, BeforeValidator(_csv_or_json)]


class FalkorDBSettings(BaseSettings):
    """FalkorDB connection settings (``MCP_FALKORDB_`` prefix)."""

    model_config = SettingsConfigDict(env_prefix="MCP_FALKORDB_", env_file=".env", extra="ignore")

    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    username: str | None = None
    password: SecretStr | None = None
    graph_name: str = Field(default="memory_graph", min_length=1)
    max_connections: int = Field(default=16, ge=1, le=512)


class MemorySettings(BaseSettings):
    """Label/relationship policy (``MCP_MEMORY_`` prefix)."""

    model_config = SettingsConfigDict(env_prefix="MCP_MEMORY_", env_file=".env", extra="ignore")

    default_label: str | None = "Memory"
    allow_default_labels: bool = False
    allowed_labels: CsvList = Field(default_factory=list)
    allow_default_relationships: bool = True
    allowed_relationships: CsvList = Field(default_factory=list)
    default_project: str | None = None

    def to_memory_config(self) -> MemoryConfig:
        return MemoryConfig(
            default_label=self.default_label or None,
            allow_default_labels=self.allow_default_labels,
            allowed_labels=self.allowed_labels,
            allow_default_relationships=self.allow_default_relationships,
            allowed_relationships=self.allowed_relationships,
            default_project=self.default_project or None,
        )


class Settings(BaseSettings):
    """Aggregate of all settings groups."""

    model_config = SettingsConfigDict(extra="ignore")

    falkordb: FalkorDBSettings = Field(default_factory=FalkorDBSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)


settings = Settings()
