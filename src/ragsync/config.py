"""Configuration system for ragsync.

Manages project configuration via .ragsync/config.toml with typed dataclasses
and sensible defaults for all values.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ragsync.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "ChatConfig",
    "ChunkConfig",
    "EmbeddingConfig",
    "LlmConfig",
    "ProjectConfig",
    "RagsyncConfig",
    "ResilienceConfig",
    "SourceConfig",
    "StoreConfig",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)


@dataclass
class ProjectConfig:
    """[project] section."""

    name: str = ""


@dataclass(frozen=True)
class ChunkConfig:
    """[chunk] section. Sizes are in characters."""

    chunk_size: int = 5000
    overlap: int = 100


@dataclass
class EmbeddingConfig:
    """[embedding] section."""

    provider: str = "openai"
    model: str = "text-embedding-3-small"
    base_url: str = ""
    api_key_env: str = "OPENAI_API_KEY"


@dataclass
class LlmConfig:
    """[llm] section."""

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    base_url: str = ""
    api_key_env: str = "OPENAI_API_KEY"
    temperature: float = 0.0


@dataclass
class StoreConfig:
    """[store] section."""

    collection_name: str = "ragsync"
    top_k: int = 3


@dataclass
class ResilienceConfig:
    """[resilience] section. Timeouts and delays are in seconds."""

    max_attempts: int = 3
    admin_timeout: float = 3.0
    data_timeout: float = 7.0
    completion_timeout: float = 60.0
    base_delay: float = 0.5
    max_delay: float = 8.0


@dataclass
class ChatConfig:
    """[chat] section."""

    history_size: int = 5


@dataclass
class SourceConfig:
    """One [[sources]] entry: a directory to ingest."""

    path: str = ""
    prefix: str = ""


@dataclass
class RagsyncConfig:
    """Root configuration combining all sections."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    chunk: ChunkConfig = field(default_factory=ChunkConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm: LlmConfig = field(default_factory=LlmConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    sources: list[SourceConfig] = field(default_factory=list)


_SECTIONS: dict[str, type] = {
    "project": ProjectConfig,
    "chunk": ChunkConfig,
    "embedding": EmbeddingConfig,
    "llm": LlmConfig,
    "store": StoreConfig,
    "resilience": ResilienceConfig,
    "chat": ChatConfig,
}


def default_config() -> RagsyncConfig:
    """Return a config with all default values."""
    return RagsyncConfig()


def _config_to_dict(config: RagsyncConfig) -> dict[str, object]:
    """Convert RagsyncConfig to a nested dict suitable for TOML serialization."""
    result: dict[str, object] = {}
    for section_name in _SECTIONS:
        result[section_name] = dict(vars(getattr(config, section_name)))
    if config.sources:
        result["sources"] = [dict(vars(s)) for s in config.sources]
    return result


def save_config(config: RagsyncConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: dict[str, object]) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a table for {cls.__name__}, got {type(data).__name__}")
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    return cls(**filtered)


def _validate(config: RagsyncConfig) -> None:
    chunk = config.chunk
    if chunk.chunk_size < 1:
        raise ConfigError(f"chunk.chunk_size must be >= 1, got {chunk.chunk_size}")
    if not 0 <= chunk.overlap < chunk.chunk_size:
        raise ConfigError(
            f"chunk.overlap must satisfy 0 <= overlap < chunk_size, "
            f"got overlap={chunk.overlap}, chunk_size={chunk.chunk_size}"
        )
    if config.resilience.max_attempts < 1:
        raise ConfigError(
            f"resilience.max_attempts must be >= 1, got {config.resilience.max_attempts}"
        )
    if config.chat.history_size < 1:
        raise ConfigError(f"chat.history_size must be >= 1, got {config.chat.history_size}")
    for source in config.sources:
        if not source.path:
            raise ConfigError("Every [[sources]] entry needs a path")


def load_config(path: Path) -> RagsyncConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = RagsyncConfig()
    for name, cls in _SECTIONS.items():
        if name in data:
            setattr(config, name, _load_section(cls, data[name]))

    config.sources = [_load_section(SourceConfig, s) for s in data.get("sources", [])]

    _validate(config)
    logger.info("Loaded config from %s", path)
    return config
