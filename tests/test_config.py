"""Tests for ragsync.config module."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ragsync.config import (
    ChunkConfig,
    RagsyncConfig,
    SourceConfig,
    default_config,
    load_config,
    save_config,
)
from ragsync.exceptions import ConfigError

if TYPE_CHECKING:
    from pathlib import Path


class TestDefaultConfig:
    def test_default_has_all_sections(self):
        config = default_config()
        assert config.project is not None
        assert config.chunk is not None
        assert config.embedding is not None
        assert config.llm is not None
        assert config.store is not None
        assert config.resilience is not None
        assert config.chat is not None
        assert config.sources == []

    def test_default_chunking(self):
        assert default_config().chunk == ChunkConfig(chunk_size=5000, overlap=100)

    def test_default_providers(self):
        config = default_config()
        assert config.embedding.provider == "openai"
        assert config.embedding.model == "text-embedding-3-small"
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.temperature == 0.0

    def test_default_resilience(self):
        resilience = default_config().resilience
        assert resilience.max_attempts == 3
        assert resilience.admin_timeout == 3.0
        assert resilience.data_timeout == 7.0

    def test_default_retrieval_and_history(self):
        config = default_config()
        assert config.store.top_k == 3
        assert config.chat.history_size == 5


class TestConfigRoundtrip:
    def test_save_and_load_defaults(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        save_config(RagsyncConfig(), path)
        assert load_config(path) == RagsyncConfig()

    def test_save_and_load_with_values(self, tmp_path: Path):
        config = RagsyncConfig()
        config.project.name = "handbook"
        config.chunk = ChunkConfig(chunk_size=800, overlap=80)
        config.embedding.provider = "ollama"
        config.embedding.model = "nomic-embed-text"
        config.llm.temperature = 0.3
        config.resilience.max_attempts = 5
        config.sources = [SourceConfig(path="docs"), SourceConfig(path="/srv/wiki", prefix="wiki")]

        path = tmp_path / "config.toml"
        save_config(config, path)
        loaded = load_config(path)

        assert loaded == config
        assert loaded.sources[1].prefix == "wiki"

    def test_load_partial_toml_gets_defaults(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[project]\nname = "partial"\n', encoding="utf-8")
        config = load_config(path)
        assert config.project.name == "partial"
        assert config.chunk == ChunkConfig()
        assert config.sources == []

    def test_unknown_keys_ignored(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[chunk]\nchunk_size = 100\nfuture_option = true\n", encoding="utf-8")
        assert load_config(path).chunk.chunk_size == 100

    def test_creates_parent_directories(self, tmp_path: Path):
        path = tmp_path / "nested" / "deep" / "config.toml"
        save_config(RagsyncConfig(), path)
        assert path.exists()


class TestConfigErrors:
    def test_load_nonexistent_raises_config_error(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.toml")

    def test_load_invalid_toml_raises_config_error(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[[[invalid", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to load"):
            load_config(path)

    def test_section_must_be_table(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('chunk = "big"\n', encoding="utf-8")
        with pytest.raises(ConfigError, match="Expected a table"):
            load_config(path)

    @pytest.mark.parametrize(
        "toml",
        [
            "[chunk]\nchunk_size = 0\n",
            "[chunk]\nchunk_size = 10\noverlap = 10\n",
            "[chunk]\noverlap = -1\n",
            "[resilience]\nmax_attempts = 0\n",
            "[chat]\nhistory_size = 0\n",
            '[[sources]]\nprefix = "no-path"\n',
        ],
    )
    def test_invalid_values_rejected(self, tmp_path: Path, toml: str):
        path = tmp_path / "config.toml"
        path.write_text(toml, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)
