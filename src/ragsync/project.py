"""Project manager for ragsync.

Handles project initialization, status reporting, and project root discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ragsync.config import RagsyncConfig, SourceConfig, default_config, load_config, save_config
from ragsync.exceptions import ProjectError
from ragsync.ledger import JsonHashLedger

__all__ = [
    "CONFIG_FILE",
    "INDEX_DIR",
    "LEDGER_FILE",
    "RAG_DIR",
    "ProjectManager",
    "ProjectStatus",
]

logger = logging.getLogger(__name__)

RAG_DIR = ".ragsync"
CONFIG_FILE = "config.toml"
LEDGER_FILE = "ledger.json"
INDEX_DIR = "index"


@dataclass
class ProjectStatus:
    """Summary of the current project state."""

    initialized: bool
    root: Path
    document_count: int
    config: RagsyncConfig | None


class ProjectManager:
    """Manages the ragsync project directory (``.ragsync/``)."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or Path.cwd()

    @property
    def rag_dir(self) -> Path:
        return self.root / RAG_DIR

    @property
    def config_path(self) -> Path:
        return self.rag_dir / CONFIG_FILE

    @property
    def ledger_path(self) -> Path:
        return self.rag_dir / LEDGER_FILE

    @property
    def index_path(self) -> Path:
        return self.rag_dir / INDEX_DIR

    @property
    def is_initialized(self) -> bool:
        return self.rag_dir.is_dir() and self.config_path.exists()

    def init(self, name: str = "", sources: list[str] | None = None) -> Path:
        """Initialize a new ragsync project.

        Creates ``.ragsync/`` with a default config. Safe to call on an
        already-initialized project: the config is loaded, new source paths
        are appended, and the ledger is preserved.

        Returns the ``.ragsync/`` directory path.

        Raises:
            ProjectError: If the directory structure cannot be created.
        """
        try:
            self.index_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProjectError(f"Cannot create {self.rag_dir}: {e}") from e

        if self.config_path.exists():
            config = load_config(self.config_path)
            logger.info("Existing config found at %s", self.config_path)
        else:
            config = default_config()

        if name:
            config.project.name = name
        elif not config.project.name:
            config.project.name = self.root.name

        known = {s.path for s in config.sources}
        for path in sources or []:
            if path not in known:
                config.sources.append(SourceConfig(path=path))
                known.add(path)

        save_config(config, self.config_path)

        logger.info("Initialized ragsync project at %s", self.rag_dir)
        return self.rag_dir

    def load_config(self) -> RagsyncConfig:
        """Load this project's config.

        Raises:
            ProjectError: If the project is not initialized.
        """
        if not self.is_initialized:
            raise ProjectError(f"No ragsync project at {self.root}")
        return load_config(self.config_path)

    def status(self) -> ProjectStatus:
        """Get current project status."""
        if not self.is_initialized:
            return ProjectStatus(initialized=False, root=self.root, document_count=0, config=None)

        config = load_config(self.config_path)
        ledger = JsonHashLedger(self.ledger_path)

        return ProjectStatus(
            initialized=True,
            root=self.root,
            document_count=len(ledger),
            config=config,
        )

    def resolve_source_path(self, path: str) -> Path:
        """Resolve a configured source path relative to the project root."""
        candidate = Path(path).expanduser()
        return candidate if candidate.is_absolute() else (self.root / candidate).resolve()

    @staticmethod
    def find_project_root(start: Path | None = None) -> Path | None:
        """Walk up from start directory to find a ``.ragsync/`` directory.

        Returns the project root (parent of ``.ragsync/``) or None if not found.
        """
        current = (start or Path.cwd()).resolve()
        while True:
            if (current / RAG_DIR).is_dir():
                return current
            parent = current.parent
            if parent == current:
                return None
            current = parent
