"""Builds the ingestion pipeline and query orchestrator from a project config."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ragsync.chunk import WindowChunker
from ragsync.embed.stage import EmbeddingStage
from ragsync.ledger import ChangeDetector, JsonHashLedger
from ragsync.orchestrator import QueryOrchestrator
from ragsync.pipeline import IngestionPipeline
from ragsync.registry import default_registry
from ragsync.resilience import RetryPolicy
from ragsync.sources import FileSystemSource
from ragsync.store import ChromaIndex
from ragsync.sync import IndexSynchronizer

if TYPE_CHECKING:
    from ragsync.config import RagsyncConfig
    from ragsync.project import ProjectManager
    from ragsync.registry import ProviderRegistry
    from ragsync.sources.base import BaseDocumentSource
    from ragsync.store.base import BaseIndex

__all__ = ["Components", "build_components", "build_sources"]

logger = logging.getLogger(__name__)


@dataclass
class Components:
    """Everything the CLI needs, wired from one config."""

    config: RagsyncConfig
    index: BaseIndex
    detector: ChangeDetector
    synchronizer: IndexSynchronizer
    stage: EmbeddingStage
    pipeline: IngestionPipeline
    registry: ProviderRegistry

    def orchestrator(self) -> QueryOrchestrator:
        """Create a query orchestrator; the completion provider is only built when needed."""
        completer = self.registry.create("llm", self.config.llm.provider, self.config)
        return QueryOrchestrator(
            completer=completer,
            stage=self.stage,
            synchronizer=self.synchronizer,
            policy=RetryPolicy.from_config(self.config.resilience, "completion", name="completion"),
            top_k=self.config.store.top_k,
        )


def build_components(
    config: RagsyncConfig,
    project: ProjectManager,
    registry: ProviderRegistry = default_registry,
    index: BaseIndex | None = None,
) -> Components:
    """Wire ledger, index, embedder, synchronizer and pipeline for *project*."""
    resilience = config.resilience

    detector = ChangeDetector(JsonHashLedger(project.ledger_path))
    if index is None:
        index = ChromaIndex(
            persist_path=project.index_path,
            collection_name=config.store.collection_name,
        )

    synchronizer = IndexSynchronizer(
        index=index,
        detector=detector,
        admin_policy=RetryPolicy.from_config(resilience, "admin", name="index-admin"),
        data_policy=RetryPolicy.from_config(resilience, "data", name="index-data"),
    )
    stage = EmbeddingStage(
        embedder=registry.create("embedding", config.embedding.provider, config),
        chunker=WindowChunker(),
        chunk_config=config.chunk,
        policy=RetryPolicy.from_config(resilience, "data", name="embedding"),
    )
    pipeline = IngestionPipeline(stage=stage, synchronizer=synchronizer, detector=detector)

    return Components(
        config=config,
        index=index,
        detector=detector,
        synchronizer=synchronizer,
        stage=stage,
        pipeline=pipeline,
        registry=registry,
    )


def build_sources(config: RagsyncConfig, project: ProjectManager) -> list[BaseDocumentSource]:
    """Create a filesystem source for every ``[[sources]]`` entry."""
    return [
        FileSystemSource(project.resolve_source_path(s.path), prefix=s.prefix)
        for s in config.sources
    ]
