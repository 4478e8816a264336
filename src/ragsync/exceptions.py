"""Custom exception hierarchy for ragsync."""

__all__ = [
    "AuthorizationError",
    "ChunkError",
    "CompletionError",
    "ConfigError",
    "DocumentRejected",
    "EmbeddingError",
    "ExtractionError",
    "IndexNotReadyError",
    "LedgerError",
    "PipelineError",
    "PluginError",
    "ProjectError",
    "RagsyncError",
    "ServiceTimeoutError",
    "StoreError",
]


class RagsyncError(Exception):
    """Base exception for all ragsync errors."""


class ConfigError(RagsyncError):
    """Raised when configuration loading or validation fails."""


class LedgerError(RagsyncError):
    """Raised when hash ledger operations fail."""


class ProjectError(RagsyncError):
    """Raised when project initialization or discovery fails."""


class ExtractionError(RagsyncError):
    """Raised when text cannot be extracted from a document."""


class DocumentRejected(RagsyncError):
    """Raised when a discovered document is missing required fields."""


class ChunkError(RagsyncError):
    """Raised when chunking operations fail."""


class EmbeddingError(RagsyncError):
    """Raised when embedding generation fails."""


class CompletionError(RagsyncError):
    """Raised when a chat completion request fails."""


class StoreError(RagsyncError):
    """Raised when vector index operations fail."""


class PipelineError(RagsyncError):
    """Raised when pipeline orchestration fails."""


class PluginError(RagsyncError):
    """Raised when provider lookup or registration fails."""


class ServiceTimeoutError(RagsyncError):
    """Raised when a single call to an external service exceeds its timeout."""


class AuthorizationError(RagsyncError):
    """Raised when an external service rejects our credentials.

    Never retried. Always surfaced to the top-level caller.
    """


class IndexNotReadyError(RagsyncError):
    """Control signal: the vector index has not been created yet.

    Not a fault. Retry policies let it through on the first attempt.
    """
