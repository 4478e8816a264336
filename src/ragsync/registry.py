"""Provider registry for ragsync.

Maps config strings to factory functions that create provider instances.
Example: ``registry.create("embedding", "ollama", config)`` → ``OllamaEmbedder``.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from ragsync.exceptions import PluginError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ragsync.config import RagsyncConfig

__all__ = ["ProviderRegistry", "default_registry"]

logger = logging.getLogger(__name__)

# Modules whose import registers the built-in providers.
_BUILTIN_MODULES = ("ragsync.embed", "ragsync.llm")


class ProviderRegistry:
    """Config-driven factory that maps (category, name) → provider instance.

    Categories are ``"embedding"`` and ``"llm"``.

    When ``auto_discover`` is ``True``, the first lookup lazily imports the
    built-in provider packages so they register themselves.

    Usage::

        registry = ProviderRegistry()
        registry.register("embedding", "ollama", lambda cfg: OllamaEmbedder(cfg))
        embedder = registry.create("embedding", "ollama", config)
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._factories: dict[str, dict[str, Callable[..., Any]]] = {}
        self._auto_discover = auto_discover
        self._discovered = False

    def register(
        self,
        category: str,
        name: str,
        factory: Callable[..., Any],
    ) -> None:
        """Register a provider factory.

        Args:
            category: Provider kind, ``"embedding"`` or ``"llm"``.
            name: Value of the ``provider`` key in that config section (e.g. "ollama").
            factory: Callable that accepts ``RagsyncConfig`` and returns a provider.

        Raises:
            PluginError: If a provider with the same category+name already exists.
        """
        providers = self._factories.setdefault(category, {})
        if name in providers:
            raise PluginError(f"Provider '{name}' already registered in category '{category}'")

        providers[name] = factory
        logger.debug("Registered provider %s/%s", category, name)

    def _ensure_discovered(self) -> None:
        """Import the built-in provider packages once, on first lookup."""
        if self._discovered or not self._auto_discover:
            return
        self._discovered = True
        for module in _BUILTIN_MODULES:
            importlib.import_module(module)

    def create(self, category: str, name: str, config: RagsyncConfig) -> Any:
        """Create a provider instance from the registry.

        Args:
            category: Provider kind.
            name: Provider name.
            config: Project configuration handed to the factory.

        Returns:
            A ``BaseEmbedder`` or ``BaseCompleter``, depending on *category*.

        Raises:
            PluginError: If the category or name is not registered.
        """
        self._ensure_discovered()

        if category not in self._factories:
            raise PluginError(
                f"Unknown provider category '{category}'. Available: {sorted(self._factories)}"
            )

        if name not in self._factories[category]:
            raise PluginError(
                f"Unknown provider '{name}' in category '{category}'. "
                f"Available: {sorted(self._factories[category])}"
            )

        logger.info("Creating provider %s/%s", category, name)
        return self._factories[category][name](config)

    def list_providers(self, category: str) -> list[str]:
        """List registered provider names for a category."""
        self._ensure_discovered()
        return sorted(self._factories.get(category, {}))

    def has_provider(self, category: str, name: str) -> bool:
        """Check whether a provider is registered."""
        self._ensure_discovered()
        return name in self._factories.get(category, {})


default_registry = ProviderRegistry(auto_discover=True)
