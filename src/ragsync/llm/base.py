"""Abstract base class for chat completion providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.chat import ChatMessage
    from ragsync.types import Completion

__all__ = ["BaseCompleter"]


class BaseCompleter(ABC):
    """Sends a list of chat messages to a language model and returns its reply."""

    @abstractmethod
    def complete(self, messages: Sequence[ChatMessage]) -> Completion:
        """Request a completion.

        Args:
            messages: Conversation to send, in order.

        Returns:
            Completion with the reply text and the decoded raw response.

        Raises:
            CompletionError: If the request fails or the response is malformed.
            AuthorizationError: If the service rejects the credentials.
        """
