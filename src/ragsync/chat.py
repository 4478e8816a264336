"""Chat messages and the bounded chat history used by the query orchestrator."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "ChatHistory",
    "ChatMessage",
    "ChatRole",
]

DEFAULT_HISTORY_SIZE = 5


class ChatRole(str, Enum):
    """Speaker of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single immutable chat message."""

    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, str]:
        """Return the OpenAI-style ``{"role", "content"}`` mapping."""
        return {"role": self.role.value, "content": self.content}


class ChatHistory:
    """Bounded FIFO of chat messages.

    Appending at capacity evicts the oldest message first. The caller owns
    the history and decides whether it is scoped to a request or a session.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_HISTORY_SIZE,
        messages: Iterable[ChatMessage] = (),
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._messages: deque[ChatMessage] = deque(messages, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._messages.maxlen or 0

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()

    def transcript(self) -> str:
        """Render the history as ``role: content`` lines, oldest first."""
        return "".join(f"{m.role.value}: {m.content}\n\n" for m in self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]
