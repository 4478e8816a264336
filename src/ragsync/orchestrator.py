"""Query orchestrator: retrieval-augmented answers over the synchronized index.

Each turn makes two completion calls. The first rewrites the user's query
into a standalone intent using the recent chat history. The second answers
the original query from the chunks retrieved for that intent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragsync.chat import ChatMessage, ChatRole
from ragsync.sync import DEFAULT_TOP_K

if TYPE_CHECKING:
    import threading

    from ragsync.chat import ChatHistory
    from ragsync.embed.stage import EmbeddingStage
    from ragsync.llm.base import BaseCompleter
    from ragsync.resilience import RetryPolicy
    from ragsync.sync import IndexSynchronizer
    from ragsync.types import Completion

__all__ = ["CONTEXT_MESSAGE", "GROUNDING_MESSAGE", "QueryOrchestrator", "build_context"]

logger = logging.getLogger(__name__)

CONTEXT_MESSAGE = (
    "You're an AI assistant reading the transcript of a conversation "
    "between a user and an assistant. Given the chat history and "
    "user's query, infer user real intent."
)

GROUNDING_MESSAGE = (
    "You are a professional AI bot that returns accurate content for busy workers.\n"
    "Please answer the user's question using only information you can find in the context.\n"
    "If the user's question is unrelated to the information in the context, say you don't know.\n"
)


def build_context(contents: list[str]) -> str:
    """Wrap retrieved chunk contents in the fenced ``Context:`` block."""
    return "Context: \n\n```" + "\n\n".join(contents) + "```\n"


class QueryOrchestrator:
    """Answers questions using retrieved context and a caller-owned chat history.

    ``last_response`` keeps the most recent raw completion, for example to
    inspect token usage after a call.

    Usage::

        history = ChatHistory()
        answer = orchestrator.ask("What is X?", history)
    """

    def __init__(
        self,
        completer: BaseCompleter,
        stage: EmbeddingStage,
        synchronizer: IndexSynchronizer,
        policy: RetryPolicy,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.completer = completer
        self.stage = stage
        self.synchronizer = synchronizer
        self.policy = policy
        self.top_k = top_k
        self.last_response: Completion | None = None

    def ask(
        self,
        query: str,
        history: ChatHistory,
        cancel: threading.Event | None = None,
    ) -> str:
        """Answer *query* and record it in *history*.

        *history* is only modified once the answer is in hand; any failure
        propagates and leaves it untouched.

        Raises:
            IndexNotReadyError: If nothing has been ingested yet.
            AuthorizationError: If a service rejects the credentials.
        """
        user_intent = self.summarize_intent(query, history, cancel)
        logger.info("User intent: %s", user_intent)

        query_vector = self.stage.embed_query(user_intent, cancel)
        chunks = self.synchronizer.search(query_vector, self.top_k, cancel)
        logger.debug("Retrieved %d chunks for %r", len(chunks), user_intent)

        user_message = ChatMessage(ChatRole.USER, query)
        messages = [
            ChatMessage(
                ChatRole.SYSTEM,
                GROUNDING_MESSAGE + build_context([c.content for c in chunks]),
            ),
            user_message,
        ]
        answer = self._complete(messages, cancel)

        history.append(user_message)
        return answer

    def summarize_intent(
        self,
        query: str,
        history: ChatHistory,
        cancel: threading.Event | None = None,
    ) -> str:
        """Ask the model what the user actually wants, given the recent history."""
        prompt = (
            CONTEXT_MESSAGE
            + f"\n\nChat History: {history.transcript()}"
            + f"\n\nUser's query: {query}"
        )
        return self._complete([ChatMessage(ChatRole.SYSTEM, prompt)], cancel)

    def _complete(
        self,
        messages: list[ChatMessage],
        cancel: threading.Event | None,
    ) -> str:
        response = self.policy.call(self.completer.complete, messages, cancel=cancel)
        self.last_response = response
        return response.text
