"""Retry and timeout policy applied to every external service call.

One ``RetryPolicy`` instance per call class (administrative vs. data path)
wraps any zero-argument-or-more callable::

    admin = RetryPolicy(name="index-admin", timeout=3.0)
    admin.call(index.ensure_schema)

    @data.wrap
    def fetch(...): ...

Each attempt runs under its own hard timeout. Transient failures back off
exponentially with full jitter. ``IndexNotReadyError`` and
``AuthorizationError`` are never retried.
"""

from __future__ import annotations

import functools
import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Any, Literal, TypeVar

from ragsync.exceptions import AuthorizationError, IndexNotReadyError, ServiceTimeoutError

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable

    from ragsync.config import ResilienceConfig

_T = TypeVar("_T")

__all__ = ["RetryPolicy", "is_transient"]

logger = logging.getLogger(__name__)
auth_logger = logging.getLogger("ragsync.auth")


def is_transient(exc: BaseException) -> bool:
    """Default retry predicate: everything except control signals and auth failures."""
    return not isinstance(exc, (IndexNotReadyError, AuthorizationError))


class RetryPolicy:
    """Bounded retry with jittered exponential backoff and per-attempt timeout.

    Args:
        name: Label used in log messages and timeout errors.
        max_attempts: Total attempts including the first one.
        timeout: Seconds allowed for a single attempt; ``None`` disables it.
        base_delay: Backoff before the second attempt, doubled each retry.
        max_delay: Upper bound for a single backoff.
        is_retryable: Predicate deciding whether an exception is transient.
    """

    def __init__(
        self,
        name: str = "external",
        max_attempts: int = 3,
        timeout: float | None = 7.0,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        is_retryable: Callable[[BaseException], bool] = is_transient,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.name = name
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.is_retryable = is_retryable

    @classmethod
    def from_config(
        cls,
        config: ResilienceConfig,
        kind: Literal["admin", "data", "completion"],
        name: str = "",
    ) -> RetryPolicy:
        """Build the administrative, data-path or completion policy."""
        timeout = {
            "admin": config.admin_timeout,
            "data": config.data_timeout,
            "completion": config.completion_timeout,
        }[kind]
        return cls(
            name=name or kind,
            max_attempts=config.max_attempts,
            timeout=timeout,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
        )

    def call(
        self,
        fn: Callable[..., _T],
        *args: Any,
        cancel: threading.Event | None = None,
        **kwargs: Any,
    ) -> _T:
        """Invoke ``fn(*args, **kwargs)`` under this policy.

        Raises:
            IndexNotReadyError: Immediately, on the first attempt that raises it.
            AuthorizationError: Immediately, after logging it as an auth failure.
            Exception: The last exception once attempts are exhausted, or
                once *cancel* is set during backoff.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._attempt(fn, args, kwargs)
            except AuthorizationError as e:
                auth_logger.error(
                    "Authorization failure calling %s; check credentials: %s", self.name, e
                )
                raise
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                if attempt == self.max_attempts:
                    logger.warning(
                        "%s failed after %d attempt(s): %s", self.name, attempt, e
                    )
                    raise

                delay = self._backoff(attempt)
                logger.info(
                    "%s attempt %d/%d failed (%s: %s), retrying in %.2fs",
                    self.name,
                    attempt,
                    self.max_attempts,
                    type(e).__name__,
                    e,
                    delay,
                )
                if cancel is not None:
                    if cancel.wait(delay):
                        logger.info("%s retry abandoned: cancelled", self.name)
                        raise
                elif delay > 0:
                    time.sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover

    def wrap(self, fn: Callable[..., _T]) -> Callable[..., _T]:
        """Decorator form of :meth:`call`. The wrapped function accepts ``cancel=``."""

        @functools.wraps(fn)
        def wrapper(*args: Any, cancel: threading.Event | None = None, **kwargs: Any) -> _T:
            return self.call(fn, *args, cancel=cancel, **kwargs)

        return wrapper

    def _backoff(self, attempt: int) -> float:
        ceiling = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        return random.uniform(0, ceiling) if ceiling > 0 else 0.0

    def _attempt(self, fn: Callable[..., _T], args: tuple[Any, ...], kwargs: dict[str, Any]) -> _T:
        if self.timeout is None:
            return fn(*args, **kwargs)

        # The worker cannot be killed on timeout; it is abandoned and its
        # result discarded.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"ragsync-{self.name}")
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            if future.done():
                raise
            future.cancel()
            raise ServiceTimeoutError(
                f"{self.name} call timed out after {self.timeout:.1f}s"
            ) from e
        finally:
            executor.shutdown(wait=False)
