"""Minimal JSON-over-HTTP helper shared by the embedding and completion providers."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ragsync.exceptions import AuthorizationError, RagsyncError

__all__ = ["post_json"]

logger = logging.getLogger(__name__)

_AUTH_STATUS = frozenset({401, 403})


def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    error_cls: type[RagsyncError],
    service: str,
    api_key: str | None = None,
    timeout: float = 120,
) -> dict[str, Any]:
    """POST *payload* as JSON and return the decoded JSON body.

    Args:
        url: Endpoint URL.
        payload: JSON-serializable request body.
        error_cls: Exception type raised for transport and protocol errors.
        service: Human-readable service name for error messages.
        api_key: Bearer token; omitted when empty.
        timeout: Socket timeout in seconds.

    Raises:
        AuthorizationError: On HTTP 401/403.
        error_cls: On connection errors, other HTTP errors, or invalid JSON.
    """
    headers: dict[str, str] = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    req = Request(url, data=json.dumps(payload).encode("utf-8"), headers=headers)

    try:
        with urlopen(req, timeout=timeout) as resp:
            body = resp.read()
        data = json.loads(body)
    except HTTPError as e:
        if e.code in _AUTH_STATUS:
            raise AuthorizationError(
                f"{service} rejected credentials (HTTP {e.code}): {e.reason}"
            ) from e
        raise error_cls(f"{service} error (HTTP {e.code}): {e.reason}") from e
    except json.JSONDecodeError as e:
        raise error_cls(f"{service} returned invalid JSON from {url}") from e
    except (ConnectionError, URLError, TimeoutError) as e:
        raise error_cls(f"{service} not reachable at {url}. Error: {e}") from e

    if not isinstance(data, dict):
        raise error_cls(f"{service} returned unexpected JSON from {url}")
    return data
