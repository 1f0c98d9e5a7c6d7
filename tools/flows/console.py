"""
Dev console: raw requests against an endpoint, recorded in console history.
"""

import json
import logging
from typing import List, Optional

from explorer_types.domain import ConsoleHistoryEntry, ConsoleResult, EndpointIdentity
from storage.history import HistoryRepository, HistoryRetention
from tools.client import CompatibilityClient
from utils.validation import validate_console_method


logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}


def normalize_path(path: str) -> str:
    path = (path or "").strip()
    if not path:
        raise ValueError("Request path cannot be empty")
    if "://" in path:
        raise ValueError("Request path must be relative to the endpoint")
    return path if path.startswith("/") else "/" + path


def format_body(text: str) -> str:
    """Pretty-print JSON bodies; anything else is returned unchanged."""
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def _looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("{") or stripped.startswith("[")


class DevConsole:
    """
    Executes operator-typed requests.

    A history row is written only after the cluster answered; a request that
    fails or is cancelled leaves no trace in history.
    """

    def __init__(
        self,
        client: CompatibilityClient,
        history: HistoryRepository,
        retention: HistoryRetention,
    ):
        self.client = client
        self.history = history
        self.retention = retention

    async def execute(
        self,
        endpoint: EndpointIdentity,
        method: str,
        path: str,
        body: Optional[str] = None,
    ) -> ConsoleResult:
        """
        Send one request and record it.

        Args:
            endpoint: Target endpoint
            method: GET, POST, PUT, DELETE, PATCH or HEAD
            path: Path relative to the endpoint, with optional query string
            body: Request body, sent for POST, PUT and PATCH

        Returns:
            ConsoleResult with status, formatted body and the history row id

        Raises:
            ValueError: If method, path or body are invalid
            EndpointUnreachable: If the endpoint cannot be reached
        """
        method = validate_console_method(method)
        path = normalize_path(path)
        body = body if body and body.strip() else None
        if body is not None and method not in BODY_METHODS:
            raise ValueError(f"{method} requests cannot carry a body")
        if body is not None and _looks_like_json(body):
            try:
                json.loads(body)
            except ValueError as e:
                raise ValueError(f"Request body is not valid JSON: {e}") from e

        await self.client.profile(endpoint)
        response = await self.client.execute_raw(endpoint, method, path, body)
        formatted = format_body(response.text)

        history_id = await self.history.append(ConsoleHistoryEntry(
            endpoint_id=endpoint.id,
            method=method,
            path=path,
            body=body,
            response_status=response.status,
            response_body=formatted,
        ))
        await self.retention.maybe_prune()

        logger.debug("Console %s %s on endpoint %s -> %d", method, path, endpoint.id, response.status)
        return ConsoleResult(
            status=response.status,
            body=formatted,
            is_json=_looks_like_json(formatted),
            history_id=history_id,
        )

    async def recent(self, limit: int = 50, endpoint_id: Optional[int] = None) -> List[ConsoleHistoryEntry]:
        return await self.history.recent(limit=limit, endpoint_id=endpoint_id)
