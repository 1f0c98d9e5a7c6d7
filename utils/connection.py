"""
HTTP transport for Elasticsearch endpoints.
"""

import asyncio
import logging
import random
from typing import Any, Dict, Optional

import httpx

from config.environments import get_http_config
from explorer_types.errors import EndpointUnreachable
from explorer_types.primitives import BasicCredentials, RawResponse, Request, TrustPolicy


logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)


class RequestExecutor:
    """
    Issues single REST calls against an endpoint.

    A fresh ``httpx.AsyncClient`` is built for every call so TLS verification
    and credentials never outlive the call they were built for.
    """

    def __init__(
        self,
        timeout_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = get_http_config()
        self.timeout = (timeout_ms if timeout_ms is not None else config["timeout_ms"]) / 1000.0
        self.max_retries = max_retries if max_retries is not None else config["max_retries"]
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else config["backoff_seconds"]
        self._transport = transport
        self.calls = 0

    async def execute(
        self,
        base_url: str,
        request: Request,
        auth: Optional[BasicCredentials] = None,
        trust_policy: TrustPolicy = TrustPolicy.STRICT,
        timeout: Optional[float] = None,
    ) -> RawResponse:
        """
        Execute one request, retrying transient transport failures.

        Args:
            base_url: Endpoint base URL without trailing slash
            request: Request to issue
            auth: Credentials for Basic-Auth, if any
            trust_policy: TLS verification mode for this call only
            timeout: Per-call timeout in seconds (defaults to the configured one)

        Returns:
            RawResponse for any HTTP status, including 4xx and 5xx

        Raises:
            EndpointUnreachable: If the endpoint cannot be reached after retries
        """
        url = f"{base_url.rstrip('/')}/{request.path.lstrip('/')}"
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                return await self._send(url, request, auth, trust_policy, timeout)
            except TRANSIENT_ERRORS as e:
                if attempt >= attempts:
                    logger.warning(
                        "%s %s failed after %d attempt(s): %s",
                        request.method, request.path, attempt, type(e).__name__,
                    )
                    raise EndpointUnreachable(
                        f"{base_url} unreachable after {attempt} attempt(s): {type(e).__name__}: {e}"
                    ) from e
                sleep_for = self.backoff_seconds * (2 ** (attempt - 1)) + random.random() * self.backoff_seconds
                logger.info(
                    "Retrying %s %s in %.2fs (attempt %d/%d): %s",
                    request.method, request.path, sleep_for, attempt, attempts, type(e).__name__,
                )
                await asyncio.sleep(sleep_for)
            except httpx.HTTPError as e:
                raise EndpointUnreachable(f"{base_url}: {type(e).__name__}: {e}") from e

        raise EndpointUnreachable(f"{base_url} unreachable")

    async def _send(
        self,
        url: str,
        request: Request,
        auth: Optional[BasicCredentials],
        trust_policy: TrustPolicy,
        timeout: Optional[float],
    ) -> RawResponse:
        kwargs: Dict[str, Any] = {"params": request.params or None}
        if isinstance(request.body, str):
            kwargs["content"] = request.body.encode("utf-8")
            kwargs["headers"] = {"Content-Type": "application/json"}
        elif request.body is not None:
            kwargs["json"] = request.body

        client_auth = httpx.BasicAuth(auth.username, auth.password) if auth else None
        self.calls += 1

        async with httpx.AsyncClient(
            verify=trust_policy is not TrustPolicy.INSECURE,
            timeout=timeout if timeout is not None else self.timeout,
            auth=client_auth,
            transport=self._transport,
        ) as client:
            response = await client.request(request.method, url, **kwargs)

        logger.debug("%s %s -> %d", request.method, request.path, response.status_code)
        return RawResponse(
            status=response.status_code,
            text=response.text,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

