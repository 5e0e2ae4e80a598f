"""
JSON-RPC transport shared by mizu's node clients.

Every request is a single JSON-RPC 2.0 envelope POSTed to the configured
endpoint. Failures come back as IntegrationError subtypes carrying a
``retryable`` flag, and call() retries only the ones the node never acted
on (timeouts, dropped connections, 429 and 5xx). An ``error`` member in a
well-formed response means the node evaluated the request and said no, so
it is raised as RpcError and never retried.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

MAX_BACKOFF = 60.0


# =============================================================================
# Exceptions
# =============================================================================


class IntegrationError(Exception):
    """A remote call failed; ``retryable`` says whether repeating it is safe."""

    def __init__(
        self,
        message: str,
        integration: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.integration = integration
        self.status_code = status_code
        self.response_body = response_body
        self.retryable = retryable

    def __str__(self) -> str:
        text = f"{self.integration}: {self.args[0]}"
        if self.status_code is not None:
            text += f" [HTTP {self.status_code}]"
        return text


class AuthenticationError(IntegrationError):
    """The endpoint refused the request (HTTP 401 or 403)."""

    def __init__(self, message: str, integration: str, **kwargs: Any):
        super().__init__(message, integration, retryable=False, **kwargs)


class RateLimitError(IntegrationError):
    """HTTP 429; ``retry_after`` holds the server's requested wait in seconds."""

    def __init__(
        self,
        message: str,
        integration: str,
        *,
        retry_after: float | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, integration, retryable=True, **kwargs)
        self.retry_after = retry_after


class RpcError(IntegrationError):
    """The node answered with a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        integration: str,
        *,
        method: str,
        code: int | None = None,
        data: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, integration, retryable=False, **kwargs)
        self.method = method
        self.code = code
        self.data = data

    def __str__(self) -> str:
        return f"{self.integration}: {self.method} rejected with code {self.code}: {self.args[0]}"


_STATUS_ERRORS: dict[int, type[IntegrationError]] = {
    401: AuthenticationError,
    403: AuthenticationError,
}


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class IntegrationConfig:
    """Endpoint and retry settings for a JSON-RPC client."""

    base_url: str = ""
    timeout: float = 30.0

    # Retries after the first attempt; delays double from retry_delay
    max_retries: int = 3
    retry_delay: float = 1.0

    # Debug-log every envelope and raw response
    trace_rpc: bool = False


# =============================================================================
# Base Client
# =============================================================================


class JsonRpcClient(ABC):
    """
    Async JSON-RPC client over one lazily opened httpx.AsyncClient.

    Use it as an async context manager so the connection pool is closed.
    Subclasses name themselves through ``name`` and build their typed
    methods on top of call().
    """

    def __init__(
        self,
        config: IntegrationConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in errors and log lines."""
        ...

    async def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Invoke ``method`` and return the response's ``result`` member.

        Raises:
            RpcError: the node rejected the request
            AuthenticationError: the endpoint refused the request
            IntegrationError: the request kept failing after max_retries
        """
        attempt = 0
        while True:
            try:
                return await self._post(method, params or [])
            except IntegrationError as e:
                if not e.retryable or attempt == self.config.max_retries:
                    if e.retryable:
                        logger.warning(
                            f"[{self.name}] {method} gave up after {attempt + 1} attempts: {e}"
                        )
                    raise
                delay = self._calculate_backoff(attempt, e)
                attempt += 1
                logger.info(
                    f"[{self.name}] {method} attempt {attempt} failed ({e}); "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

    def _calculate_backoff(self, attempt: int, error: IntegrationError) -> float:
        """Seconds to wait before retry number ``attempt + 1``."""
        if isinstance(error, RateLimitError) and error.retry_after:
            return error.retry_after
        delay = self.config.retry_delay * 2**attempt * random.uniform(0.75, 1.25)
        return min(delay, MAX_BACKOFF)

    def _envelope(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

    async def _post(self, method: str, params: list[Any]) -> Any:
        envelope = self._envelope(method, params)
        if self.config.trace_rpc:
            logger.debug(f"[{self.name}] request {envelope}")

        client = await self._http()
        try:
            response = await client.post("", json=envelope)
        except httpx.TimeoutException as e:
            raise IntegrationError(f"{method} timed out: {e}", self.name, retryable=True) from e
        except httpx.NetworkError as e:
            raise IntegrationError(
                f"{method} connection failed: {e}", self.name, retryable=True
            ) from e

        if self.config.trace_rpc:
            logger.debug(f"[{self.name}] response {response.status_code} {response.text[:500]}")

        self._raise_for_status(response)
        return self._unwrap(method, response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Turn a non-2xx reply into the matching IntegrationError."""
        if response.is_success:
            return

        status = response.status_code
        body = response.text
        error_cls = _STATUS_ERRORS.get(status)
        if error_cls is not None:
            raise error_cls(
                f"endpoint refused request: {body}",
                self.name,
                status_code=status,
                response_body=body,
            )

        if status == 429:
            header = response.headers.get("Retry-After")
            raise RateLimitError(
                "rate limited",
                self.name,
                status_code=status,
                response_body=body,
                retry_after=float(header) if header else None,
            )

        raise IntegrationError(
            f"unexpected reply: {body}",
            self.name,
            status_code=status,
            response_body=body,
            retryable=status >= 500,
        )

    def _unwrap(self, method: str, response: httpx.Response) -> Any:
        """Pull ``result`` out of a JSON-RPC reply, raising on ``error``."""
        try:
            reply = response.json()
        except ValueError as e:
            raise IntegrationError(
                f"{method} reply is not JSON",
                self.name,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        error = reply.get("error") if isinstance(reply, dict) else None
        if error:
            raise RpcError(
                str(error.get("message", error)),
                self.name,
                method=method,
                code=error.get("code"),
                data=error.get("data"),
            )
        if not isinstance(reply, dict) or "result" not in reply:
            raise IntegrationError(f"{method} reply has no result", self.name)
        return reply["result"]

    async def __aenter__(self) -> JsonRpcClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
