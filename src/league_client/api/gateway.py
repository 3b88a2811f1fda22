"""
League API Request Gateway.

Builds and sends HTTP requests and classifies responses into typed results.
The gateway never raises on a status code and holds no reference to the
token or league stores; reacting to results is the client's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


@dataclass(frozen=True)
class Success:
    """2xx response; value is the parsed JSON body (None for 204)."""

    value: Any


@dataclass(frozen=True)
class HttpFailure:
    """Non-2xx response other than 401."""

    status_code: int
    body: str


@dataclass(frozen=True)
class AuthFailure:
    """401 response: the token is no longer accepted."""

    status_code: int
    body: str


ApiResult = Success | HttpFailure | AuthFailure


class RequestGateway:
    """
    Async HTTP transport for the league API.

    Attaches the bearer token supplied by token_provider to every request.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token_provider: Callable[[], str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: API root, e.g. http://127.0.0.1:8000
            token_provider: Returns the current bearer token ("" for none)
            timeout: Transport timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider or (lambda: "")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "RequestGateway":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> None:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_headers(
        self,
        headers: dict[str, str] | None = None,
        has_body: bool = False,
    ) -> dict[str, str]:
        """
        Build outgoing headers.

        A JSON content type is only added when a body is sent and the caller
        has not chosen one; the bearer token only when one is set.
        """
        out = dict(headers or {})

        if has_body and not any(k.lower() == "content-type" for k in out):
            out["Content-Type"] = "application/json"

        token = self._token_provider()
        if token:
            out["Authorization"] = f"Bearer {token}"

        return out

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the raw response, whatever its status.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Path relative to the base URL
            params: Query parameters
            json: JSON-serializable body
            headers: Extra headers

        Raises:
            TransportError: If no response was received
        """
        await self._ensure_client()
        assert self._client is not None

        has_body = json is not None
        kwargs: dict[str, Any] = {
            "params": params or None,
            "headers": self.build_headers(headers, has_body),
        }
        if has_body:
            kwargs["json"] = json

        logger.debug(f"Request: {method} {path} params={params}")

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Request error: {method} {path}: {e}")
            raise TransportError(f"Request failed: {method} {path}: {e}") from e

        logger.debug(f"Response: {method} {path} -> {response.status_code}")
        return response

    def interpret(self, response: httpx.Response) -> ApiResult:
        """Classify a response into a typed result."""
        status = response.status_code

        if status == 204:
            return Success(None)

        if 200 <= status < 300:
            if not response.content.strip():
                return Success(None)
            try:
                return Success(response.json())
            except ValueError:
                logger.warning(f"Non-JSON {status} response body, returning text")
                return Success(response.text)

        if status == 401:
            logger.warning("Unauthenticated response (401)")
            return AuthFailure(status, response.text)

        return HttpFailure(status, response.text)
