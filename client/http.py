"""
HTTP client adapter for the transaction-matching backend.

This module wraps every outbound call with:
- Bearer token injection from the persisted credential
- Retry with exponential backoff for idempotent GET requests
- Normalized error taxonomy with the raw diagnostic preserved
- Session teardown on HTTP 401
"""

import httpx
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional
from core.config import settings
from core.exceptions import (
    AuthenticationError,
    ResourceNotFoundError,
    ResponseShapeError,
    ServerError,
    TransportError,
)
import logging

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHandler = Callable[[], Awaitable[None]]

BODY_EXCERPT_LENGTH = 500


class APIClient:
    """
    Async client for the backend REST surface.

    Features:
    - Bearer token authentication (read-only access to the credential)
    - Base path handling (``/api/v1`` unless the endpoint is absolute)
    - JSON and multipart bodies
    - Retry logic for GET requests only
    - 401 escalation through a single registered handler

    Attributes:
        max_retries: Maximum number of attempts for GET requests (default: 3)
        retry_delay: Initial retry delay in seconds (default: 1.0)
        timeout: Request timeout in seconds (default: 15.0)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_prefix: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.api_prefix = "/" + (settings.API_PREFIX if api_prefix is None else api_prefix).strip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.max_retries = max(1, max_retries if max_retries is not None else settings.MAX_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else settings.RETRY_DELAY
        self._token_provider = token_provider
        self._unauthorized_handler: Optional[UnauthorizedHandler] = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": "application/json"}
        )

    def set_unauthorized_handler(self, handler: Optional[UnauthorizedHandler]) -> None:
        """Register the coroutine run whenever a request comes back 401."""
        self._unauthorized_handler = handler

    def url_for(self, path: str, absolute: bool = False) -> str:
        path = "/" + path.lstrip("/")
        if absolute or self.api_prefix == "/":
            return path
        return f"{self.api_prefix}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        absolute: bool = False,
        escalate_unauthorized: bool = True
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Endpoint path relative to the API prefix
            params: Query parameters
            json: JSON body
            data: Form fields (multipart when combined with ``files``)
            files: Multipart files
            absolute: Do not prepend the API prefix
            escalate_unauthorized: Run the unauthorized handler on 401

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            TransportError: No response was received
            AuthenticationError: HTTP 401
            ResourceNotFoundError: HTTP 404
            ServerError: Any other non-2xx status
            ResponseShapeError: Body is not valid JSON
        """
        method = method.upper()
        url = self.url_for(path, absolute=absolute)
        attempts = self.max_retries if method == "GET" else 1

        for attempt in range(attempts):
            is_last = attempt == attempts - 1
            try:
                logger.debug(f"{method} {url} (attempt {attempt + 1}/{attempts})")
                response = await self._client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    data=data,
                    files=files,
                    headers=self._headers()
                )
            except httpx.TransportError as e:
                if not is_last:
                    await self._backoff(attempt, f"Network error on {method} {url}")
                    continue
                logger.error(f"No response for {method} {url}: {e}")
                raise TransportError(
                    f"No response received for {method} {url}",
                    context={
                        "method": method,
                        "url": url,
                        "retry_count": attempt + 1
                    },
                    original_exception=e
                )

            logger.debug(f"{method} {url} -> {response.status_code}")

            if response.status_code == 401:
                await self._on_unauthorized(method, url, escalate_unauthorized)
                raise AuthenticationError(
                    f"Authentication failed for {method} {url}",
                    context=self._error_context(method, url, response)
                )

            if response.status_code == 404:
                raise ResourceNotFoundError(
                    f"Resource not found: {url}",
                    context=self._error_context(method, url, response)
                )

            if response.status_code >= 500 and not is_last:
                await self._backoff(attempt, f"Server error {response.status_code} on {method} {url}")
                continue

            if response.status_code >= 400:
                logger.warning(f"{method} {url} rejected with {response.status_code}")
                raise ServerError(
                    f"Request failed with status {response.status_code}",
                    context=self._error_context(method, url, response)
                )

            return self._decode(method, url, response)

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_delay * (2 ** attempt)
        logger.warning(f"{reason}. Retrying in {delay} seconds (attempt {attempt + 1}/{self.max_retries})")
        await asyncio.sleep(delay)

    async def _on_unauthorized(self, method: str, url: str, escalate: bool) -> None:
        logger.warning(f"Unauthorized response for {method} {url}")
        if escalate and self._unauthorized_handler is not None:
            await self._unauthorized_handler()

    @staticmethod
    def _error_context(method: str, url: str, response: httpx.Response) -> Dict[str, Any]:
        return {
            "method": method,
            "url": url,
            "status_code": response.status_code,
            "reason": response.reason_phrase,
            "response_body": response.text[:BODY_EXCERPT_LENGTH]
        }

    @staticmethod
    def _decode(method: str, url: str, response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ResponseShapeError(
                "Failed to parse JSON response",
                context={
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:BODY_EXCERPT_LENGTH]
                },
                original_exception=e
            )

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
