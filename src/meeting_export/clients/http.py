"""
Shared async HTTP plumbing for provider API clients.

Handles:
- One httpx request per call with a bounded timeout
- Per-provider concurrency limit (each client owns its own semaphore)
- Retry with exponential backoff for transient failures (429, 5xx, transport)
- Mapping of transport and HTTP errors into the typed error hierarchy
- GraphQL request/response handling for Linear and Monday.com
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ..config import config
from ..errors import (
    ProviderApiError,
    TransientProviderError,
    error_for_status,
    wrap_http_error,
)

logger = structlog.get_logger(__name__)


class ProviderHttpClient:
    """
    Base class for provider API clients.

    Subclasses set ``provider`` and build requests through ``request`` or
    ``graphql``. Tests inject an ``httpx.MockTransport`` via ``transport``.
    """

    provider: str = 'provider'

    def __init__(
        self,
        base_url: str = '',
        timeout: float | None = None,
        max_retries: int | None = None,
        max_concurrency: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait: wait_base | None = None,
    ):
        """
        Args:
            base_url: Prefix for relative request paths
            timeout: Per-request timeout in seconds (defaults to PROVIDER_TIMEOUT_SECONDS)
            max_retries: Retries after the first attempt for transient errors
                         (defaults to PROVIDER_MAX_RETRIES)
            max_concurrency: Concurrent in-flight requests to this provider
                             (defaults to PROVIDER_MAX_CONCURRENCY)
            transport: Optional httpx transport (used by tests)
            retry_wait: Optional tenacity wait strategy between retries
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else config.PROVIDER_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else config.PROVIDER_MAX_RETRIES
        concurrency = max_concurrency if max_concurrency is not None else config.PROVIDER_MAX_CONCURRENCY
        self._semaphore = asyncio.Semaphore(max(1, concurrency))
        self._transport = transport
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    def _url(self, path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (or text).

        Raises:
            InvalidCredentialError: On 401/403
            TransientProviderError: On 429/5xx/transport errors after retries
            ProviderApiError: On any other non-2xx response
        """
        payload: Any = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(1 + max(0, self.max_retries)),
            wait=self._retry_wait,
            retry=retry_if_exception_type(TransientProviderError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        'provider.retrying',
                        provider=self.provider,
                        method=method,
                        attempt=attempt.retry_state.attempt_number,
                    )
                payload = await self._send(
                    method, path, headers=headers, json=json, data=data, params=params
                )
        return payload

    async def _send(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None,
        json: Any,
        data: dict[str, Any] | None,
        params: dict[str, Any] | None,
    ) -> Any:
        url = self._url(path)
        async with self._semaphore:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.request(
                        method, url, headers=headers, json=json, data=data, params=params
                    )
            except httpx.HTTPError as e:
                raise wrap_http_error(e, self.provider, context={'url': url}) from e

        body = _decode(response)
        if response.status_code >= 400:
            raise error_for_status(
                self.provider, response.status_code, body, context={'url': url}
            )
        return body

    async def graphql(
        self,
        path: str,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL operation with variables.

        Values are always passed as variables, never interpolated into the
        query text.

        Returns:
            The ``data`` object of the response

        Raises:
            ProviderApiError: If the response carries a non-empty ``errors`` list
        """
        body = await self.request(
            'POST',
            path,
            headers=headers,
            json={'query': query, 'variables': variables or {}},
        )
        if not isinstance(body, dict):
            raise ProviderApiError(
                f"{self.provider} returned a non-JSON GraphQL response",
                provider=self.provider,
                payload=body,
            )
        errors = body.get('errors') or body.get('error_message')
        if errors:
            raise ProviderApiError(
                f"{self.provider} GraphQL error: {_first_error_message(errors)}",
                provider=self.provider,
                payload=errors,
            )
        return body.get('data') or {}


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return str(first.get('message', first))
        return str(first)
    return str(errors)
