"""Shared HTTP client utilities for evidence sources."""

from typing import Any

import httpx


class HTTPClientMixin:
    """Mixin providing a lazily created ``httpx.AsyncClient`` and JSON helpers.

    Classes using this mixin should:
    1. Call _init_client(http_client, timeout=...) in __init__
    2. Use await self._get_json(...) / await self._post_json(...)
    3. Call await self.close() when done

    If an external client is passed in, it won't be closed when close() is
    called. The timeout applies to every request made through the helpers,
    including those sent with an external client, so each adapter keeps its
    own bound regardless of how the client was built.
    """

    _client: httpx.AsyncClient | None = None
    _owns_client: bool = True
    _default_timeout: float = 10.0
    _default_headers: dict[str, str] | None = None

    def _init_client(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize client tracking.

        Args:
            http_client: Optional external client. If provided, we won't close it.
            timeout: Per-request timeout in seconds.
            headers: Headers sent with every request.
        """
        self._client = http_client
        self._owns_client = http_client is None
        if timeout is not None:
            self._default_timeout = timeout
        self._default_headers = headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._default_timeout)
            self._owns_client = True
        return self._client

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``url`` and decode the JSON body. Raises httpx.HTTPError on failure."""
        client = await self._get_client()
        response = await client.get(
            url,
            params=params,
            headers=self._default_headers,
            timeout=self._default_timeout,
        )
        response.raise_for_status()
        return response.json()

    async def _post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """POST a JSON payload and decode the JSON body. Raises httpx.HTTPError on failure."""
        client = await self._get_client()
        response = await client.post(
            url,
            json=payload,
            headers=self._default_headers,
            timeout=self._default_timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
