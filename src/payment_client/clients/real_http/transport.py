"""
Real HTTP transport.

Used when a payment server URL is configured. Wraps httpx.AsyncClient and
translates its failures into TransportError so PaymentClient never sees an
httpx exception.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from payment_client.errors import TransportError, TransportTimeout

logger = logging.getLogger(__name__)


class HttpxTransport:
    def __init__(
        self,
        api_url: str = "",
        timeout_seconds: float = 20.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_url = (api_url or "").rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.headers = {"Accept": "application/json", **(headers or {})}
        # A shared client is reused across calls; otherwise each call opens its own.
        self._client = client

    async def get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return await self._request("POST", path, json=payload)

    async def put(self, path: str, payload: Dict[str, Any]) -> Any:
        return await self._request("PUT", path, json=payload)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug("[HTTPX] %s %s", method, url)
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, headers=self.headers, timeout=self.timeout_seconds, **kwargs
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.request(method, url, headers=self.headers, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("[HTTPX] %s %s timed out after %.1fs", method, url, self.timeout_seconds)
            raise TransportTimeout(f"{method} {url} timed out.") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("[HTTPX] %s %s returned %s", method, url, status)
            raise TransportError(
                f"{method} {url} failed with HTTP {status}.",
                status_code=status,
                payload=_error_body(exc.response),
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("[HTTPX] %s %s failed: %s", method, url, exc)
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {url} returned a non-JSON body.",
                status_code=response.status_code,
            ) from exc


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {"detail": response.text}
    return body if isinstance(body, dict) else {"detail": body}
