"""Single-attempt HTTP transport for webhook deliveries.

The transport performs exactly one POST per call. It does not retry,
does not log and does not judge status codes; the orchestrator decides
what a 3xx, 4xx or 5xx means.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from presto_webhooks.models import AttemptResult

from .signing import signature_header

DEFAULT_USER_AGENT = "Presto-Webhooks/1.0"
DEFAULT_MAX_RESPONSE_BYTES = 65536

SIGNATURE_HEADER = "X-Webhook-Signature"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"
DELIVERY_ID_HEADER = "X-Webhook-Delivery-Id"
EVENT_HEADER = "X-Webhook-Event"


class Transport(Protocol):
    """Anything that can make one bounded delivery attempt."""

    async def attempt(
        self,
        url: str,
        payload: bytes,
        signature: str,
        timestamp: str,
        timeout: float,
        *,
        delivery_id: str | None = None,
        event_type: str | None = None,
    ) -> AttemptResult: ...


class HttpTransport:
    """httpx-backed transport with a hard per-attempt deadline.

    Example:
        ```python
        async with HttpTransport() as transport:
            result = await transport.attempt(
                url, payload.body, signature, payload.timestamp, timeout=5.0
            )
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Shared httpx client. One is created (and owned) if None.
            user_agent: Value of the User-Agent header.
            max_response_bytes: Response bytes kept per attempt.
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self._user_agent = user_agent
        self._max_response_bytes = max_response_bytes

    def build_headers(
        self,
        signature: str,
        timestamp: str,
        delivery_id: str | None = None,
        event_type: str | None = None,
    ) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: signature_header(signature),
            TIMESTAMP_HEADER: timestamp,
            "User-Agent": self._user_agent,
        }
        if delivery_id:
            headers[DELIVERY_ID_HEADER] = delivery_id
        if event_type:
            # Header values must be ASCII; event names need not be
            headers[EVENT_HEADER] = quote(event_type, safe="")
        return headers

    async def attempt(
        self,
        url: str,
        payload: bytes,
        signature: str,
        timestamp: str,
        timeout: float,
        *,
        delivery_id: str | None = None,
        event_type: str | None = None,
    ) -> AttemptResult:
        """POST the payload once.

        The timeout bounds the whole exchange, connect through body read.
        Timeouts, network errors and requests httpx refuses to build come
        back as results, never raised.
        """
        headers = self.build_headers(signature, timestamp, delivery_id, event_type)
        started = time.perf_counter()
        try:
            async with asyncio.timeout(timeout):
                status_code, body = await self._exchange(url, payload, headers, timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            return AttemptResult(
                kind="timeout",
                elapsed_ms=_elapsed_ms(started),
                error=str(e) or f"Request timed out after {timeout}s",
            )
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as e:
            return AttemptResult(
                kind="network_error",
                elapsed_ms=_elapsed_ms(started),
                error=str(e) or type(e).__name__,
            )

        return AttemptResult(
            status_code=status_code,
            kind="response",
            response_body=body,
            elapsed_ms=_elapsed_ms(started),
        )

    async def _exchange(
        self,
        url: str,
        payload: bytes,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, str]:
        async with self._client.stream(
            "POST",
            url,
            content=payload,
            headers=headers,
            timeout=timeout,
        ) as response:
            body = await self._read_bounded(response)
            return response.status_code, body

    async def _read_bounded(self, response: httpx.Response) -> str:
        limit = self._max_response_bytes
        kept = bytearray()
        async for chunk in response.aiter_bytes():
            room = limit - len(kept)
            if room > 0:
                kept.extend(chunk[:room])
            if len(kept) >= limit:
                # Remainder is discarded; closing the stream drops the connection
                break
        return kept.decode("utf-8", errors="replace")

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


__all__ = [
    "DEFAULT_MAX_RESPONSE_BYTES",
    "DEFAULT_USER_AGENT",
    "DELIVERY_ID_HEADER",
    "EVENT_HEADER",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "HttpTransport",
    "Transport",
]
