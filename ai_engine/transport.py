"""
HTTP transport used by the provider adapters.

One blocking POST per call; no retries, no connection pooling across calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class HTTPResponse:
    """Outcome of a single HTTP exchange"""

    success: bool
    status_code: int
    response_text: str


class HTTPTransport(Protocol):
    """Anything that can POST a JSON body and report the outcome."""

    def post(self, url: str, headers: dict[str, str], data: dict[str, Any]) -> HTTPResponse:
        ...


class HttpxTransport:
    """HTTPTransport backed by a short-lived synchronous httpx client"""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        # Injected transport lets tests use httpx.MockTransport.
        self._transport = transport

    def post(self, url: str, headers: dict[str, str], data: dict[str, Any]) -> HTTPResponse:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, headers=headers, json=data)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            return HTTPResponse(success=False, status_code=0, response_text=str(e))

        logger.debug(f"POST {url} -> {response.status_code}")
        return HTTPResponse(
            success=response.is_success,
            status_code=response.status_code,
            response_text=response.text,
        )
