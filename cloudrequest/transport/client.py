"""
HTTPX Transport
===============

Default transport, backed by httpx.
"""

from __future__ import annotations
from typing import Mapping, Optional
import logging

import httpx

from ..errors import CloudErrorCode
from .base import Transport, TransportError, TransportResponse

logger = logging.getLogger(__name__)


class HttpxTransport(Transport):
    """
    Synchronous httpx transport.

    A client is opened per request. `client_transport` is handed to
    httpx.Client as its transport (e.g. httpx.MockTransport in tests).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "CloudRequestEngine/1.0",
        client_transport: Optional[httpx.BaseTransport] = None
    ):
        self._timeout = timeout
        self._user_agent = user_agent
        self._client_transport = client_transport

    def request(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> TransportResponse:
        request_headers = {'User-Agent': self._user_agent}
        if headers:
            request_headers.update(headers)

        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._client_transport,
                follow_redirects=True
            ) as client:
                response = client.request(
                    method,
                    url,
                    content=body,
                    headers=request_headers
                )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Timed out after {self._timeout}s: {e}",
                CloudErrorCode.TIMEOUT
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__, CloudErrorCode.NETWORK_ERROR) from e

        logger.debug("%s %s -> %s", method, url, response.status_code)

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text
        )
