"""
Mock Transport
==============

Scripted transport for testing.

GUARANTEES:
- No network access
- Every call is recorded in `calls`, in order
- Responses are chosen by the first route whose fragment occurs in the URL
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union
import json
import threading

from ..errors import CloudErrorCode
from .base import Transport, TransportError, TransportResponse


@dataclass(frozen=True)
class RecordedCall:
    """One request seen by the mock."""
    method: str
    url: str
    body: Optional[str]
    headers: Tuple[Tuple[str, str], ...]

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


Route = Union[TransportResponse, Callable[[str, str, Optional[str]], TransportResponse]]


def json_response(payload, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> TransportResponse:
    """Build a TransportResponse with a JSON body."""
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return TransportResponse(
        status_code=status_code,
        headers=headers or {'content-type': 'application/json'},
        body=body
    )


class MockTransport(Transport):
    """
    Deterministic transport that answers from a routing table.

    Args:
        routes: list of (url fragment, response or callable) pairs
        failure_mode: if set, every call raises TransportError with this code
    """

    def __init__(
        self,
        routes: Optional[List[Tuple[str, Route]]] = None,
        failure_mode: Optional[CloudErrorCode] = None
    ):
        self._routes: List[Tuple[str, Route]] = list(routes or [])
        self._failure_mode = failure_mode
        self._lock = threading.Lock()
        self.calls: List[RecordedCall] = []

    def calls_to(self, fragment: str) -> List[RecordedCall]:
        return [c for c in self.calls if fragment in c.url]

    def request(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> TransportResponse:
        with self._lock:
            self.calls.append(RecordedCall(
                method=method,
                url=url,
                body=body,
                headers=tuple((headers or {}).items())
            ))

        if self._failure_mode is not None:
            raise TransportError(f"Mock failure: {self._failure_mode.value}", self._failure_mode)

        for fragment, route in self._routes:
            if fragment in url:
                if callable(route):
                    return route(method, url, body)
                return route

        return TransportResponse(
            status_code=404,
            headers={},
            body=json.dumps({"errors": [f"No mock route for '{url}'"]})
        )
