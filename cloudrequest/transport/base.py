"""
Transport Abstraction Layer
===========================

Interface for the HTTP transport used by the request dispatcher.

BOUNDARY ENFORCEMENT:
- Transports move bytes; they never interpret the cloud service's JSON
- Any response that arrives is returned, whatever its status code
- Failures to get a response at all raise TransportError
- TLS, connection reuse, timeouts and retries live here, not in the engine
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ..errors import CloudErrorCode


@dataclass(frozen=True)
class TransportResponse:
    """Immutable HTTP response as received from the wire."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class TransportError(Exception):
    """
    No response was received.

    error_code is TIMEOUT or NETWORK_ERROR.
    """

    def __init__(self, message: str, error_code: CloudErrorCode = CloudErrorCode.NETWORK_ERROR):
        super().__init__(message)
        self.error_code = error_code


class Transport(ABC):
    """
    Abstract HTTP transport.

    GUARANTEES:
    - request() returns a TransportResponse for every received response
    - request() raises TransportError when nothing was received
    """

    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> TransportResponse:
        """Perform one HTTP round trip."""
        pass
