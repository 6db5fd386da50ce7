"""
Cloud Request Errors

Exception hierarchy for the request engine.

ERROR KINDS:
============
- ConfigurationError: required settings missing at construction (fatal)
- CloudRequestError: any non-success outcome of a remote call
- PropertyNotFoundError: a property lookup that cannot be satisfied

Evidence conflicts are NOT errors - see cloudrequest.evidence.EvidenceConflict.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, Optional, Tuple


class CloudErrorCode(Enum):
    """Explicit failure codes for cloud calls."""
    HTTP_ERROR = "http_error"
    CLOUD_ERROR = "cloud_error"
    NO_DATA = "no_data"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    INVALID_RESPONSE = "invalid_response"


class CloudRequestEngineError(Exception):
    """Base class for all request engine errors."""


class ConfigurationError(CloudRequestEngineError):
    """Raised when the engine is constructed without required settings."""


class CloudRequestError(CloudRequestEngineError):
    """
    Non-success outcome of a call to the cloud service.

    status_code is 0 when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        error_code: CloudErrorCode,
        status_code: int = 0,
        response_headers: Optional[Dict[str, str]] = None,
        response_body: Optional[str] = None,
        errors: Tuple[str, ...] = (),
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.response_headers = dict(response_headers or {})
        self.response_body = response_body
        self.errors = tuple(errors)


class PropertyNotFoundError(CloudRequestEngineError, KeyError):
    """
    A property is missing from a module's response.

    `available` lists every property name the schema declares for the module.
    """

    def __init__(self, message: str, module: str, property_name: str, available: Tuple[str, ...] = ()):
        super().__init__(message)
        self.message = message
        self.module = module
        self.property_name = property_name
        self.available = tuple(available)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message
