"""
Transport Package
=================

HTTP transports for the cloud request dispatcher.

Available transports:
- HttpxTransport: default, backed by httpx
- MockTransport: scripted responses for testing
"""

from .base import (
    Transport,
    TransportError,
    TransportResponse,
)
from .client import HttpxTransport
from .mock import MockTransport, RecordedCall, json_response

__all__ = [
    'Transport',
    'TransportError',
    'TransportResponse',
    'HttpxTransport',
    'MockTransport',
    'RecordedCall',
    'json_response',
]
