"""
Cloud Request Configuration

Settings recognised by the request engine and the resource identity they
resolve to.

ENDPOINT PRECEDENCE:
====================
1. cloud_endpoint passed explicitly
2. FOD_CLOUD_API_URL environment variable
3. BASE_URL_DEFAULT

Empty strings count as unset at every step.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional
import json
import os

from .constants import BASE_URL_DEFAULT, FOD_CLOUD_API_URL
from .errors import ConfigurationError
from .transport.base import Transport


# Accepted spellings for each setting
_ALIASES = {
    'resource_key': ('resource_key', 'resourceKey'),
    'cloud_endpoint': ('cloud_endpoint', 'cloudEndPoint', 'cloudEndpoint'),
    'cloud_request_origin': ('cloud_request_origin', 'cloudRequestOrigin'),
    'transport': ('transport', 'httpClient', 'http_client'),
    'timeout_seconds': ('timeout_seconds', 'timeout'),
}


def normalize_base_url(url: str) -> str:
    """Make sure the base URL ends with '/'."""
    if url.endswith('/'):
        return url
    return url + '/'


@dataclass(frozen=True)
class ResourceIdentity:
    """
    Immutable identity of a configured cloud resource.

    INVARIANT: base_url always ends with '/'.
    """
    resource_key: str
    base_url: str
    origin: Optional[str] = None

    def __post_init__(self):
        if not self.resource_key:
            raise ConfigurationError("CloudRequestEngine needs a resource key")
        object.__setattr__(self, 'base_url', normalize_base_url(self.base_url))

    @property
    def process_url(self) -> str:
        return f"{self.base_url}{self.resource_key}.json?"

    @property
    def properties_url(self) -> str:
        return f"{self.base_url}accessibleProperties?resource={self.resource_key}"

    @property
    def evidence_keys_url(self) -> str:
        return f"{self.base_url}evidencekeys"


@dataclass(frozen=True)
class CloudRequestSettings:
    """
    Settings for a CloudRequestEngine.

    Only resource_key is required, and it is only checked when an engine
    is built from these settings.
    """
    resource_key: Optional[str] = None
    cloud_endpoint: Optional[str] = None
    cloud_request_origin: Optional[str] = None
    transport: Optional[Transport] = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> 'CloudRequestSettings':
        """Build settings from a dict using snake_case or camelCase names."""
        values = {}
        for field_name, aliases in _ALIASES.items():
            for alias in aliases:
                if alias in settings and settings[alias] is not None:
                    values[field_name] = settings[alias]
                    break
        return cls(**values)

    @classmethod
    def load(cls, config_path: Path) -> 'CloudRequestSettings':
        """Load settings from a JSON file."""
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)

        if not isinstance(config, dict):
            raise ConfigurationError(f"Settings file {config_path} must contain a JSON object")

        return cls.from_mapping(config)

    def resolve_base_url(self) -> str:
        if self.cloud_endpoint:
            return normalize_base_url(self.cloud_endpoint)

        env_url = os.environ.get(FOD_CLOUD_API_URL)
        if env_url:
            return normalize_base_url(env_url)

        return BASE_URL_DEFAULT

    def identity(self) -> ResourceIdentity:
        """
        Resolve the resource identity.

        Raises ConfigurationError if no resource key is set.
        """
        if not self.resource_key:
            raise ConfigurationError("CloudRequestEngine needs a resource key")

        return ResourceIdentity(
            resource_key=self.resource_key,
            base_url=self.resolve_base_url(),
            origin=self.cloud_request_origin or None
        )
