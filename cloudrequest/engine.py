"""
Cloud Request Engine

Flow element that sends the evidence of a unit of work to the cloud
service and stores the raw JSON response for downstream elements.

PROCESSING ORDER:
=================
1. Prime the schema cache (properties, then evidence keys) on first use
2. Resolve evidence into the query map
3. POST the query map to {base_url}{resource_key}.json?
4. Store CloudRequestData(cloud=<raw body>) under data key 'cloud'

Failures raise CloudRequestError; nothing is stored for a failed call.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union
import logging

from .config import CloudRequestSettings, ResourceIdentity
from .dispatcher import CloudRequestDispatcher
from .evidence import EvidenceConflict, resolve_evidence
from .flow import EvidenceKeyFilter, FlowData, FlowElement
from .schema import ModuleProperties, SchemaCache
from .transport.base import Transport
from .transport.client import HttpxTransport

logger = logging.getLogger(__name__)

CLOUD_DATA_KEY = "cloud"


@dataclass(frozen=True)
class CloudRequestData:
    """
    Result of one cloud request.

    cloud is the response body exactly as received.
    """
    cloud: str
    conflicts: Tuple[EvidenceConflict, ...] = ()

    def get(self, name: str) -> Any:
        if name.lower() == CLOUD_DATA_KEY:
            return self.cloud
        raise KeyError(name)


class CloudRequestEngine(FlowElement):
    """
    Calls the cloud service once per unit of work.

    Raises ConfigurationError immediately if no resource key is configured.
    Schema artifacts are fetched lazily and shared by every flow processed
    through this instance.
    """

    data_key = CLOUD_DATA_KEY

    def __init__(
        self,
        settings: Union[CloudRequestSettings, Mapping[str, Any], None] = None,
        **overrides: Any
    ):
        if settings is None:
            settings = CloudRequestSettings.from_mapping(overrides)
        elif not isinstance(settings, CloudRequestSettings):
            settings = CloudRequestSettings.from_mapping({**settings, **overrides})
        elif overrides:
            raise TypeError("Pass either a CloudRequestSettings or keyword settings, not both")

        self._settings = settings
        self._identity = settings.identity()
        self._transport = settings.transport or HttpxTransport(timeout=settings.timeout_seconds)
        self._dispatcher = CloudRequestDispatcher(self._identity, self._transport)
        self._schema = SchemaCache(self._dispatcher)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    @property
    def identity(self) -> ResourceIdentity:
        return self._identity

    @property
    def resource_key(self) -> str:
        return self._identity.resource_key

    @property
    def base_url(self) -> str:
        return self._identity.base_url

    @property
    def cloud_request_origin(self) -> Optional[str]:
        return self._identity.origin

    @property
    def schema(self) -> SchemaCache:
        return self._schema

    # =========================================================================
    # DECLARED INTEREST
    # =========================================================================

    @property
    def evidence_key_filter(self) -> EvidenceKeyFilter:
        """Evidence keys the cloud service reads (fetched on first use)."""
        return EvidenceKeyFilter(self._schema.ensure_evidence_keys())

    @property
    def properties(self) -> Mapping[str, Mapping[str, Any]]:
        return {
            CLOUD_DATA_KEY: {
                "name": CLOUD_DATA_KEY,
                "type": "string",
                "available": True,
            }
        }

    @property
    def flow_element_properties(self) -> ModuleProperties:
        """Property metadata of every module available to this resource."""
        return self._schema.ensure_properties()

    # =========================================================================
    # PROCESSING
    # =========================================================================

    def process(self, flow_data: FlowData) -> None:
        self._schema.ensure_properties()
        self._schema.ensure_evidence_keys()

        resolution = resolve_evidence(flow_data.evidence.get_all())
        logger.debug(
            "Resolved %d evidence entries into %d query parameters",
            len(flow_data.evidence), len(resolution.query)
        )
        body = self._dispatcher.process(resolution.query)

        flow_data.set_element_data(
            self.data_key,
            CloudRequestData(cloud=body, conflicts=resolution.conflicts)
        )
