"""
Property Resolution Layer

Turns the raw cloud response into per-property outcomes.

OUTCOMES:
=========
- Value(v):        key present with a non-null value
- NoValue(reason): key present with null; reason from '<name>nullreason'
- Absent:          key missing from the module's data

get() converts Absent into PropertyNotFoundError listing the properties the
schema declares for that module. resolve() never raises for a missing key.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union
import json
import threading

from .constants import (
    MISSING_PROPERTY_PREFIX,
    MODULE_NOT_IN_CLOUD_RESOURCE,
    NO_VALUE_REASON_DEFAULT,
    PROPERTY_NOT_IN_CLOUD_RESOURCE,
    PROPERTY_NOT_RETURNED,
)
from .engine import CLOUD_DATA_KEY, CloudRequestEngine
from .errors import CloudErrorCode, CloudRequestError, PropertyNotFoundError
from .flow import FlowData, FlowElement
from .schema import SchemaCache, available_names

NULL_REASON_SUFFIX = "nullreason"


# =============================================================================
# OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class Value:
    value: Any

    @property
    def has_value(self) -> bool:
        return True


@dataclass(frozen=True)
class NoValue:
    reason: str

    @property
    def has_value(self) -> bool:
        return False


@dataclass(frozen=True)
class Absent:
    module: str
    property_name: str

    @property
    def has_value(self) -> bool:
        return False


PropertyOutcome = Union[Value, NoValue, Absent]


# =============================================================================
# RESOLVER
# =============================================================================

class PropertyResolver:
    """
    Resolves property lookups against one raw cloud response.

    The body is parsed on first lookup and the parsed modules are cached.
    Module and property names are case-insensitive.
    """

    def __init__(self, raw_json: str, schema: SchemaCache):
        self._raw_json = raw_json
        self._schema = schema
        self._lock = threading.Lock()
        self._modules: Optional[Dict[str, Dict[str, Any]]] = None

    def _parsed(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            if self._modules is None:
                self._modules = self._parse(self._raw_json)
            return self._modules

    @staticmethod
    def _parse(raw_json: str) -> Dict[str, Dict[str, Any]]:
        try:
            payload = json.loads(raw_json)
        except ValueError as e:
            raise CloudRequestError(
                f"Invalid JSON in cloud response: {e}",
                error_code=CloudErrorCode.INVALID_RESPONSE,
                response_body=raw_json
            ) from e

        if not isinstance(payload, dict):
            raise CloudRequestError(
                "Cloud response is not a JSON object",
                error_code=CloudErrorCode.INVALID_RESPONSE,
                response_body=raw_json
            )

        modules = {}
        for module, data in payload.items():
            if isinstance(data, dict):
                modules[module.lower()] = {str(k).lower(): v for k, v in data.items()}
        return modules

    def module_data(self, module: str) -> Mapping[str, Any]:
        """Lower-cased data of one module; empty if the response omitted it."""
        return self._parsed().get(module.lower(), {})

    def resolve(self, module: str, name: str) -> PropertyOutcome:
        data = self.module_data(module)
        key = name.lower()

        if key not in data:
            return Absent(module=module, property_name=name)

        value = data[key]
        if value is not None:
            return Value(value)

        reason = data.get(key + NULL_REASON_SUFFIX)
        if reason is None:
            return NoValue(NO_VALUE_REASON_DEFAULT)
        return NoValue(str(reason))

    def get(self, module: str, name: str) -> Union[Value, NoValue]:
        outcome = self.resolve(module, name)
        if isinstance(outcome, Absent):
            raise self.not_found(module, name)
        return outcome

    def not_found(self, module: str, name: str) -> PropertyNotFoundError:
        """Build the error for a property missing from a module's data."""
        metas = self._schema.module_properties(module)
        available = tuple(available_names(metas))
        message = MISSING_PROPERTY_PREFIX.format(name=name, module=module)

        if metas is None:
            message += MODULE_NOT_IN_CLOUD_RESOURCE.format(module=module)
        elif name.lower() in metas:
            message += PROPERTY_NOT_RETURNED.format(module=module)
        else:
            message += PROPERTY_NOT_IN_CLOUD_RESOURCE.format(
                module=module,
                available=", ".join(available)
            )

        return PropertyNotFoundError(message, module=module, property_name=name, available=available)


# =============================================================================
# MODULE DATA & ELEMENT
# =============================================================================

class CloudAspectData:
    """Property access for one module of a cloud response."""

    def __init__(self, module: str, resolver: PropertyResolver):
        self._module = module
        self._resolver = resolver

    @property
    def module(self) -> str:
        return self._module

    def resolve(self, name: str) -> PropertyOutcome:
        return self._resolver.resolve(self._module, name)

    def get(self, name: str) -> Union[Value, NoValue]:
        return self._resolver.get(self._module, name)

    def __getitem__(self, name: str) -> Union[Value, NoValue]:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return not isinstance(self.resolve(name), Absent)


class CloudAspectEngine(FlowElement):
    """
    Exposes one module of the cloud response under its own data key.

    Must run after a CloudRequestEngine in the same pipeline.
    """

    def __init__(self, data_key: str, request_engine: Optional[CloudRequestEngine] = None):
        self.data_key = data_key
        self._request_engine = request_engine

    def _find_request_engine(self, flow_data: FlowData) -> CloudRequestEngine:
        if self._request_engine is not None:
            return self._request_engine
        element = flow_data.pipeline.get_element(CLOUD_DATA_KEY)
        if not isinstance(element, CloudRequestEngine):
            raise RuntimeError(
                f"'{self.data_key}' needs a CloudRequestEngine earlier in the pipeline"
            )
        self._request_engine = element
        return element

    def process(self, flow_data: FlowData) -> None:
        engine = self._find_request_engine(flow_data)
        cloud_data = flow_data.get(CLOUD_DATA_KEY)
        resolver = PropertyResolver(cloud_data.cloud, engine.schema)
        flow_data.set_element_data(self.data_key, CloudAspectData(self.data_key, resolver))

    @property
    def properties(self) -> Mapping[str, Mapping[str, Any]]:
        if self._request_engine is None:
            return {}
        return self._request_engine.schema.module_properties(self.data_key) or {}
