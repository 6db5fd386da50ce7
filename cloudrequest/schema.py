"""
Remote Schema Cache

Lazily fetched, process-lifetime schema artifacts for one resource:

- the evidence keys the cloud service reads
- the property metadata of each module, indexed by lower-cased name

CONCURRENCY:
============
Each artifact lives in a ComputeOnce cell. Concurrent first callers
serialise on the cell's lock, so exactly one fetch happens and nobody sees
a half-built tree. A failed fetch publishes nothing, so the next caller
retries.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Generic, List, Mapping, Optional, TypeVar
import json
import logging
import threading

from .dispatcher import CloudRequestDispatcher
from .errors import CloudErrorCode, CloudRequestError

logger = logging.getLogger(__name__)

T = TypeVar('T')

PropertyMeta = Mapping[str, Any]
ModuleProperties = Mapping[str, Mapping[str, PropertyMeta]]


class ComputeOnce(Generic[T]):
    """
    Thread-safe lazily computed value.

    The factory runs at most once per successful computation. If it raises,
    the cell stays empty and the exception propagates to that caller.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def get(self) -> T:
        if self._ready:
            return self._value
        with self._lock:
            if not self._ready:
                value = self._factory()
                self._value = value
                self._ready = True
        return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = None
            self._ready = False


def lower_case_keys(node: Any) -> Any:
    """Recursively lower-case every mapping key in a JSON tree."""
    if isinstance(node, dict):
        return {str(key).lower(): lower_case_keys(value) for key, value in node.items()}
    if isinstance(node, list):
        return [lower_case_keys(item) for item in node]
    return node


def _parse_json(body: str, what: str) -> Any:
    try:
        return json.loads(body)
    except ValueError as e:
        raise CloudRequestError(
            f"Invalid JSON in {what} response: {e}",
            error_code=CloudErrorCode.INVALID_RESPONSE,
            status_code=200,
            response_body=body
        ) from e


def parse_properties(body: str) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Parse an accessibleProperties response.

    Returns {module: {lower-cased property name: metadata}}, with every key
    of every metadata tree lower-cased.
    """
    payload = lower_case_keys(_parse_json(body, "accessible properties"))
    products = payload.get("products") if isinstance(payload, dict) else None
    if not isinstance(products, dict):
        raise CloudRequestError(
            "Accessible properties response has no 'products'",
            error_code=CloudErrorCode.INVALID_RESPONSE,
            status_code=200,
            response_body=body
        )

    by_module: Dict[str, Dict[str, Dict[str, Any]]] = {}
    for module, product in products.items():
        metas = product.get("properties", []) if isinstance(product, dict) else []
        by_module[module] = {
            str(meta["name"]).lower(): meta
            for meta in metas
            if isinstance(meta, dict) and "name" in meta
        }
    return by_module


def parse_evidence_keys(body: str) -> FrozenSet[str]:
    keys = _parse_json(body, "evidence keys")
    if not isinstance(keys, list):
        raise CloudRequestError(
            "Evidence keys response is not a list",
            error_code=CloudErrorCode.INVALID_RESPONSE,
            status_code=200,
            response_body=body
        )
    return frozenset(str(key) for key in keys)


class SchemaCache:
    """Schema artifacts for the resource served by one dispatcher."""

    def __init__(self, dispatcher: CloudRequestDispatcher):
        self._dispatcher = dispatcher
        self._evidence_keys: ComputeOnce[FrozenSet[str]] = ComputeOnce(self._fetch_evidence_keys)
        self._properties: ComputeOnce[ModuleProperties] = ComputeOnce(self._fetch_properties)

    def ensure_evidence_keys(self) -> FrozenSet[str]:
        return self._evidence_keys.get()

    def ensure_properties(self) -> ModuleProperties:
        return self._properties.get()

    def module_properties(self, module: str) -> Optional[Mapping[str, PropertyMeta]]:
        """Metadata for one module, or None if the resource has no such module."""
        return self.ensure_properties().get(module.lower())

    @property
    def is_primed(self) -> bool:
        return self._evidence_keys.is_ready and self._properties.is_ready

    def invalidate(self) -> None:
        """Drop both artifacts; the next use fetches again."""
        self._evidence_keys.reset()
        self._properties.reset()

    def _fetch_evidence_keys(self) -> FrozenSet[str]:
        logger.debug("Fetching evidence keys from %s", self._dispatcher.identity.evidence_keys_url)
        return parse_evidence_keys(self._dispatcher.fetch_evidence_keys())

    def _fetch_properties(self) -> ModuleProperties:
        logger.debug("Fetching accessible properties from %s", self._dispatcher.identity.properties_url)
        by_module = parse_properties(self._dispatcher.fetch_properties())
        return MappingProxyType({
            module: MappingProxyType(metas) for module, metas in by_module.items()
        })


def available_names(metas: Optional[Mapping[str, PropertyMeta]]) -> List[str]:
    """Declared property names of a module, in schema order."""
    if not metas:
        return []
    return [str(meta.get("name", key)) for key, meta in metas.items()]
