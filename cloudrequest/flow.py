"""
Flow Context and Pipeline

Minimal flow execution used to run cloud elements over one unit of work.

DESIGN:
=======
1. Evidence is supplied by the caller before processing
2. Elements run in order; each stores its result under its data key
3. A failing element either aborts processing or, with
   suppress_process_exceptions, is recorded in FlowData.errors while
   later elements still run
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# EVIDENCE
# =============================================================================

class Evidence:
    """Ordered evidence store for one unit of work. Keys keep their case."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._items: Dict[str, Any] = {}
        if initial:
            self.set_all(initial)

    def set(self, key: str, value: Any) -> None:
        self._items[key] = value

    def set_all(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Case-insensitive lookup."""
        if key in self._items:
            return self._items[key]
        lowered = key.lower()
        for existing, value in self._items.items():
            if existing.lower() == lowered:
                return value
        return default

    def get_all(self) -> Dict[str, Any]:
        """Copy of all evidence, in insertion order."""
        return dict(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))


class EvidenceKeyFilter:
    """Case-insensitive allow-list of evidence keys."""

    def __init__(self, keys: Iterable[str] = ()):
        self._keys = frozenset(key.lower() for key in keys)

    @property
    def keys(self) -> frozenset:
        return self._keys

    def include(self, key: str) -> bool:
        return key.lower() in self._keys

    def filter(self, evidence: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in evidence.items() if self.include(key)}

    def union(self, other: 'EvidenceKeyFilter') -> 'EvidenceKeyFilter':
        return EvidenceKeyFilter(self._keys | other.keys)


# =============================================================================
# ELEMENTS
# =============================================================================

class FlowElement(ABC):
    """
    Abstract pipeline element.

    Concrete elements store exactly one result under `data_key`.
    """

    data_key: str = ""

    @abstractmethod
    def process(self, flow_data: 'FlowData') -> None:
        """Process one unit of work. Raise on failure."""
        raise NotImplementedError

    @property
    def evidence_key_filter(self) -> EvidenceKeyFilter:
        return EvidenceKeyFilter()

    @property
    def properties(self) -> Mapping[str, Mapping[str, Any]]:
        return {}


# =============================================================================
# FLOW DATA
# =============================================================================

class FlowData:
    """Evidence, element results and element errors for one unit of work."""

    def __init__(self, pipeline: 'Pipeline'):
        self._pipeline = pipeline
        self.evidence = Evidence()
        self._element_data: Dict[str, Any] = {}
        self.errors: Dict[str, Exception] = {}
        self._processed = False

    @property
    def pipeline(self) -> 'Pipeline':
        return self._pipeline

    def set_element_data(self, data_key: str, data: Any) -> None:
        self._element_data[data_key] = data

    def get(self, data_key: str) -> Any:
        """
        Result stored by the element with this data key.

        Raises KeyError if that element stored nothing.
        """
        if data_key not in self._element_data:
            raise KeyError(f"No element data for '{data_key}'")
        return self._element_data[data_key]

    def get_from_element(self, element: FlowElement) -> Any:
        return self.get(element.data_key)

    def has(self, data_key: str) -> bool:
        return data_key in self._element_data

    def process(self) -> 'FlowData':
        if self._processed:
            raise RuntimeError("FlowData has already been processed")
        self._processed = True

        for element in self._pipeline.elements:
            try:
                element.process(self)
            except Exception as e:
                if not self._pipeline.suppress_process_exceptions:
                    raise
                logger.warning(
                    "Element '%s' failed; recorded and continuing: %s",
                    element.data_key, e
                )
                self.errors[element.data_key] = e

        return self


# =============================================================================
# PIPELINE
# =============================================================================

class Pipeline:
    """Ordered collection of flow elements."""

    def __init__(self, elements: List[FlowElement], suppress_process_exceptions: bool = False):
        self._elements = list(elements)
        self.suppress_process_exceptions = suppress_process_exceptions

    @property
    def elements(self) -> List[FlowElement]:
        return list(self._elements)

    def get_element(self, data_key: str) -> Optional[FlowElement]:
        for element in self._elements:
            if element.data_key == data_key:
                return element
        return None

    def create_flow_data(self) -> FlowData:
        return FlowData(self)

    @property
    def evidence_key_filter(self) -> EvidenceKeyFilter:
        """Union of every element's evidence key filter."""
        combined = EvidenceKeyFilter()
        for element in self._elements:
            combined = combined.union(element.evidence_key_filter)
        return combined
