"""
Evidence Precedence Resolver

Reduces namespaced evidence ("prefix.suffix" -> value) to the flat query
map sent to the cloud service.

PRECEDENCE:
===========
Evidence is bucketed by prefix and merged in the order
other -> cookie -> header -> query, so later buckets overwrite earlier
ones that share a suffix. The 'other' bucket is merged in descending key
order.

GUARANTEES:
===========
1. Exactly one entry per lower-cased suffix
2. 'query' evidence overwrites silently
3. Any other overwrite is reported as an EvidenceConflict, never raised
4. Input mapping is never modified
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from .constants import (
    EVIDENCE_COOKIE_PREFIX,
    EVIDENCE_HTTPHEADER_PREFIX,
    EVIDENCE_OTHER,
    EVIDENCE_PRECEDENCE,
    EVIDENCE_QUERY_PREFIX,
    EVIDENCE_SEPARATOR,
    WARNING_MESSAGE,
)

logger = logging.getLogger(__name__)

_NAMED_PREFIXES = (
    EVIDENCE_QUERY_PREFIX,
    EVIDENCE_HTTPHEADER_PREFIX,
    EVIDENCE_COOKIE_PREFIX,
)


@dataclass(frozen=True)
class EvidenceConflict:
    """
    A non-query evidence entry that overwrote an existing suffix.

    conflicts holds every other supplied (key, value) with the same suffix.
    """
    key: str
    value: Any
    conflicts: Tuple[Tuple[str, Any], ...]

    @property
    def message(self) -> str:
        joined = ", ".join(f"{k}=>{v}" for k, v in self.conflicts)
        return WARNING_MESSAGE.format(key=self.key, value=self.value, conflicts=joined)


@dataclass(frozen=True)
class EvidenceResolution:
    """Resolved query map plus the conflicts found while building it."""
    query: Dict[str, Any]
    conflicts: Tuple[EvidenceConflict, ...] = ()


def split_key(key: str) -> Optional[Tuple[str, str]]:
    """
    Return the lower-cased (prefix, suffix) of an evidence key.

    Only the first and last segments are used. Keys without a separator
    have no suffix and yield None.
    """
    parts = key.split(EVIDENCE_SEPARATOR)
    if len(parts) < 2:
        return None
    return parts[0].lower(), parts[-1].lower()


def key_has_prefix(key: str, prefix: str) -> bool:
    """Case-insensitive check of the first segment of an evidence key."""
    return key.split(EVIDENCE_SEPARATOR)[0].lower() == prefix.lower()


def select_evidence(evidence: Mapping[str, Any], bucket: str) -> List[Tuple[str, Any]]:
    """
    Select the entries of one precedence bucket, in merge order.

    The 'other' bucket takes every key whose prefix is not query, header or
    cookie, sorted by full key in descending order.
    """
    if bucket == EVIDENCE_OTHER:
        selected = [
            (key, value) for key, value in evidence.items()
            if not any(key_has_prefix(key, prefix) for prefix in _NAMED_PREFIXES)
        ]
        selected.sort(key=lambda item: item[0], reverse=True)
        return selected

    return [
        (key, value) for key, value in evidence.items()
        if key_has_prefix(key, bucket)
    ]


def _find_conflicts(
    evidence: Mapping[str, Any],
    key: str,
    suffix: str
) -> Tuple[Tuple[str, Any], ...]:
    found = []
    for other_key, other_value in evidence.items():
        if other_key.lower() == key.lower():
            continue
        parts = split_key(other_key)
        if parts is not None and parts[1] == suffix:
            found.append((other_key, other_value))
    return tuple(found)


def resolve_evidence(evidence: Mapping[str, Any]) -> EvidenceResolution:
    """
    Merge evidence into the query map sent to the cloud service.

    An empty mapping yields an empty query map.
    """
    query: Dict[str, Any] = {}
    conflicts: List[EvidenceConflict] = []

    for bucket in EVIDENCE_PRECEDENCE:
        for key, value in select_evidence(evidence, bucket):
            parts = split_key(key)
            if parts is None:
                continue
            prefix, suffix = parts

            if suffix in query and prefix != EVIDENCE_QUERY_PREFIX:
                found = _find_conflicts(evidence, key, suffix)
                if found:
                    conflict = EvidenceConflict(key=key, value=value, conflicts=found)
                    logger.warning(conflict.message)
                    conflicts.append(conflict)

            query[suffix] = value

    return EvidenceResolution(query=query, conflicts=tuple(conflicts))
