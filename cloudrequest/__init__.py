"""
Cloud Request Engine Package

Pipeline elements that enrich a flow with data from a remote detection
service.

DIRECTION OF DEPENDENCY:
========================
flow <- engine -> dispatcher -> transport
           |          ^
           v          |
        evidence    schema <- properties

COMPONENTS:
===========
- evidence:    namespace precedence merge of the flow's evidence
- schema:      compute-once cache of evidence keys and property metadata
- dispatcher:  request building and response classification
- properties:  present / no-value / absent property resolution
- flow:        minimal flow context and pipeline
"""

from .config import CloudRequestSettings, ResourceIdentity
from .dispatcher import CloudRequestDispatcher
from .engine import CloudRequestData, CloudRequestEngine
from .errors import (
    CloudErrorCode,
    CloudRequestEngineError,
    CloudRequestError,
    ConfigurationError,
    PropertyNotFoundError,
)
from .evidence import EvidenceConflict, EvidenceResolution, resolve_evidence
from .flow import Evidence, EvidenceKeyFilter, FlowData, FlowElement, Pipeline
from .properties import (
    Absent,
    CloudAspectData,
    CloudAspectEngine,
    NoValue,
    PropertyResolver,
    Value,
)
from .schema import ComputeOnce, SchemaCache

__all__ = [
    # Configuration
    'CloudRequestSettings', 'ResourceIdentity',
    # Engine
    'CloudRequestEngine', 'CloudRequestData', 'CloudRequestDispatcher',
    'SchemaCache', 'ComputeOnce',
    # Evidence
    'resolve_evidence', 'EvidenceResolution', 'EvidenceConflict',
    # Properties
    'PropertyResolver', 'CloudAspectEngine', 'CloudAspectData',
    'Value', 'NoValue', 'Absent',
    # Flow
    'Pipeline', 'FlowData', 'FlowElement', 'Evidence', 'EvidenceKeyFilter',
    # Errors
    'CloudErrorCode', 'CloudRequestEngineError', 'CloudRequestError',
    'ConfigurationError', 'PropertyNotFoundError',
]
