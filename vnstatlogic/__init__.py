from . import (
    canon,
    types,
    exceptions,
    constraints,
    schema,
    normalize,
    aggregate,
    collector,
    service,
)
from .constraints import validate
from .service import GRANULARITIES, TrafficService

__all__ = [
    "canon",
    "types",
    "exceptions",
    "constraints",
    "schema",
    "normalize",
    "aggregate",
    "collector",
    "service",
    "validate",
    "GRANULARITIES",
    "TrafficService",
]
