# Infrastructure resolution engine
from .errors import (
    ConfigurationError,
    ConstructExpansionError,
    EdgeExpansionError,
    EmptyPathError,
    EngineError,
    ErrorList,
    InternalError,
    NoAttributeSatisfyingPathError,
    NoKnowledgeBasePathError,
    OnlyUnnecessaryHopPathsError,
    OperationalResourceError,
    ResourceNotOperationalError,
    UnresolvedDependencyError,
)
from .engine import ConstructConstraint, Engine, SolveResult

__all__ = [
    # Errors
    "ConfigurationError",
    "ConstructExpansionError",
    "EdgeExpansionError",
    "EmptyPathError",
    "EngineError",
    "ErrorList",
    "InternalError",
    "NoAttributeSatisfyingPathError",
    "NoKnowledgeBasePathError",
    "OnlyUnnecessaryHopPathsError",
    "OperationalResourceError",
    "ResourceNotOperationalError",
    "UnresolvedDependencyError",
    # Engine
    "ConstructConstraint",
    "Engine",
    "SolveResult",
]
