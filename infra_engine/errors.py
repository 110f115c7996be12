# infra_engine/errors.py
"""
Engine error taxonomy.

Errors are values: passes collect them and hand them back with the
result instead of raising. Only ConfigurationError is raised, from the
loaders, when knowledge-base or template data is malformed.
"""

from typing import Any, List, Optional
from dataclasses import dataclass, field

from .construct.models import BaseConstruct, Resource


class EngineError(Exception):
    """Base for everything the engine reports."""

    cause: Any = None

    def __str__(self) -> str:
        return str(self.cause)


class ConfigurationError(EngineError):
    """
    Malformed knowledge-base, template or provider data.

    Kept apart from runtime graph errors: it means the inputs the engine
    was built with are wrong, not the graph being solved.
    """

    def __init__(self, cause: Any):
        super().__init__(cause)
        self.cause = cause


@dataclass(eq=False)
class ConstructExpansionError(EngineError):
    """A construct could not be expanded. Scoped to that construct."""
    construct: BaseConstruct
    cause: Any = None

    def __str__(self) -> str:
        return f"construct expansion failed for {self.construct.id}: {self.cause}"


@dataclass(eq=False)
class EdgeExpansionError(EngineError):
    """A dependency could not be resolved to a valid path. Scoped to that edge."""
    edge: Any
    cause: Any = None

    def __str__(self) -> str:
        return f"edge expansion failed for {self.edge}: {self.cause}"


class NoKnowledgeBasePathError(EdgeExpansionError):
    """The knowledge base has no path between the two types."""


class NoAttributeSatisfyingPathError(EdgeExpansionError):
    """Paths exist, but none satisfies the required attributes."""


class OnlyUnnecessaryHopPathsError(EdgeExpansionError):
    """Every attribute-satisfying path routes through a redundant node."""


class EmptyPathError(EdgeExpansionError):
    """A path was chosen but materialized into no edges."""


class UnresolvedDependencyError(EdgeExpansionError):
    """A dependency left in the solved graph has no knowledge-base edge template."""


@dataclass(eq=False)
class OperationalResourceError(EngineError):
    """
    Cardinality shortfall that remediation may be able to fill.

    Carries everything handle_operational_resource_error needs.
    """
    resource: Resource
    needs: List[str]
    direction: Any
    count: int
    cause: Any = None
    parent: Optional[Resource] = None
    must_create: bool = False
    create_unsatisfied: bool = False

    def __str__(self) -> str:
        return (
            f"resource {self.resource.id} needs {self.count} {self.direction.value} "
            f"of {self.needs}: {self.cause}"
        )


@dataclass(eq=False)
class ResourceNotOperationalError(EngineError):
    """Cardinality violation that cannot be remediated."""
    resource: Resource
    cause: Any = None

    def __str__(self) -> str:
        return f"resource {self.resource.id} is not operational: {self.cause}"


@dataclass(eq=False)
class InternalError(EngineError):
    """Unexpected invariant violation, always wrapping a more specific error."""
    child: EngineError
    cause: Any = None

    def __str__(self) -> str:
        return f"internal error: {self.cause} ({self.child})"


@dataclass
class ErrorList:
    """Errors collected over a pass."""
    errors: List[EngineError] = field(default_factory=list)

    def append(self, error: Optional[EngineError]):
        if error is not None:
            self.errors.append(error)

    def extend(self, errors):
        for error in errors:
            self.append(error)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def of_type(self, error_type) -> List[EngineError]:
        return [e for e in self.errors if isinstance(e, error_type)]
