# infra_engine/knowledgebase/models.py
"""
Knowledge base models.

Core entities:
- EdgeTemplate: A valid directed connection between two resource types
- EdgeConstraint / EdgeData: What a dependency requires of its path
- OperationalRule: Cardinality constraint a resource must satisfy
- ResourceTemplate: Rules and default configuration for a resource type
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type
from dataclasses import dataclass, field

from ..construct.models import DeleteContext, Resource

# configure(source, destination, graph, edge_data)
ConfigureFn = Callable[[Any, Any, Any, "EdgeData"], None]


@dataclass(frozen=True)
class EdgeTemplate:
    """
    Valid edge between two resource types.

    direct_edge_only templates can only be used as a one-edge path,
    never as a hop inside a longer path.
    """
    source: Type[Resource]
    destination: Type[Resource]
    configure: Optional[ConfigureFn] = None
    direct_edge_only: bool = False

    @property
    def key(self) -> Tuple[Type[Resource], Type[Resource]]:
        return (self.source, self.destination)

    def __str__(self) -> str:
        return f"{self.source.type_name()} -> {self.destination.type_name()}"


# Ordered chain of templates from a source type to a destination type
Path = Tuple[EdgeTemplate, ...]


def path_to_string(path: Path) -> str:
    """Concatenated "<src> -> <dst>" per edge. Used for tie-breaking."""
    return "".join(str(edge) for edge in path)


def path_types(path: Path) -> List[Type[Resource]]:
    """Every resource type on the path, in order."""
    if not path:
        return []
    return [path[0].source] + [edge.destination for edge in path]


@dataclass
class EdgeConstraint:
    """Constraint on which nodes a path must or must not contain."""
    node_must_exist: List[Resource] = field(default_factory=list)
    node_must_not_exist: List[Resource] = field(default_factory=list)

    @property
    def must_exist_types(self) -> List[Type[Resource]]:
        return [type(res) for res in self.node_must_exist]

    @property
    def must_not_exist_types(self) -> List[Type[Resource]]:
        return [type(res) for res in self.node_must_not_exist]

    def cache_key(self) -> Tuple:
        return (
            tuple(str(res.id) for res in self.node_must_exist),
            tuple(str(res.id) for res in self.node_must_not_exist),
        )


@dataclass
class EdgeData:
    """Data attached to a dependency and consumed during edge expansion."""
    attributes: Dict[str, Any] = field(default_factory=dict)
    constraint: EdgeConstraint = field(default_factory=EdgeConstraint)
    source: Optional[Resource] = None
    destination: Optional[Resource] = None


# ============================================================
# OPERATIONAL RULES
# ============================================================

class Direction(Enum):
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"


class Enforcement(Enum):
    EXACTLY_ONE = "exactly_one"
    CONDITIONAL = "conditional"
    ANY_AVAILABLE = "any_available"


class UnsatisfiedActionOperation(Enum):
    NONE = ""
    CREATE_UNSATISFIED_RESOURCE = "create_unsatisfied_resource"


@dataclass(frozen=True)
class UnsatisfiedAction:
    operation: UnsatisfiedActionOperation = UnsatisfiedActionOperation.NONE

    @property
    def creates(self) -> bool:
        return self.operation == UnsatisfiedActionOperation.CREATE_UNSATISFIED_RESOURCE


@dataclass
class OperationalRule:
    """
    Cardinality constraint attached to a resource type.

    Sub-rules only run once this rule is satisfied, with the matched
    resource as their parent.
    """
    enforcement: Enforcement
    direction: Direction
    resource_types: List[str] = field(default_factory=list)
    classifications: List[str] = field(default_factory=list)
    num_needed: int = 1
    set_field: str = ""
    rules: List["OperationalRule"] = field(default_factory=list)
    unsatisfied_action: UnsatisfiedAction = field(default_factory=UnsatisfiedAction)
    remove_direct_dependency: bool = False
    must_create: bool = False

    @property
    def needed(self) -> int:
        return self.num_needed if self.num_needed > 0 else 1

    def describe(self) -> str:
        return (
            f"{self.enforcement.value} {self.direction.value} "
            f"types={self.resource_types} classifications={self.classifications}"
        )


@dataclass(frozen=True)
class Configuration:
    """Literal default for a (dotted) field path."""
    field: str
    value: Any


@dataclass
class ResourceTemplate:
    """Operational rules and default configuration for one resource type."""
    type: str
    rules: List[OperationalRule] = field(default_factory=list)
    configuration: List[Configuration] = field(default_factory=list)
    delete_context: Optional[DeleteContext] = None
