# infra_engine/engine/decisions.py
"""
Decision models and the decision log.

Every graph mutation made during a solve is recorded as a Decision
with its cause. The log is the audit trail of the run: identical
inputs must produce identical logs.
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
from dataclasses import dataclass, field

from ..construct.graph import Edge, ResourceGraph
from ..construct.models import Construct, Resource
from ..knowledgebase.models import OperationalRule
from ..logging import get_engine_logger

logger = get_engine_logger("decisions")


class Action(Enum):
    """Kind of graph mutation."""
    CREATE = "create"
    CONNECT = "connect"
    REMOVE = "remove"


@dataclass
class DecisionResult:
    """What the decision produced: a resource or an edge."""
    resource: Optional[Resource] = None
    edge: Optional[Edge] = None

    def __str__(self) -> str:
        if self.edge is not None:
            return str(self.edge)
        if self.resource is not None:
            return str(self.resource.id)
        return ""


@dataclass
class Cause:
    """Which expansion or rule produced a decision."""
    construct_expansion: Optional[Construct] = None
    edge_expansion: Optional[Edge] = None
    operational_resource: Optional[Resource] = None
    operational_rule: Optional[OperationalRule] = None

    def __str__(self) -> str:
        if self.construct_expansion is not None:
            return f"construct expansion of {self.construct_expansion.id}"
        if self.edge_expansion is not None:
            return f"edge expansion of {self.edge_expansion}"
        if self.operational_resource is not None:
            rule = f" ({self.operational_rule.describe()})" if self.operational_rule else ""
            return f"operational rule of {self.operational_resource.id}{rule}"
        return "unknown"


@dataclass
class Decision:
    """A single graph mutation and its cause."""
    action: Action
    result: DecisionResult
    cause: Cause = field(default_factory=Cause)

    @classmethod
    def create(cls, resource: Resource, cause: Cause) -> "Decision":
        return cls(Action.CREATE, DecisionResult(resource=resource), cause)

    @classmethod
    def connect(cls, source: Resource, destination: Resource, cause: Cause, data: Any = None) -> "Decision":
        return cls(Action.CONNECT, DecisionResult(edge=Edge(source, destination, data)), cause)

    @classmethod
    def remove(cls, edge: Edge, cause: Cause) -> "Decision":
        return cls(Action.REMOVE, DecisionResult(edge=edge), cause)

    def to_dict(self) -> Dict[str, str]:
        return {
            "action": self.action.value,
            "result": str(self.result),
            "cause": str(self.cause),
        }

    def __str__(self) -> str:
        return f"{self.action.value} {self.result} ({self.cause})"


def apply_decision(graph: ResourceGraph, decision: Decision) -> bool:
    """
    Apply a decision to the graph.

    Returns:
        True if the graph changed. Creating a resource that already exists,
        connecting an existing edge or removing a missing edge are no-ops.
        A removed edge is remembered as indirect: removal always means a
        path now carries the dependency.
    """
    result = decision.result
    if decision.action == Action.CREATE:
        if result.resource in graph:
            return False
        graph.add_resource(result.resource)
        return True

    edge = result.edge
    if decision.action == Action.CONNECT:
        if graph.has_dependency(edge.source.id, edge.destination.id):
            return False
        graph.add_dependency(edge.source, edge.destination, edge.data)
        return True

    if not graph.has_dependency(edge.source.id, edge.destination.id):
        return False
    graph.remove_dependency(edge.source.id, edge.destination.id)
    graph.mark_indirect(edge)
    return True


class DecisionLog:
    """
    Append-only record of graph mutations.

    Only decisions that changed the graph are recorded, so re-running a
    pass over an already-satisfied graph leaves the log unchanged.
    """

    def __init__(self):
        self._decisions: List[Decision] = []

    def record(self, decision: Decision):
        self._decisions.append(decision)
        logger.debug(
            "decision_recorded",
            index=len(self._decisions) - 1,
            **decision.to_dict(),
        )

    def apply(self, graph: ResourceGraph, decision: Decision) -> bool:
        """Apply to the graph and record if it changed anything."""
        changed = apply_decision(graph, decision)
        if changed:
            self.record(decision)
        return changed

    def __iter__(self) -> Iterator[Decision]:
        return iter(list(self._decisions))

    def __len__(self) -> int:
        return len(self._decisions)

    def __getitem__(self, index):
        return self._decisions[index]

    def by_action(self, action: Action) -> List[Decision]:
        return [d for d in self._decisions if d.action == action]

    def to_dicts(self) -> List[Dict[str, str]]:
        return [d.to_dict() for d in self._decisions]
