# infra_engine/engine/construct_expansion.py
"""
Construct expansion.

Maps one abstract construct and its required attributes onto candidate
resource subgraphs:

1. Pick base resource types tagged with the construct's functionality
2. For every attribute the base type does not carry itself, attach a
   reachable resource type that grants it for that functionality
3. Deduplicate the resulting subgraphs, then name and bind them to the
   construct
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type
from dataclasses import dataclass, field

from ..classification.document import ClassificationDocument
from ..construct.graph import ResourceGraph
from ..construct.models import BaseConstructSet, Construct, Resource, ResourceId
from ..errors import ConstructExpansionError
from ..knowledgebase.knowledge_base import KnowledgeBase
from ..logging import get_engine_logger
from .edge_expansion import contains_unnecessary_hops

logger = get_engine_logger("construct_expansion")


@dataclass
class ConstructConstraint:
    """
    External requirement on how a construct expands.

    type pins the base resource type; attributes are merged with the
    construct's own.
    """
    target: ResourceId
    type: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExpansionSet:
    """A construct and the attribute names it needs satisfied."""
    construct: Construct
    attributes: List[str] = field(default_factory=list)


@dataclass
class ExpansionSolution:
    """
    Candidate subgraph for a construct.

    directly_mapped_resources are the base resources chosen for the
    construct, as opposed to the ones attached to satisfy attributes.
    """
    graph: ResourceGraph
    directly_mapped_resources: List[Resource] = field(default_factory=list)


class ConstructExpander:
    """Expands constructs against a provider type catalog."""

    def __init__(
        self,
        resource_types: Sequence[Type[Resource]],
        knowledge_base: KnowledgeBase,
        classifications: ClassificationDocument,
    ):
        self.resource_types = list(resource_types)
        self.knowledge_base = knowledge_base
        self.classifications = classifications
        self._reachable: Dict[Tuple[type, type], bool] = {}

    def required_attributes(
        self,
        construct: Construct,
        constraints: Iterable[ConstructConstraint] = (),
    ) -> Tuple[str, Dict[str, Any], Optional[ConstructExpansionError]]:
        """
        Merge constraint attributes with the construct's own.

        Returns:
            (pinned_type, attributes, error) - error on conflicting values
            or conflicting pinned types
        """
        construct_type = ""
        attributes: Dict[str, Any] = {}

        for constraint in constraints:
            if constraint.target != construct.id:
                continue
            if constraint.type:
                if construct_type and construct_type != constraint.type:
                    return "", {}, ConstructExpansionError(
                        construct=construct,
                        cause=f"unable to expand construct {construct.id}, conflicting types in constraints",
                    )
                construct_type = constraint.type
            error = _merge_attributes(construct, attributes, constraint.attributes)
            if error is not None:
                return "", {}, error

        error = _merge_attributes(construct, attributes, construct.attributes)
        if error is not None:
            return "", {}, error
        return construct_type, attributes, None

    def expand(
        self,
        construct: Construct,
        constraints: Iterable[ConstructConstraint] = (),
    ) -> Tuple[List[ExpansionSolution], Optional[ConstructExpansionError]]:
        """
        All distinct expansion solutions for a construct.

        Returns:
            (solutions, error) - error when nothing resolves; solutions are
            already named "<type>-<construct name>" and bound to the construct
        """
        construct_type, attributes, error = self.required_attributes(construct, constraints)
        if error is not None:
            return [], error

        expansion_set = ExpansionSet(construct=construct, attributes=sorted(attributes))
        solutions, error = self._find_possible_expansions(expansion_set, construct_type)
        if error is not None:
            return [], error

        unique: List[ExpansionSolution] = []
        seen = set()
        for solution in solutions:
            key = str(solution.graph)
            if key in seen:
                continue
            seen.add(key)
            unique.append(solution)

        logger.debug(
            "construct_expanded",
            construct=str(construct.id),
            candidates=len(solutions),
            solutions=len(unique),
        )
        return [_bind_to_construct(construct, solution) for solution in unique], None

    def _find_possible_expansions(
        self,
        expansion_set: ExpansionSet,
        construct_type: str,
    ) -> Tuple[List[ExpansionSolution], Optional[ConstructExpansionError]]:
        construct = expansion_set.construct
        functionality = construct.functionality

        candidates = [
            resource_type for resource_type in self.resource_types
            if (not construct_type or resource_type.TYPE == construct_type)
            and functionality.value in self.classifications.get_classification(resource_type).is_
        ]
        if not candidates:
            return [], ConstructExpansionError(
                construct=construct,
                cause=f"no resource types found for functionality {functionality.value}"
                      + (f" and type {construct_type}" if construct_type else ""),
            )

        solutions: List[ExpansionSolution] = []
        for resource_type in candidates:
            base = resource_type()
            tags = self.classifications.get_classification(resource_type).is_
            unsatisfied = [a for a in expansion_set.attributes if a not in tags]

            graph = ResourceGraph()
            graph.add_resource(base)
            for expansion in self._find_expansions(unsatisfied, graph, base, functionality):
                solutions.append(ExpansionSolution(graph=expansion, directly_mapped_resources=[base]))

        if not solutions:
            return [], ConstructExpansionError(
                construct=construct,
                cause=f"no expansions found for attributes {expansion_set.attributes}",
            )
        return solutions, None

    def _find_expansions(
        self,
        attributes: List[str],
        graph: ResourceGraph,
        base: Resource,
        functionality,
    ) -> List[ResourceGraph]:
        """
        Every assignment of attribute -> granting resource type.

        Each branch works on its own clone, so sibling branches never see
        each other's dependencies.
        """
        if not attributes:
            return [graph]

        expansions: List[ResourceGraph] = []
        for attribute in attributes:
            remaining = [a for a in attributes if a != attribute]
            for resource_type in self.resource_types:
                if resource_type is type(base):
                    continue
                if not self.classifications.gives_attribute_for_functionality(
                    resource_type, attribute, functionality
                ):
                    continue
                if not self._is_reachable(type(base), resource_type):
                    continue
                branch = graph.clone()
                branch.add_dependency(base, resource_type())
                expansions.extend(self._find_expansions(remaining, branch, base, functionality))
        return expansions

    def _is_reachable(self, source_type: type, destination_type: type) -> bool:
        """Whether any knowledge-base path between the types avoids unnecessary hops."""
        key = (source_type, destination_type)
        if key not in self._reachable:
            self._reachable[key] = any(
                not contains_unnecessary_hops(self.classifications, source_type, destination_type, path)
                for path in self.knowledge_base.find_paths(source_type, destination_type)
            )
        return self._reachable[key]


def _merge_attributes(
    construct: Construct,
    attributes: Dict[str, Any],
    incoming: Dict[str, Any],
) -> Optional[ConstructExpansionError]:
    for key, value in incoming.items():
        if key in attributes and attributes[key] != value:
            return ConstructExpansionError(
                construct=construct,
                cause=f"unable to expand construct {construct.id}, attribute {key} has conflicting values",
            )
        attributes[key] = value
    return None


def _bind_to_construct(construct: Construct, solution: ExpansionSolution) -> ExpansionSolution:
    """Fresh, named instances referencing only the construct, with edges remapped."""
    graph = ResourceGraph()
    mapping: Dict[ResourceId, Resource] = {}
    for resource in solution.graph.list_resources():
        bound = type(resource)(
            name=f"{resource.TYPE}-{construct.name}",
            construct_refs=BaseConstructSet.of(construct),
        )
        mapping[resource.id] = bound
        graph.add_resource(bound)

    for dependency in solution.graph.list_dependencies():
        graph.add_dependency(mapping[dependency.source.id], mapping[dependency.destination.id])

    return ExpansionSolution(
        graph=graph,
        directly_mapped_resources=[mapping[res.id] for res in solution.directly_mapped_resources],
    )
