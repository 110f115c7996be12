# infra_engine/engine/edge_expansion.py
"""
Knowledge-base edge expansion.

For a dependency between two resources, find every knowledge-base path
between their types, filter out paths that miss required attributes or
route through redundant nodes, rank the rest and materialize the winner.

DETERMINISTIC - ranking never depends on discovery order.

Ranking:
- weight = one point per edge endpoint with a known functionality
- lowest weight wins, then fewest edges, then the lexicographically
  smallest concatenated "<src> -> <dst>" string
"""

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ..classification.document import ClassificationDocument
from ..construct.graph import Edge, ResourceGraph
from ..construct.models import Functionality
from ..errors import (
    EdgeExpansionError,
    EmptyPathError,
    EngineError,
    InternalError,
    NoAttributeSatisfyingPathError,
    NoKnowledgeBasePathError,
    OnlyUnnecessaryHopPathsError,
)
from ..knowledgebase.knowledge_base import KnowledgeBase
from ..knowledgebase.models import EdgeData, Path, path_to_string
from ..logging import get_engine_logger
from .decisions import Cause, Decision

logger = get_engine_logger("edge_expansion")


# ============================================================
# DETERMINISTIC RANKING CONSTANTS
# ============================================================

# Weight added for every path endpoint that has an opinionated functionality
FUNCTIONAL_ENDPOINT_WEIGHT = 1


def get_edge_data(dependency: Edge) -> Tuple[EdgeData, Optional[EdgeExpansionError]]:
    """
    Edge data attached to a dependency, with its endpoints filled in.

    Returns:
        (edge_data, error) - error if the attached data is not EdgeData
    """
    data = dependency.data
    if data is None:
        edge_data = EdgeData()
    elif isinstance(data, EdgeData):
        edge_data = replace(data)
    else:
        return EdgeData(), EdgeExpansionError(
            edge=dependency,
            cause=f"edge properties for edge {dependency} do not satisfy edge data format during expansion",
        )
    edge_data.source = dependency.source
    edge_data.destination = dependency.destination
    return edge_data, None


def satisfies_attributes(
    classifications: ClassificationDocument,
    source_type: type,
    destination_type: type,
    path: Path,
    attributes: Dict,
) -> bool:
    """
    Every node of the path other than the dependency's own endpoints must
    carry each required attribute as a tag. A one-edge path has no other
    nodes, so both of its endpoints must.
    """
    direct = len(path) == 1
    for edge in path:
        for attribute in attributes:
            if (edge.source is not source_type or direct) and \
                    attribute not in classifications.get_classification(edge.source).is_:
                return False
            if (edge.destination is not destination_type or direct) and \
                    attribute not in classifications.get_classification(edge.destination).is_:
                return False
    return True


def contains_unnecessary_hops(
    classifications: ClassificationDocument,
    source_type: type,
    destination_type: type,
    path: Path,
    edge_data: Optional[EdgeData] = None,
) -> bool:
    """
    Whether a path routes through a redundant node.

    A node is redundant when it is neither endpoint of the dependency nor
    required by a must-exist constraint, and either shares a functionality
    with one of the dependency's endpoints, or shares one with another such
    node in the path.
    """
    must_exist = edge_data.constraint.must_exist_types if edge_data else []
    endpoint_functionalities = {
        classifications.get_functionality(source_type),
        classifications.get_functionality(destination_type),
    }
    endpoint_functionalities.discard(Functionality.UNKNOWN)

    for edge in path:
        for node in (edge.destination, edge.source):
            if node is source_type or node is destination_type or node in must_exist:
                continue
            if classifications.get_functionality(node) in endpoint_functionalities:
                return True

    seen = set()
    for edge in path:
        node = edge.source
        if node is source_type or node in must_exist:
            continue
        functionality = classifications.get_functionality(node)
        if functionality == Functionality.UNKNOWN:
            continue
        if functionality in seen:
            return True
        seen.add(functionality)

    return False


def path_weight(classifications: ClassificationDocument, path: Path) -> int:
    """Sum over edges of the endpoints with a known functionality."""
    weight = 0
    for edge in path:
        for node in (edge.source, edge.destination):
            if classifications.get_functionality(node) != Functionality.UNKNOWN:
                weight += FUNCTIONAL_ENDPOINT_WEIGHT
    return weight


def find_optimal_path(classifications: ClassificationDocument, paths: List[Path]) -> Optional[Path]:
    """
    Lowest weight, then fewest edges, then smallest path string.

    The final key makes the choice independent of the order paths were found in.
    """
    if not paths:
        return None
    return min(
        paths,
        key=lambda p: (path_weight(classifications, p), len(p), path_to_string(p)),
    )


class EdgeExpander:
    """Resolves dependencies into knowledge-base-valid paths."""

    def __init__(self, knowledge_base: KnowledgeBase, classifications: ClassificationDocument):
        self.knowledge_base = knowledge_base
        self.classifications = classifications

    def determine_correct_paths(
        self,
        dependency: Edge,
        edge_data: EdgeData,
    ) -> Tuple[List[Path], Optional[EdgeExpansionError]]:
        """
        Candidate paths that pass the attribute filter, then the hop filter.

        The hop filter is a hard reject: a path it rejects is never used,
        even when it is the only one satisfying the attributes.
        """
        source_type = type(dependency.source)
        destination_type = type(dependency.destination)

        paths = self.knowledge_base.find_paths(source_type, destination_type, edge_data.constraint)
        if not paths:
            return [], NoKnowledgeBasePathError(
                edge=dependency,
                cause=f"no knowledge base paths found for edge {dependency}",
            )

        satisfying = [
            path for path in paths
            if satisfies_attributes(
                self.classifications, source_type, destination_type, path, edge_data.attributes
            )
        ]
        if not satisfying:
            return [], NoAttributeSatisfyingPathError(
                edge=dependency,
                cause=f"no paths found that satisfy the attributes, {sorted(edge_data.attributes)}, for edge {dependency}",
            )

        valid = [
            path for path in satisfying
            if not contains_unnecessary_hops(
                self.classifications, source_type, destination_type, path, edge_data
            )
        ]
        if not valid:
            return [], OnlyUnnecessaryHopPathsError(
                edge=dependency,
                cause=(
                    f"no paths found that satisfy the attributes, {sorted(edge_data.attributes)}, "
                    f"and do not contain unnecessary hops for edge {dependency}"
                ),
            )
        return valid, None

    def expand_edge(
        self,
        dependency: Edge,
        graph: ResourceGraph,
    ) -> Tuple[List[Decision], Optional[EngineError]]:
        """
        Resolve one dependency in place.

        Returns:
            (decisions, error) - the decisions describe mutations already
            made to the graph, in the order they were made
        """
        edge_data, error = get_edge_data(dependency)
        if error is not None:
            return [], error

        template = self.knowledge_base.get_resource_edge(dependency.source, dependency.destination)
        if template is not None and not edge_data.constraint.node_must_exist:
            return [], None

        paths, error = self.determine_correct_paths(dependency, edge_data)
        if error is not None:
            logger.warning(
                "edge_expansion_failed",
                source=str(dependency.source.id),
                destination=str(dependency.destination.id),
                error=str(error.cause),
            )
            return [], error

        path = find_optimal_path(self.classifications, paths)
        existing_nodes = {res.id for res in graph.list_resources()}
        existing_edges = {dep.key for dep in graph.list_dependencies()}

        edges = self.knowledge_base.expand_edge(dependency, graph, path, edge_data) if path else []
        if not edges:
            return [], InternalError(
                child=EmptyPathError(edge=dependency),
                cause=f"empty path found that satisfies the attributes, {sorted(edge_data.attributes)}, for edge {dependency}",
            )

        cause = Cause(edge_expansion=dependency)
        decisions: List[Decision] = []
        if len(edges) > 1:
            logger.debug("dependency_removed", edge=str(dependency))
            try:
                graph.remove_dependency(dependency.source.id, dependency.destination.id)
            except KeyError:
                return decisions, EdgeExpansionError(
                    edge=dependency,
                    cause=f"error removing dependency {dependency}",
                )
            graph.mark_indirect(dependency)
            decisions.append(Decision.remove(dependency, cause))

        for edge in edges:
            for node in (edge.source, edge.destination):
                if node.id not in existing_nodes:
                    existing_nodes.add(node.id)
                    decisions.append(Decision.create(node, cause))
            if edge.key not in existing_edges:
                logger.debug("dependency_added", edge=str(edge))
                decisions.append(Decision.connect(edge.source, edge.destination, cause, edge.data))
        return decisions, None
