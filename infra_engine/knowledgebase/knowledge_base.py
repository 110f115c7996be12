# infra_engine/knowledgebase/knowledge_base.py
"""
Knowledge base of valid edges between resource types.

The templates form a directed graph over resource classes. Path search
enumerates simple paths over that graph; materialization turns a chosen
path into concrete resources and dependencies in a ResourceGraph.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from ..construct.graph import Edge, ResourceGraph
from ..construct.models import Resource, resource_type_of
from ..errors import ConfigurationError
from ..logging import get_logger
from ..settings import settings
from .models import EdgeConstraint, EdgeData, EdgeTemplate, Path, path_types

logger = get_logger(__name__)


class KnowledgeBase:
    """
    Catalog of EdgeTemplates keyed by (source type, destination type).

    Path search results are memoized per (source, destination, constraint);
    the catalog is read-only once a solve starts, so the cache never goes
    stale during a run.
    """

    def __init__(
        self,
        edges: Iterable[EdgeTemplate] = (),
        max_path_length: Optional[int] = None,
    ):
        self.max_path_length = max_path_length or settings.max_path_length
        self._edges: Dict[Tuple[type, type], EdgeTemplate] = {}
        self._type_graph = nx.DiGraph()
        self._path_cache: Dict[Tuple, List[Path]] = {}
        for edge in edges:
            self.add_edge(edge)

    @classmethod
    def build(cls, *edges: EdgeTemplate, **kwargs) -> "KnowledgeBase":
        return cls(edges, **kwargs)

    @classmethod
    def merge(cls, *knowledge_bases: "KnowledgeBase") -> "KnowledgeBase":
        """Combine several knowledge bases. Duplicate pairs are a configuration error."""
        merged = cls()
        for kb in knowledge_bases:
            for edge in kb.list_edges():
                merged.add_edge(edge)
        return merged

    def add_edge(self, edge: EdgeTemplate):
        if edge.key in self._edges:
            raise ConfigurationError(f"duplicate edge template {edge}")
        self._edges[edge.key] = edge
        self._type_graph.add_edge(edge.source, edge.destination, template=edge)
        self._path_cache.clear()

    def list_edges(self) -> List[EdgeTemplate]:
        return list(self._edges.values())

    def get_resource_edge(self, source, destination) -> Optional[EdgeTemplate]:
        """Template for the exact pair; accepts resource classes or instances."""
        return self._edges.get((resource_type_of(source), resource_type_of(destination)))

    # ------------------------------------------------------------------
    # Path search
    # ------------------------------------------------------------------

    def find_paths(
        self,
        source,
        destination,
        constraint: Optional[EdgeConstraint] = None,
    ) -> List[Path]:
        """
        Every knowledge-base path from source type to destination type.

        Paths are simple (no type repeats), at most max_path_length edges,
        contain every must-exist type and no must-not-exist type. A
        direct-edge-only template is only valid as a one-edge path.
        Order follows template registration order.
        """
        constraint = constraint or EdgeConstraint()
        source_type = resource_type_of(source)
        destination_type = resource_type_of(destination)

        cache_key = (source_type, destination_type, constraint.cache_key())
        cached = self._path_cache.get(cache_key)
        if cached is not None:
            return list(cached)

        paths = [
            path for path in self._enumerate_paths(source_type, destination_type)
            if _satisfies_constraint(path, constraint)
        ]
        self._path_cache[cache_key] = paths
        return list(paths)

    def _enumerate_paths(self, source_type, destination_type) -> List[Path]:
        if source_type not in self._type_graph or destination_type not in self._type_graph:
            return []

        if source_type is destination_type:
            template = self._edges.get((source_type, destination_type))
            return [(template,)] if template else []

        paths: List[Path] = []
        for nodes in nx.all_simple_paths(
            self._type_graph, source_type, destination_type, cutoff=self.max_path_length
        ):
            path = tuple(
                self._edges[(src, dst)] for src, dst in zip(nodes, nodes[1:])
            )
            if len(path) > 1 and any(edge.direct_edge_only for edge in path):
                continue
            paths.append(path)
        return paths

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def expand_edge(
        self,
        dependency: Edge,
        graph: ResourceGraph,
        path: Path,
        edge_data: EdgeData,
    ) -> List[Edge]:
        """
        Materialize a path between the dependency's endpoints into the graph.

        Intermediate types reuse a must-exist resource of that type, or an
        existing graph resource with the generated id, otherwise a new
        resource is created named "<type>-<source name>-<destination name>"
        carrying both endpoints' construct refs.

        Returns:
            The edges of the materialized path, in order. Empty if the path
            does not connect the dependency's endpoint types.
        """
        source, destination = dependency.source, dependency.destination
        types = path_types(path)
        if not types or types[0] is not type(source) or types[-1] is not type(destination):
            return []

        must_exist = {type(res): res for res in edge_data.constraint.node_must_exist}
        nodes: List[Resource] = [source]
        for resource_type in types[1:-1]:
            resource = must_exist.get(resource_type)
            if resource is None:
                resource = resource_type(name=f"{resource_type.TYPE}-{source.name}-{destination.name}")
                existing = graph.get_resource(resource.id)
                if existing is not None:
                    resource = existing
                else:
                    resource.construct_refs = source.construct_refs.clone_with(destination.construct_refs)
            nodes.append(resource)
        nodes.append(destination)

        edges: List[Edge] = []
        for src, dst in zip(nodes, nodes[1:]):
            data = EdgeData(attributes=dict(edge_data.attributes), source=src, destination=dst)
            graph.add_dependency(src, dst, data)
            edges.append(graph.get_dependency(src.id, dst.id))
            logger.debug("edge_materialized", source=str(src.id), destination=str(dst.id))
        return edges


def _satisfies_constraint(path: Path, constraint: EdgeConstraint) -> bool:
    types = path_types(path)
    for must_exist in constraint.must_exist_types:
        if must_exist not in types:
            return False
    for must_not_exist in constraint.must_not_exist_types:
        if must_not_exist in types:
            return False
    return True
