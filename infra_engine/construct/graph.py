# infra_engine/construct/graph.py
"""
Directed graphs over constructs and resources.

Both graphs key nodes by ResourceId and keep the node object and any edge
data as networkx attributes. Node and edge iteration follows insertion
order, which keeps enumeration deterministic for identical inputs.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

import networkx as nx

from .models import BaseConstruct, Resource, ResourceId

T = TypeVar("T", bound=BaseConstruct)


@dataclass
class Edge(Generic[T]):
    """Directed dependency between two graph nodes."""
    source: T
    destination: T
    data: Any = None

    @property
    def key(self):
        return (self.source.id, self.destination.id)

    def __str__(self) -> str:
        return f"{self.source.id} -> {self.destination.id}"


class _Graph(Generic[T]):
    """Shared directed graph behavior."""

    def __init__(self):
        self._graph = nx.DiGraph()

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, item) -> bool:
        node_id = item if isinstance(item, ResourceId) else item.id
        return node_id in self._graph

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _add(self, node: T):
        if node.id not in self._graph:
            self._graph.add_node(node.id, value=node)

    def _get(self, node_id: ResourceId) -> Optional[T]:
        if node_id not in self._graph:
            return None
        return self._graph.nodes[node_id]["value"]

    def _list(self) -> List[T]:
        return [attrs["value"] for _, attrs in self._graph.nodes(data=True)]

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def add_dependency(self, source: T, destination: T, data: Any = None):
        """Add source -> destination, adding either node if missing."""
        self._add(source)
        self._add(destination)
        if self._graph.has_edge(source.id, destination.id):
            if data is not None:
                self._graph.edges[source.id, destination.id]["data"] = data
            return
        self._graph.add_edge(source.id, destination.id, data=data)

    def has_dependency(self, source_id: ResourceId, destination_id: ResourceId) -> bool:
        return self._graph.has_edge(source_id, destination_id)

    def get_dependency(self, source_id: ResourceId, destination_id: ResourceId) -> Optional[Edge[T]]:
        if not self._graph.has_edge(source_id, destination_id):
            return None
        return Edge(
            source=self._get(source_id),
            destination=self._get(destination_id),
            data=self._graph.edges[source_id, destination_id].get("data"),
        )

    def remove_dependency(self, source_id: ResourceId, destination_id: ResourceId):
        """Remove source -> destination. Raises KeyError if absent."""
        if not self._graph.has_edge(source_id, destination_id):
            raise KeyError(f"no dependency {source_id} -> {destination_id}")
        self._graph.remove_edge(source_id, destination_id)

    def list_dependencies(self) -> List[Edge[T]]:
        return [
            Edge(source=self._get(src), destination=self._get(dst), data=attrs.get("data"))
            for src, dst, attrs in self._graph.edges(data=True)
        ]

    def get_downstream_dependencies(self, node: T) -> List[Edge[T]]:
        if node.id not in self._graph:
            return []
        return [
            Edge(source=node, destination=self._get(dst), data=attrs.get("data"))
            for _, dst, attrs in self._graph.out_edges(node.id, data=True)
        ]

    def get_upstream_dependencies(self, node: T) -> List[Edge[T]]:
        if node.id not in self._graph:
            return []
        return [
            Edge(source=self._get(src), destination=node, data=attrs.get("data"))
            for src, _, attrs in self._graph.in_edges(node.id, data=True)
        ]

    def get_downstream(self, node: T) -> List[T]:
        if node.id not in self._graph:
            return []
        return [self._get(dst) for dst in self._graph.successors(node.id)]

    def get_upstream(self, node: T) -> List[T]:
        if node.id not in self._graph:
            return []
        return [self._get(src) for src in self._graph.predecessors(node.id)]

    def __str__(self) -> str:
        """
        Canonical serialization.

        Nodes and edges are sorted, so two graphs with the same content
        serialize identically regardless of insertion order.
        """
        nodes = sorted(str(node_id) for node_id in self._graph.nodes)
        edges = sorted(f"{src} -> {dst}" for src, dst in self._graph.edges)
        return "nodes: [" + ", ".join(nodes) + "] edges: [" + ", ".join(edges) + "]"


class ConstructGraph(_Graph[BaseConstruct]):
    """Pre-expansion working state: constructs and already-concrete resources."""

    def add_construct(self, construct: BaseConstruct):
        self._add(construct)

    def get_construct(self, construct_id: ResourceId) -> Optional[BaseConstruct]:
        return self._get(construct_id)

    def list_constructs(self) -> List[BaseConstruct]:
        return self._list()


class ResourceGraph(_Graph[Resource]):
    """
    Concrete resources and their dependencies. The engine's output.

    A dependency replaced by a multi-hop path is remembered as indirect.
    It still counts as a dependency while the path connects its endpoints.
    """

    def __init__(self):
        super().__init__()
        self._indirect: Dict[Tuple[ResourceId, ResourceId], Edge[Resource]] = {}

    def add_resource(self, resource: Resource):
        self._add(resource)

    def get_resource(self, resource_id: ResourceId) -> Optional[Resource]:
        return self._get(resource_id)

    def list_resources(self) -> List[Resource]:
        return self._list()

    def iter_resources_of_type(self, resource_type: str) -> Iterator[Resource]:
        for resource in self._list():
            if resource.TYPE == resource_type:
                yield resource

    def add_dependency(self, source: Resource, destination: Resource, data: Any = None):
        super().add_dependency(source, destination, data)
        self._indirect.pop((source.id, destination.id), None)

    # ------------------------------------------------------------------
    # Indirect dependencies
    # ------------------------------------------------------------------

    def mark_indirect(self, edge: Edge[Resource]):
        """Record a removed dependency as now carried by a path."""
        self._indirect[edge.key] = edge

    def has_indirect_path(self, source_id: ResourceId, destination_id: ResourceId) -> bool:
        """True if a path of two or more edges leads from source to destination."""
        if source_id not in self._graph or destination_id not in self._graph:
            return False
        view = nx.restricted_view(self._graph, [], [(source_id, destination_id)])
        return nx.has_path(view, source_id, destination_id)

    def is_indirect(self, source_id: ResourceId, destination_id: ResourceId) -> bool:
        """A removed dependency whose endpoints a path still connects."""
        return (
            (source_id, destination_id) in self._indirect
            and not self.has_dependency(source_id, destination_id)
            and self.has_indirect_path(source_id, destination_id)
        )

    def get_indirect_downstream(self, node: Resource) -> List[Resource]:
        return [
            self._get(dst) for (src, dst) in sorted(self._indirect)
            if src == node.id and self.is_indirect(src, dst)
        ]

    def get_indirect_upstream(self, node: Resource) -> List[Resource]:
        return [
            self._get(src) for (src, dst) in sorted(self._indirect)
            if dst == node.id and self.is_indirect(src, dst)
        ]

    def clone(self) -> "ResourceGraph":
        """Copy of the graph structure sharing the resource objects."""
        clone = ResourceGraph()
        clone._graph = self._graph.copy()
        clone._indirect = dict(self._indirect)
        return clone
