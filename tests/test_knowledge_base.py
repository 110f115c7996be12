# tests/test_knowledge_base.py
"""
Test knowledge-base path search and path materialization.
"""

import pytest

from infra_engine.construct import Construct, Edge, ResourceGraph, BaseConstructSet
from infra_engine.errors import ConfigurationError
from infra_engine.knowledgebase import (
    EdgeConstraint,
    EdgeData,
    EdgeTemplate,
    KnowledgeBase,
    path_to_string,
)

from mocks import (
    MockResource1,
    MockResource2,
    MockResource3,
    MockResource4,
    mock_kb,
)


def _path_strings(paths):
    return sorted(path_to_string(p) for p in paths)


class TestFindPaths:
    """Tests for path enumeration."""

    def test_direct_and_indirect_paths(self):
        kb = mock_kb(
            (MockResource1, MockResource2),
            (MockResource2, MockResource4),
            (MockResource1, MockResource4),
        )
        paths = kb.find_paths(MockResource1, MockResource4)

        assert _path_strings(paths) == [
            "mock:mock1 -> mock:mock2mock:mock2 -> mock:mock4",
            "mock:mock1 -> mock:mock4",
        ]

    def test_no_path(self):
        kb = mock_kb((MockResource1, MockResource2))
        assert kb.find_paths(MockResource2, MockResource1) == []

    def test_unknown_types_have_no_paths(self):
        kb = mock_kb((MockResource1, MockResource2))
        assert kb.find_paths(MockResource3, MockResource4) == []

    def test_direct_edge_only_not_used_as_hop(self):
        kb = KnowledgeBase.build(
            EdgeTemplate(MockResource1, MockResource2, direct_edge_only=True),
            EdgeTemplate(MockResource2, MockResource3),
        )
        assert kb.find_paths(MockResource1, MockResource3) == []
        assert len(kb.find_paths(MockResource1, MockResource2)) == 1

    def test_max_path_length_bounds_search(self):
        kb = mock_kb(
            (MockResource1, MockResource2),
            (MockResource2, MockResource3),
            (MockResource3, MockResource4),
            max_path_length=2,
        )
        assert kb.find_paths(MockResource1, MockResource4) == []
        assert len(kb.find_paths(MockResource1, MockResource3)) == 1

    def test_must_exist_and_must_not_exist(self):
        kb = mock_kb(
            (MockResource1, MockResource2),
            (MockResource2, MockResource4),
            (MockResource1, MockResource3),
            (MockResource3, MockResource4),
        )
        through_3 = kb.find_paths(
            MockResource1, MockResource4,
            EdgeConstraint(node_must_exist=[MockResource3(name="x")]),
        )
        avoiding_3 = kb.find_paths(
            MockResource1, MockResource4,
            EdgeConstraint(node_must_not_exist=[MockResource3(name="x")]),
        )

        assert _path_strings(through_3) == ["mock:mock1 -> mock:mock3mock:mock3 -> mock:mock4"]
        assert _path_strings(avoiding_3) == ["mock:mock1 -> mock:mock2mock:mock2 -> mock:mock4"]

    def test_results_are_copies(self):
        kb = mock_kb((MockResource1, MockResource2))
        kb.find_paths(MockResource1, MockResource2).clear()
        assert len(kb.find_paths(MockResource1, MockResource2)) == 1


class TestCatalog:
    """Tests for edge registration."""

    def test_duplicate_edge_is_configuration_error(self):
        kb = mock_kb((MockResource1, MockResource2))
        with pytest.raises(ConfigurationError):
            kb.add_edge(EdgeTemplate(MockResource1, MockResource2))

    def test_get_resource_edge_accepts_instances(self):
        kb = mock_kb((MockResource1, MockResource2))
        assert kb.get_resource_edge(MockResource1(name="a"), MockResource2) is not None
        assert kb.get_resource_edge(MockResource2, MockResource1) is None

    def test_merge(self):
        merged = KnowledgeBase.merge(
            mock_kb((MockResource1, MockResource2)),
            mock_kb((MockResource2, MockResource3)),
        )
        assert len(merged.find_paths(MockResource1, MockResource3)) == 1


class TestExpandEdge:
    """Tests for path materialization."""

    def test_intermediate_is_named_after_endpoints(self):
        kb = mock_kb((MockResource1, MockResource2), (MockResource2, MockResource4))
        a, b = MockResource1(name="a"), MockResource4(name="b")
        graph = ResourceGraph()
        graph.add_dependency(a, b)

        path = kb.find_paths(MockResource1, MockResource4)[0]
        edges = kb.expand_edge(Edge(a, b), graph, path, EdgeData(attributes={"k": 1}))

        assert [str(e) for e in edges] == [
            "mock:mock1:a -> mock:mock2:mock2-a-b",
            "mock:mock2:mock2-a-b -> mock:mock4:b",
        ]
        assert edges[0].data.attributes == {"k": 1}
        assert edges[0].data.constraint.node_must_exist == []

    def test_intermediate_carries_both_construct_refs(self):
        kb = mock_kb((MockResource1, MockResource2), (MockResource2, MockResource4))
        c1 = Construct(name="c1", capability="execution_unit")
        c2 = Construct(name="c2", capability="persist")
        a = MockResource1(name="a", construct_refs=BaseConstructSet.of(c1))
        b = MockResource4(name="b", construct_refs=BaseConstructSet.of(c2))
        graph = ResourceGraph()

        path = kb.find_paths(MockResource1, MockResource4)[0]
        edges = kb.expand_edge(Edge(a, b), graph, path, EdgeData())

        assert set(edges[0].destination.construct_refs) == {c1.id, c2.id}

    def test_must_exist_resource_is_reused(self):
        kb = mock_kb((MockResource1, MockResource2), (MockResource2, MockResource4))
        a, b = MockResource1(name="a"), MockResource4(name="b")
        shared = MockResource2(name="shared")
        graph = ResourceGraph()
        constraint = EdgeConstraint(node_must_exist=[shared])

        path = kb.find_paths(MockResource1, MockResource4, constraint)[0]
        edges = kb.expand_edge(Edge(a, b), graph, path, EdgeData(constraint=constraint))

        assert edges[0].destination is shared

    def test_existing_intermediate_is_reused(self):
        kb = mock_kb((MockResource1, MockResource2), (MockResource2, MockResource4))
        a, b = MockResource1(name="a"), MockResource4(name="b")
        existing = MockResource2(name="mock2-a-b")
        graph = ResourceGraph()
        graph.add_resource(existing)

        path = kb.find_paths(MockResource1, MockResource4)[0]
        edges = kb.expand_edge(Edge(a, b), graph, path, EdgeData())

        assert edges[0].destination is existing

    def test_mismatched_path_yields_nothing(self):
        kb = mock_kb((MockResource1, MockResource2), (MockResource3, MockResource4))
        path = kb.find_paths(MockResource3, MockResource4)[0]

        edges = kb.expand_edge(
            Edge(MockResource1(name="a"), MockResource2(name="b")),
            ResourceGraph(),
            path,
            EdgeData(),
        )
        assert edges == []
