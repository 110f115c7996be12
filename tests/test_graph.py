# tests/test_graph.py
"""
Test resource ids and graphs.
"""

import pytest

from infra_engine.construct import (
    BaseConstructSet,
    Construct,
    ConstructGraph,
    Edge,
    Functionality,
    ResourceGraph,
    ResourceId,
)

from mocks import MockResource1, MockResource2, MockResource3


class TestResourceId:
    """Tests for resource id formatting and ordering."""

    def test_string_form(self):
        assert str(ResourceId("aws", "lambda_function", "api")) == "aws:lambda_function:api"

    def test_namespaced_string_form(self):
        rid = ResourceId("kubernetes", "deployment", "api", namespace="cluster-1")
        assert str(rid) == "kubernetes:deployment:cluster-1:api"

    def test_parse_round_trips_namespace(self):
        rid = ResourceId("kubernetes", "deployment", "api", namespace="cluster-1")
        assert ResourceId.parse(str(rid)) == rid

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            ResourceId.parse("not-an-id")

    def test_ordering_is_field_wise(self):
        ids = [
            ResourceId("mock", "mock2", "a"),
            ResourceId("mock", "mock1", "b"),
            ResourceId("aws", "zzz", "a"),
        ]
        assert [str(i) for i in sorted(ids)] == [
            "aws:zzz:a",
            "mock:mock1:b",
            "mock:mock2:a",
        ]

    def test_construct_id_uses_abstract_provider(self):
        construct = Construct(name="api", capability="execution_unit", functionality=Functionality.COMPUTE)
        assert str(construct.id) == "klotho:execution_unit:api"


class TestBaseConstructSet:
    """Tests for construct reference sets."""

    def test_clone_with_merges_without_mutating(self):
        a = Construct(name="a", capability="execution_unit")
        b = Construct(name="b", capability="persist")
        left = BaseConstructSet.of(a)
        merged = left.clone_with(BaseConstructSet.of(b))

        assert set(merged) == {a.id, b.id}
        assert set(left) == {a.id}


class TestResourceGraph:
    """Tests for ResourceGraph queries and mutation."""

    def test_add_dependency_adds_missing_nodes(self):
        graph = ResourceGraph()
        graph.add_dependency(MockResource1(name="a"), MockResource2(name="b"))

        assert len(graph) == 2
        assert graph.has_dependency(MockResource1(name="a").id, MockResource2(name="b").id)

    def test_add_dependency_keeps_existing_node_object(self):
        graph = ResourceGraph()
        original = MockResource1(name="a")
        graph.add_resource(original)
        graph.add_dependency(MockResource1(name="a"), MockResource2(name="b"))

        assert graph.get_resource(original.id) is original

    def test_upstream_and_downstream(self):
        graph = ResourceGraph()
        a, b, c = MockResource1(name="a"), MockResource2(name="b"), MockResource3(name="c")
        graph.add_dependency(a, b)
        graph.add_dependency(c, b)

        assert graph.get_downstream(a) == [b]
        assert sorted(r.name for r in graph.get_upstream(b)) == ["a", "c"]
        assert graph.get_upstream(a) == []

    def test_remove_missing_dependency_raises(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        graph.add_resource(a)
        graph.add_resource(b)

        with pytest.raises(KeyError):
            graph.remove_dependency(a.id, b.id)

    def test_edge_data_is_kept(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        graph.add_dependency(a, b, {"k": "v"})

        assert graph.get_dependency(a.id, b.id).data == {"k": "v"}

    def test_string_is_insertion_order_independent(self):
        a, b, c = MockResource1(name="a"), MockResource2(name="b"), MockResource3(name="c")

        first = ResourceGraph()
        first.add_dependency(a, b)
        first.add_dependency(b, c)

        second = ResourceGraph()
        second.add_dependency(b, c)
        second.add_dependency(a, b)

        assert str(first) == str(second)

    def test_clone_is_structurally_independent(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        graph.add_resource(a)

        clone = graph.clone()
        clone.add_dependency(a, b)

        assert len(graph) == 1
        assert len(clone) == 2
        assert clone.get_resource(a.id) is a

    def test_resources_of_type(self):
        graph = ResourceGraph()
        graph.add_resource(MockResource1(name="a"))
        graph.add_resource(MockResource2(name="b"))
        graph.add_resource(MockResource1(name="c"))

        assert [r.name for r in graph.iter_resources_of_type("mock1")] == ["a", "c"]


class TestConstructGraph:
    """Tests for the pre-expansion graph."""

    def test_holds_constructs_and_resources(self):
        graph = ConstructGraph()
        construct = Construct(name="api", capability="execution_unit")
        resource = MockResource1(name="existing")
        graph.add_dependency(construct, resource)

        assert {str(n.id) for n in graph.list_constructs()} == {
            "klotho:execution_unit:api",
            "mock:mock1:existing",
        }


class TestIndirectDependencies:
    """Tests for dependencies carried by a path."""

    def test_indirect_while_path_exists(self):
        graph = ResourceGraph()
        a, hop, b = MockResource1(name="a"), MockResource3(name="hop"), MockResource2(name="b")
        graph.add_dependency(a, hop)
        graph.add_dependency(hop, b)
        graph.mark_indirect(Edge(a, b))

        assert graph.is_indirect(a.id, b.id)
        assert graph.get_indirect_downstream(a) == [b]
        assert graph.get_indirect_upstream(b) == [a]

    def test_broken_path_is_not_indirect(self):
        graph = ResourceGraph()
        a, hop, b = MockResource1(name="a"), MockResource3(name="hop"), MockResource2(name="b")
        graph.add_dependency(a, hop)
        graph.add_dependency(hop, b)
        graph.mark_indirect(Edge(a, b))

        graph.remove_dependency(hop.id, b.id)

        assert not graph.is_indirect(a.id, b.id)
        assert graph.get_indirect_downstream(a) == []

    def test_direct_edge_replaces_indirect(self):
        graph = ResourceGraph()
        a, hop, b = MockResource1(name="a"), MockResource3(name="hop"), MockResource2(name="b")
        graph.add_dependency(a, hop)
        graph.add_dependency(hop, b)
        graph.mark_indirect(Edge(a, b))

        graph.add_dependency(a, b)

        assert not graph.is_indirect(a.id, b.id)
        assert graph.has_indirect_path(a.id, b.id)

    def test_clone_keeps_indirect(self):
        graph = ResourceGraph()
        a, hop, b = MockResource1(name="a"), MockResource3(name="hop"), MockResource2(name="b")
        graph.add_dependency(a, hop)
        graph.add_dependency(hop, b)
        graph.mark_indirect(Edge(a, b))

        assert graph.clone().is_indirect(a.id, b.id)
