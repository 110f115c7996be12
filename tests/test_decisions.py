# tests/test_decisions.py
"""
Test decisions and the decision log.
"""

from infra_engine.construct import Construct, Edge, ResourceGraph
from infra_engine.engine import Action, Cause, Decision, DecisionLog, apply_decision

from mocks import MockResource1, MockResource2, MockResource3


class TestApplyDecision:
    """Tests for applying decisions to a graph."""

    def test_create_and_connect(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")

        assert apply_decision(graph, Decision.create(a, Cause()))
        assert apply_decision(graph, Decision.connect(a, b, Cause()))
        assert graph.has_dependency(a.id, b.id)

    def test_no_ops_report_unchanged(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        graph.add_dependency(a, b)

        assert not apply_decision(graph, Decision.create(a, Cause()))
        assert not apply_decision(graph, Decision.connect(a, b, Cause()))
        assert not apply_decision(graph, Decision.remove(Edge(b, a), Cause()))

    def test_remove(self):
        graph = ResourceGraph()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        graph.add_dependency(a, b)

        assert apply_decision(graph, Decision.remove(Edge(a, b), Cause()))
        assert not graph.has_dependency(a.id, b.id)

    def test_remove_marks_path_carried_dependency(self):
        graph = ResourceGraph()
        a, b, hop = MockResource1(name="a"), MockResource2(name="b"), MockResource3(name="hop")
        graph.add_dependency(a, b)
        graph.add_dependency(a, hop)
        graph.add_dependency(hop, b)

        apply_decision(graph, Decision.remove(Edge(a, b), Cause()))

        assert graph.is_indirect(a.id, b.id)


class TestDecisionLog:
    """Tests for the append-only log."""

    def test_only_changes_are_recorded(self):
        graph = ResourceGraph()
        log = DecisionLog()
        a = MockResource1(name="a")

        log.apply(graph, Decision.create(a, Cause()))
        log.apply(graph, Decision.create(a, Cause()))

        assert len(log) == 1
        assert log[0].action == Action.CREATE

    def test_to_dicts(self):
        log = DecisionLog()
        construct = Construct(name="api", capability="execution_unit")
        log.record(Decision.connect(MockResource1(name="a"), MockResource2(name="b"), Cause(construct_expansion=construct)))

        assert log.to_dicts() == [{
            "action": "connect",
            "result": "mock:mock1:a -> mock:mock2:b",
            "cause": "construct expansion of klotho:execution_unit:api",
        }]

    def test_by_action(self):
        graph = ResourceGraph()
        log = DecisionLog()
        a, b = MockResource1(name="a"), MockResource2(name="b")
        log.apply(graph, Decision.create(a, Cause()))
        log.apply(graph, Decision.connect(a, b, Cause()))

        assert [str(d.result) for d in log.by_action(Action.CONNECT)] == ["mock:mock1:a -> mock:mock2:b"]
