# infra_engine/engine/operational_rules.py
"""
Operational rule enforcement.

Evaluation touches neither the graph nor the resource: it returns the
decisions a rule implies and the errors it found. Enforcement applies
those decisions, hands creatable shortfalls to remediation and
re-evaluates until the rule holds or nothing more can be done. Once the
rule holds, enforcement removes direct dependencies the rule asks to
drop and sets the rule's fields.

Matches are counted over direct neighbours and over indirect ones, the
dependencies edge expansion replaced with a path. Indirect matches are
never reconnected directly.

Enforcement:
- exactly_one: count must equal num_needed; too many is never remediated
- conditional: zero is fine, otherwise count must equal num_needed
- any_available: local matches first, then unconnected matches anywhere
  in the graph, shortfall is remediated

Remediation order:
1. Inside a sub-rule, resources already attached to the parent, then
   fresh "<type>-<index>" resources wired to both resource and parent
2. With must_create, only fresh "<type>-<resource name>-<index>" resources
3. Otherwise unconnected resources of the needed type by id, then fresh
   "<type>-<index>" resources for what is left
"""

from typing import List, Mapping, Optional, Set, Tuple

from ..classification.document import ClassificationDocument
from ..construct.graph import ResourceGraph
from ..construct.models import Resource, ResourceId
from ..errors import (
    ConfigurationError,
    EngineError,
    OperationalResourceError,
    ResourceNotOperationalError,
)
from ..knowledgebase.models import Direction, Enforcement, OperationalRule, ResourceTemplate
from ..logging import get_engine_logger
from ..provider.base import Provider
from ..settings import settings
from .decisions import Cause, Decision, DecisionLog
from .template_configure import set_resource_field, template_configure

logger = get_engine_logger("operational_rules")

ENFORCEMENT_LABELS = {
    Enforcement.EXACTLY_ONE: "exactly one",
    Enforcement.CONDITIONAL: "conditional",
    Enforcement.ANY_AVAILABLE: "any",
}


def _connect(resource: Resource, other: Resource, direction: Direction, cause: Cause) -> Decision:
    if direction == Direction.DOWNSTREAM:
        return Decision.connect(resource, other, cause)
    return Decision.connect(other, resource, cause)


def _neighbors(graph: ResourceGraph, resource: Resource, direction: Direction) -> List[Resource]:
    """Direct neighbours, then indirect ones still reached through a path."""
    if direction == Direction.DOWNSTREAM:
        return graph.get_downstream(resource) + graph.get_indirect_downstream(resource)
    return graph.get_upstream(resource) + graph.get_indirect_upstream(resource)


def _direct_key(resource: Resource, other: Resource, direction: Direction) -> Tuple[ResourceId, ResourceId]:
    if direction == Direction.DOWNSTREAM:
        return (resource.id, other.id)
    return (other.id, resource.id)


class OperationalRuleEnforcer:
    """Evaluates and enforces operational rules against a resource graph."""

    def __init__(
        self,
        providers: Mapping[str, Provider],
        classifications: ClassificationDocument,
        max_attempts: Optional[int] = None,
    ):
        self.providers = dict(providers)
        self.classifications = classifications
        self.max_attempts = max_attempts or settings.max_solve_iterations

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def matches(self, resource: Resource, rule: OperationalRule) -> bool:
        """Matches a listed type, or carries every listed classification."""
        if resource.TYPE in rule.resource_types:
            return True
        return bool(rule.classifications) and self.classifications.has_tags(resource, rule.classifications)

    def _local_matches(self, resource: Resource, rule: OperationalRule, graph: ResourceGraph) -> List[Resource]:
        return sorted(
            (r for r in _neighbors(graph, resource, rule.direction) if self.matches(r, rule)),
            key=lambda r: r.id,
        )

    def evaluate_rule(
        self,
        resource: Resource,
        rule: OperationalRule,
        graph: ResourceGraph,
        parent: Optional[Resource] = None,
    ) -> Tuple[List[Decision], List[EngineError]]:
        """
        Evaluate one rule against the current graph.

        Args:
            resource: Resource the rule is attached to
            rule: Rule to evaluate
            graph: Current resource graph, left unchanged
            parent: Match of the enclosing rule when evaluating a sub-rule

        Returns:
            (decisions, errors) - connect decisions for satisfying matches,
            OperationalResourceError for remediable shortfalls and
            ResourceNotOperationalError for violations
        """
        matches = self._local_matches(resource, rule, graph)
        count = len(matches)
        needed = rule.needed

        if rule.enforcement == Enforcement.EXACTLY_ONE:
            if count > needed:
                return [], [ResourceNotOperationalError(
                    resource=resource,
                    cause=self._describe_count(rule, "more", count, resource),
                )]
            if count < needed:
                return [], [self._shortfall(resource, rule, needed - count, count, parent)]
            return self._satisfied(resource, rule, matches, graph)

        if rule.enforcement == Enforcement.CONDITIONAL:
            if count == 0:
                return [], []
            if count != needed:
                return [], [ResourceNotOperationalError(
                    resource=resource,
                    cause=self._describe_count(rule, "a different", count, resource),
                )]
            return self._satisfied(resource, rule, matches, graph)

        # any_available
        if count >= needed:
            return self._satisfied(resource, rule, matches, graph)

        local = {r.id for r in matches}
        available = sorted(
            (
                r for r in graph.list_resources()
                if r.id != resource.id and r.id not in local and self.matches(r, rule)
            ),
            key=lambda r: r.id,
        )
        chosen = available[:needed - count]
        if count + len(chosen) < needed:
            decisions = [
                _connect(resource, r, rule.direction, Cause(operational_resource=resource, operational_rule=rule))
                for r in chosen
            ]
            shortfall = needed - count - len(chosen)
            return decisions, [self._shortfall(resource, rule, shortfall, count + len(chosen), parent)]
        return self._satisfied(resource, rule, matches + chosen, graph)

    def _satisfied(
        self,
        resource: Resource,
        rule: OperationalRule,
        matches: List[Resource],
        graph: ResourceGraph,
    ) -> Tuple[List[Decision], List[EngineError]]:
        cause = Cause(operational_resource=resource, operational_rule=rule)
        decisions = [
            _connect(resource, match, rule.direction, cause)
            for match in matches
            if not graph.is_indirect(*_direct_key(resource, match, rule.direction))
        ]
        errors: List[EngineError] = []

        for match in matches:
            for sub_rule in rule.rules:
                sub_decisions, sub_errors = self.evaluate_rule(resource, sub_rule, graph, parent=match)
                decisions.extend(sub_decisions)
                errors.extend(sub_errors)
        return decisions, errors

    def _shortfall(
        self,
        resource: Resource,
        rule: OperationalRule,
        missing: int,
        count: int,
        parent: Optional[Resource],
    ) -> OperationalResourceError:
        return OperationalResourceError(
            resource=resource,
            needs=list(rule.resource_types) or self._types_with_classifications(resource, rule),
            direction=rule.direction,
            count=missing,
            cause=self._describe_count(rule, "less", count, resource),
            parent=parent,
            must_create=rule.must_create,
            create_unsatisfied=rule.unsatisfied_action.creates,
        )

    def _types_with_classifications(self, resource: Resource, rule: OperationalRule) -> List[str]:
        provider = self.providers.get(resource.PROVIDER)
        if provider is None or not rule.classifications:
            return []
        return [
            resource_type.TYPE for resource_type in provider.list_resources()
            if self.classifications.has_tags(resource_type, rule.classifications)
        ]

    @staticmethod
    def _describe_count(rule: OperationalRule, comparison: str, count: int, resource: Resource) -> str:
        return (
            f"rule with enforcement {ENFORCEMENT_LABELS[rule.enforcement]} has {comparison} than the "
            f"required number of resources of type {rule.resource_types}  or classifications "
            f"{rule.classifications}, {count} for resource {resource.id}"
        )

    # ------------------------------------------------------------------
    # Remediation
    # ------------------------------------------------------------------

    def handle_operational_resource_error(
        self,
        error: OperationalResourceError,
        graph: ResourceGraph,
    ) -> Tuple[List[Decision], Optional[EngineError]]:
        """
        Decisions that fill a shortfall. The graph is left unchanged.

        A create decision always precedes the connect decisions of the
        resource it creates.
        """
        resource = error.resource
        if not error.needs:
            return [], ResourceNotOperationalError(
                resource=resource,
                cause=f"no resource type can satisfy the shortfall: {error.cause}",
            )
        provider = self.providers.get(resource.PROVIDER)
        if provider is None:
            return [], ConfigurationError(f"no provider {resource.PROVIDER} for resource {resource.id}")

        needed_type = error.needs[0]
        cause = Cause(operational_resource=resource)
        connected = {r.id for r in _neighbors(graph, resource, error.direction)}
        existing = sorted(
            (r for r in graph.iter_resources_of_type(needed_type) if r.PROVIDER == provider.name),
            key=lambda r: r.id,
        )
        taken: Set[ResourceId] = {r.id for r in existing}
        decisions: List[Decision] = []
        remaining = error.count

        def create(name_prefix: str, index: int) -> Tuple[Optional[Resource], int, Optional[EngineError]]:
            while ResourceId(provider.name, needed_type, f"{name_prefix}-{index}") in taken:
                index += 1
            name = f"{name_prefix}-{index}"
            try:
                created = provider.create_resource(needed_type, name)
            except ConfigurationError as e:
                return None, index, e
            created.construct_refs = resource.construct_refs.clone()
            taken.add(created.id)
            decisions.append(Decision.create(created, cause))
            decisions.append(_connect(resource, created, error.direction, cause))
            return created, index + 1, None

        if error.parent is not None:
            parent = error.parent
            attached = {}
            for r in graph.get_downstream(parent) + graph.get_upstream(parent):
                if r.TYPE == needed_type and r.id not in connected:
                    attached[r.id] = r
            for reused in sorted(attached.values(), key=lambda r: r.id)[:remaining]:
                decisions.append(_connect(resource, reused, error.direction, cause))
                remaining -= 1

            index = len(existing)
            while remaining > 0:
                created, index, failure = create(needed_type, index)
                if failure is not None:
                    return decisions, failure
                if error.direction == Direction.DOWNSTREAM:
                    decisions.append(Decision.connect(created, parent, cause))
                else:
                    decisions.append(Decision.connect(parent, created, cause))
                remaining -= 1
            return decisions, None

        if not error.must_create:
            for reused in [r for r in existing if r.id not in connected and r.id != resource.id][:remaining]:
                decisions.append(_connect(resource, reused, error.direction, cause))
                remaining -= 1

        prefix = f"{needed_type}-{resource.name}" if error.must_create else needed_type
        index = len(existing)
        while remaining > 0:
            created, index, failure = create(prefix, index)
            if failure is not None:
                return decisions, failure
            remaining -= 1
        return decisions, None

    # ------------------------------------------------------------------
    # Enforcement
    # ------------------------------------------------------------------

    def enforce_rule(
        self,
        resource: Resource,
        rule: OperationalRule,
        graph: ResourceGraph,
        log: DecisionLog,
    ) -> List[EngineError]:
        """
        Apply a rule to the graph, remediating creatable shortfalls.

        Returns:
            Errors left once the rule holds or no remediation makes progress
        """
        errors: List[EngineError] = []
        for _ in range(self.max_attempts):
            decisions, errors = self.evaluate_rule(resource, rule, graph)
            for decision in decisions:
                log.apply(graph, decision)

            remediable = [
                e for e in errors
                if isinstance(e, OperationalResourceError) and e.create_unsatisfied
            ]
            if not remediable:
                if errors:
                    return errors
                return self._finish(resource, rule, graph, log)

            unresolved = [e for e in errors if e not in remediable]
            changed = False
            for shortfall in remediable:
                fixes, error = self.handle_operational_resource_error(shortfall, graph)
                for decision in fixes:
                    changed = log.apply(graph, decision) or changed
                if error is not None:
                    unresolved.append(error)
            if unresolved:
                return unresolved
            if not changed:
                return remediable
        return errors

    def _finish(
        self,
        resource: Resource,
        rule: OperationalRule,
        graph: ResourceGraph,
        log: DecisionLog,
    ) -> List[EngineError]:
        """Steps that run once a rule holds."""
        if rule.remove_direct_dependency:
            self.remove_direct_dependencies(resource, rule, graph, log)
        return self.assign_fields(resource, rule, graph)

    def remove_direct_dependencies(
        self,
        resource: Resource,
        rule: OperationalRule,
        graph: ResourceGraph,
        log: DecisionLog,
    ):
        """
        Drop the direct edge to each match that a longer path also reaches,
        typically one built by the rule's sub-rules through the match.

        The match stays counted as an indirect dependency.
        """
        cause = Cause(operational_resource=resource, operational_rule=rule)
        for match in self._local_matches(resource, rule, graph):
            source_id, destination_id = _direct_key(resource, match, rule.direction)
            if not graph.has_dependency(source_id, destination_id):
                continue
            if not graph.has_indirect_path(source_id, destination_id):
                continue
            log.apply(graph, Decision.remove(graph.get_dependency(source_id, destination_id), cause))

    def assign_fields(self, resource: Resource, rule: OperationalRule, graph: ResourceGraph) -> List[EngineError]:
        """Set the fields of a rule and its sub-rules from the current matches."""
        matches = self._local_matches(resource, rule, graph)
        if not matches:
            return []

        errors: List[EngineError] = []
        if rule.set_field:
            try:
                set_resource_field(resource, rule.set_field, matches)
            except ConfigurationError as e:
                errors.append(e)
        for sub_rule in rule.rules:
            errors.extend(self.assign_fields(resource, sub_rule, graph))
        return errors

    def enforce(
        self,
        resource: Resource,
        template: ResourceTemplate,
        graph: ResourceGraph,
        log: DecisionLog,
    ) -> List[EngineError]:
        """
        Enforce every rule of a resource's template, then apply its
        configuration defaults if all rules hold.
        """
        errors: List[EngineError] = []
        for rule in template.rules:
            errors.extend(self.enforce_rule(resource, rule, graph, log))

        if errors:
            logger.debug(
                "resource_not_operational",
                resource=str(resource.id),
                errors=len(errors),
            )
            return errors

        try:
            template_configure(resource, template)
        except ConfigurationError as e:
            errors.append(e)
        return errors
