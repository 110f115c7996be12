# infra_engine/engine/engine.py
"""
Engine orchestration.

solve() drives one compilation run:

1. Expand every construct and wire the construct graph's dependencies
   onto the chosen resources
2. Repeat until a pass records no decision, or the iteration cap:
   - expand dependencies not yet expanded
   - enforce operational rules on every resource
3. Report dependencies left without an edge template, then run the
   knowledge base's configure callback on every edge

The run owns its ResourceGraph. Errors are collected and returned with
the result; nothing a single construct, edge or resource does aborts
the run.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Type
from dataclasses import dataclass, field

from ..classification.document import ClassificationDocument
from ..construct.graph import ConstructGraph, ResourceGraph
from ..construct.models import Construct, Resource, ResourceId
from ..errors import EdgeExpansionError, EngineError, ErrorList, InternalError, UnresolvedDependencyError
from ..knowledgebase.knowledge_base import KnowledgeBase
from ..knowledgebase.models import EdgeData, ResourceTemplate
from ..logging import get_engine_logger
from ..provider.base import Provider
from ..settings import Settings, settings as default_settings
from .construct_expansion import ConstructConstraint, ConstructExpander
from .decisions import Action, Cause, Decision, DecisionLog
from .edge_expansion import EdgeExpander
from .operational_rules import OperationalRuleEnforcer

logger = get_engine_logger("engine")


def _edge_key(error: EngineError) -> Optional[Tuple[ResourceId, ResourceId]]:
    if isinstance(error, InternalError):
        error = error.child
    if isinstance(error, EdgeExpansionError):
        return error.edge.key
    return None


@dataclass
class SolveResult:
    """Output of one solve: the resource graph, its decisions and errors."""
    graph: ResourceGraph
    decisions: DecisionLog
    errors: ErrorList = field(default_factory=ErrorList)
    iterations: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


class Engine:
    """
    Resolves a construct graph into a resource graph.

    Args:
        providers: Resource providers; their types are the expansion candidates
        knowledge_base: Valid edges between resource types
        classification_document: Tags and grants per resource type
        templates: Extra operational templates keyed by (provider, type),
            taking precedence over the providers' own
        settings: Overrides the module-level settings
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        knowledge_base: KnowledgeBase,
        classification_document: ClassificationDocument,
        templates: Optional[Mapping[Tuple[str, str], ResourceTemplate]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.providers: Dict[str, Provider] = {p.name: p for p in sorted(providers, key=lambda p: p.name)}
        self.knowledge_base = knowledge_base
        self.classifications = classification_document

        self.templates: Dict[Tuple[str, str], ResourceTemplate] = {}
        for provider in self.providers.values():
            for type_name, template in provider.get_operational_templates().items():
                self.templates[(provider.name, type_name)] = template
        self.templates.update(templates or {})

        self.construct_expander = ConstructExpander(
            self.resource_types(), knowledge_base, classification_document
        )
        self.edge_expander = EdgeExpander(knowledge_base, classification_document)
        self.enforcer = OperationalRuleEnforcer(
            self.providers, classification_document, self.settings.max_solve_iterations
        )

    def resource_types(self) -> List[Type[Resource]]:
        """Providers by name, declaration order within a provider."""
        return [
            resource_type
            for provider in self.providers.values()
            for resource_type in provider.list_resources()
        ]

    def get_template(self, resource: Resource) -> Optional[ResourceTemplate]:
        return self.templates.get((resource.PROVIDER, resource.TYPE))

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def solve(
        self,
        construct_graph: ConstructGraph,
        constraints: Iterable[ConstructConstraint] = (),
    ) -> SolveResult:
        constraints = list(constraints)
        graph = ResourceGraph()
        log = DecisionLog()
        errors = ErrorList()

        solve_logger = logger.bind(providers=",".join(self.providers))
        solve_logger.info("solve_started", constructs=len(construct_graph))

        processed: Set[Tuple[ResourceId, ResourceId]] = set()
        errors.extend(self.expand_constructs(construct_graph, constraints, graph, log))

        edge_errors: List[EngineError] = []
        rule_errors: List[EngineError] = []
        iterations = 0
        while iterations < self.settings.max_solve_iterations:
            iterations += 1
            recorded = len(log)

            edge_errors.extend(self.expand_edges(graph, log, processed))
            rule_errors = self.enforce_rules(graph, log)

            solve_logger.debug(
                "solve_pass_finished",
                iteration=iterations,
                decisions=len(log) - recorded,
                rule_errors=len(rule_errors),
            )
            if len(log) == recorded:
                break
        else:
            solve_logger.warning("solve_iteration_cap_reached", iterations=iterations)

        errors.extend(edge_errors)
        errors.extend(rule_errors)
        reported = {key for key in map(_edge_key, edge_errors) if key is not None}
        errors.extend(self.validate_dependencies(graph, reported))
        self.configure_edges(graph)

        solve_logger.info(
            "solve_finished",
            resources=len(graph),
            decisions=len(log),
            errors=len(errors),
            iterations=iterations,
        )
        return SolveResult(graph=graph, decisions=log, errors=errors, iterations=iterations)

    def expand_constructs(
        self,
        construct_graph: ConstructGraph,
        constraints: List[ConstructConstraint],
        graph: ResourceGraph,
        log: DecisionLog,
    ) -> List[EngineError]:
        """
        Merge the first solution of every construct into the graph, then
        copy the construct graph's dependencies onto the mapped resources.

        Concrete resources already in the construct graph map to themselves.
        """
        errors: List[EngineError] = []
        mapped: Dict[ResourceId, List[Resource]] = {}

        for node in construct_graph.list_constructs():
            if not isinstance(node, Construct):
                log.apply(graph, Decision.create(node, Cause(construct_expansion=node)))
                mapped[node.id] = [node]
                continue

            solutions, error = self.construct_expander.expand(node, constraints)
            if error is not None:
                logger.warning("construct_expansion_failed", construct=str(node.id), error=str(error.cause))
                errors.append(error)
                continue

            solution = solutions[0]
            cause = Cause(construct_expansion=node)
            for resource in solution.graph.list_resources():
                log.apply(graph, Decision.create(resource, cause))
            for dependency in solution.graph.list_dependencies():
                log.apply(graph, Decision.connect(dependency.source, dependency.destination, cause))
            mapped[node.id] = solution.directly_mapped_resources

        for dependency in construct_graph.list_dependencies():
            sources = mapped.get(dependency.source.id, [])
            destinations = mapped.get(dependency.destination.id, [])
            for source in sources:
                for destination in destinations:
                    log.apply(graph, Decision.connect(
                        source,
                        destination,
                        Cause(construct_expansion=dependency.source),
                        dependency.data,
                    ))
        return errors

    def expand_edges(
        self,
        graph: ResourceGraph,
        log: DecisionLog,
        processed: Set[Tuple[ResourceId, ResourceId]],
    ) -> List[EngineError]:
        """Expand every dependency not seen before. Each is tried once."""
        errors: List[EngineError] = []
        pending = sorted(
            (dep for dep in graph.list_dependencies() if dep.key not in processed),
            key=lambda dep: dep.key,
        )
        for dependency in pending:
            processed.add(dependency.key)
            if not graph.has_dependency(*dependency.key):
                continue
            decisions, error = self.edge_expander.expand_edge(dependency, graph)
            for decision in decisions:
                log.record(decision)
                if decision.action == Action.REMOVE:
                    # expanded again if something re-adds it directly
                    processed.discard(decision.result.edge.key)
                elif decision.result.edge is not None:
                    processed.add(decision.result.edge.key)
            if error is not None:
                errors.append(error)
        return errors

    def enforce_rules(self, graph: ResourceGraph, log: DecisionLog) -> List[EngineError]:
        """Enforce templates on every resource, in id order."""
        errors: List[EngineError] = []
        for resource in sorted(graph.list_resources(), key=lambda r: r.id):
            template = self.get_template(resource)
            if template is None:
                continue
            errors.extend(self.enforcer.enforce(resource, template, graph, log))
        return errors

    def validate_dependencies(
        self,
        graph: ResourceGraph,
        reported: Set[Tuple[ResourceId, ResourceId]],
    ) -> List[EngineError]:
        """
        Report every dependency without an edge template.

        Dependencies whose expansion already failed are skipped; their
        error is already in the result.
        """
        errors: List[EngineError] = []
        for dependency in sorted(graph.list_dependencies(), key=lambda dep: dep.key):
            if dependency.key in reported:
                continue
            if self.knowledge_base.get_resource_edge(dependency.source, dependency.destination) is not None:
                continue
            logger.warning("dependency_unresolved", edge=str(dependency))
            errors.append(UnresolvedDependencyError(
                edge=dependency,
                cause=f"no knowledge base edge template for {dependency}",
            ))
        return errors

    def configure_edges(self, graph: ResourceGraph):
        """Run each edge template's configure callback on its edges."""
        for dependency in graph.list_dependencies():
            template = self.knowledge_base.get_resource_edge(dependency.source, dependency.destination)
            if template is None or template.configure is None:
                continue
            data = dependency.data if isinstance(dependency.data, EdgeData) else EdgeData(
                source=dependency.source, destination=dependency.destination
            )
            template.configure(dependency.source, dependency.destination, graph, data)
