# Engine module - construct expansion, edge expansion, operational rules
from .decisions import (
    Action,
    Cause,
    Decision,
    DecisionLog,
    DecisionResult,
    apply_decision,
)
from .construct_expansion import (
    ConstructConstraint,
    ConstructExpander,
    ExpansionSet,
    ExpansionSolution,
)
from .edge_expansion import (
    EdgeExpander,
    contains_unnecessary_hops,
    find_optimal_path,
    get_edge_data,
    path_weight,
    satisfies_attributes,
)
from .operational_rules import OperationalRuleEnforcer
from .template_configure import apply_default, field_registry, template_configure
from .engine import Engine, SolveResult

__all__ = [
    # Decisions
    "Action",
    "Cause",
    "Decision",
    "DecisionLog",
    "DecisionResult",
    "apply_decision",
    # Construct expansion
    "ConstructConstraint",
    "ConstructExpander",
    "ExpansionSet",
    "ExpansionSolution",
    # Edge expansion
    "EdgeExpander",
    "contains_unnecessary_hops",
    "find_optimal_path",
    "get_edge_data",
    "path_weight",
    "satisfies_attributes",
    # Operational rules
    "OperationalRuleEnforcer",
    "apply_default",
    "field_registry",
    "template_configure",
    # Orchestration
    "Engine",
    "SolveResult",
]
