# Knowledge base module - valid edges, path search, operational templates
from .models import (
    Configuration,
    Direction,
    EdgeConstraint,
    EdgeData,
    EdgeTemplate,
    Enforcement,
    OperationalRule,
    Path,
    ResourceTemplate,
    UnsatisfiedAction,
    UnsatisfiedActionOperation,
    path_to_string,
    path_types,
)
from .knowledge_base import KnowledgeBase
from .templates import load_resource_templates, parse_resource_templates

__all__ = [
    # Models
    "Configuration",
    "Direction",
    "EdgeConstraint",
    "EdgeData",
    "EdgeTemplate",
    "Enforcement",
    "OperationalRule",
    "Path",
    "ResourceTemplate",
    "UnsatisfiedAction",
    "UnsatisfiedActionOperation",
    "path_to_string",
    "path_types",
    # Knowledge base
    "KnowledgeBase",
    # Templates
    "load_resource_templates",
    "parse_resource_templates",
]
