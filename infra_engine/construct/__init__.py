# Construct module - constructs, resources and the graphs that hold them
from .models import (
    ABSTRACT_CONSTRUCT_PROVIDER,
    BaseConstruct,
    BaseConstructSet,
    Construct,
    DeleteContext,
    Functionality,
    Resource,
    ResourceId,
    resource_type_of,
)
from .graph import ConstructGraph, Edge, ResourceGraph

__all__ = [
    # Models
    "ABSTRACT_CONSTRUCT_PROVIDER",
    "BaseConstruct",
    "BaseConstructSet",
    "Construct",
    "DeleteContext",
    "Functionality",
    "Resource",
    "ResourceId",
    "resource_type_of",
    # Graphs
    "ConstructGraph",
    "Edge",
    "ResourceGraph",
]
