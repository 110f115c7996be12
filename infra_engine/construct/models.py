# infra_engine/construct/models.py
"""
Core models for constructs and resources.

Core entities:
- ResourceId: Unique key for anything that lives in a graph
- Construct: Abstract, source-level declaration of intent
- Resource: Concrete infrastructure node for a provider
"""

from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Optional
from dataclasses import dataclass, field


# Provider for abstract constructs (expanded into resources, never deployed)
ABSTRACT_CONSTRUCT_PROVIDER = "klotho"


class Functionality(Enum):
    """
    Coarse category of a construct or resource.

    UNKNOWN means "no opinion" and never matches another UNKNOWN.
    """
    COMPUTE = "compute"
    CLUSTER = "cluster"
    STORAGE = "storage"
    API = "api"
    MESSAGING = "messaging"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, order=True)
class ResourceId:
    """
    Globally unique key of a construct or resource.

    Ordering is field-wise, which gives a stable sort for enumeration.
    """
    provider: str
    type: str
    name: str = ""
    namespace: str = ""

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.provider}:{self.type}:{self.namespace}:{self.name}"
        return f"{self.provider}:{self.type}:{self.name}"

    @classmethod
    def parse(cls, value: str) -> "ResourceId":
        """Parse `provider:type:name` or `provider:type:namespace:name`."""
        parts = value.split(":")
        if len(parts) == 3:
            return cls(parts[0], parts[1], parts[2])
        if len(parts) == 4:
            return cls(parts[0], parts[1], parts[3], parts[2])
        raise ValueError(f"invalid resource id: {value!r}")


class BaseConstruct:
    """Anything addressable by a ResourceId (a Construct or a Resource)."""

    @property
    def id(self) -> ResourceId:
        raise NotImplementedError


class BaseConstructSet(Dict[ResourceId, BaseConstruct]):
    """Set of constructs keyed by id."""

    def add(self, item: Optional[BaseConstruct]):
        if item is None:
            return
        self[item.id] = item

    def add_all(self, items: Iterable[BaseConstruct]):
        for item in items:
            self.add(item)

    def has(self, resource_id: ResourceId) -> bool:
        return resource_id in self

    def discard(self, item: BaseConstruct):
        self.pop(item.id, None)

    def clone(self) -> "BaseConstructSet":
        return BaseConstructSet(self)

    def clone_with(self, other: "BaseConstructSet") -> "BaseConstructSet":
        clone = self.clone()
        clone.add_all(other.values())
        return clone

    @classmethod
    def of(cls, *items: BaseConstruct) -> "BaseConstructSet":
        s = cls()
        s.add_all(items)
        return s


@dataclass
class Construct(BaseConstruct):
    """
    Abstract, source-derived entity.

    Created during source analysis. The engine reads constructs and
    never mutates them.
    """
    name: str
    capability: str  # annotation capability, e.g. "execution_unit"
    functionality: Functionality = Functionality.UNKNOWN
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> ResourceId:
        return ResourceId(ABSTRACT_CONSTRUCT_PROVIDER, self.capability, self.name)


@dataclass(frozen=True)
class DeleteContext:
    """When a resource may be deleted, based on its dependencies."""
    requires_no_upstream: bool = False
    requires_no_downstream: bool = False
    requires_explicit_delete: bool = False
    requires_no_upstream_or_downstream: bool = False


@dataclass
class Resource(BaseConstruct):
    """
    Concrete infrastructure node.

    Subclasses declare PROVIDER and TYPE and add typed fields. A resource
    class doubles as the resource *type* in knowledge-base lookups, so
    anything keyed on type works with either the class or an instance.
    """
    PROVIDER: ClassVar[str] = ""
    TYPE: ClassVar[str] = ""
    DELETE_CONTEXT: ClassVar[DeleteContext] = DeleteContext()

    name: str = ""
    construct_refs: BaseConstructSet = field(default_factory=BaseConstructSet)

    @property
    def id(self) -> ResourceId:
        return ResourceId(self.PROVIDER, self.TYPE, self.name)

    def delete_context(self) -> DeleteContext:
        return self.DELETE_CONTEXT

    @classmethod
    def type_id(cls) -> ResourceId:
        """Id of the resource type (no name)."""
        return ResourceId(cls.PROVIDER, cls.TYPE)

    @classmethod
    def type_name(cls) -> str:
        return f"{cls.PROVIDER}:{cls.TYPE}"


def resource_type_of(resource) -> type:
    """Return the resource class for an instance or a class."""
    return resource if isinstance(resource, type) else type(resource)

