# infra_engine/provider/base.py
"""
Provider contract.

A provider enumerates the resource types it supports, instantiates
zero-value resources by type name, and supplies operational templates.
"""

from typing import Dict, Iterable, List, Optional, Type

from ..construct.models import Resource
from ..errors import ConfigurationError
from ..knowledgebase.models import ResourceTemplate


class Provider:
    """Base class for resource providers."""

    name: str = ""

    def list_resources(self) -> List[Type[Resource]]:
        """Every resource class the provider supports, in declaration order."""
        raise NotImplementedError

    def get_operational_templates(self) -> Dict[str, ResourceTemplate]:
        """Templates keyed by resource type name."""
        return {}

    def get_resource_type(self, resource_type: str) -> Optional[Type[Resource]]:
        for resource_class in self.list_resources():
            if resource_class.TYPE == resource_type:
                return resource_class
        return None

    def create_resource(self, resource_type: str, name: str) -> Resource:
        """
        Zero-value instance of a resource type.

        Raises:
            ConfigurationError: If the provider has no such type
        """
        resource_class = self.get_resource_type(resource_type)
        if resource_class is None:
            raise ConfigurationError(
                f"provider {self.name} has no constructor for resource type {resource_type}"
            )
        return resource_class(name=name)


class StaticProvider(Provider):
    """Provider over a fixed list of resource classes and templates."""

    def __init__(
        self,
        name: str,
        resources: Iterable[Type[Resource]],
        templates: Optional[Dict[str, ResourceTemplate]] = None,
    ):
        self.name = name
        self._resources = list(resources)
        self._templates = dict(templates or {})
        for resource_class in self._resources:
            if resource_class.PROVIDER != name:
                raise ConfigurationError(
                    f"resource type {resource_class.type_name()} does not belong to provider {name}"
                )
        for type_name in self._templates:
            if self.get_resource_type(type_name) is None:
                raise ConfigurationError(
                    f"template for unknown resource type {name}:{type_name}"
                )

    def list_resources(self) -> List[Type[Resource]]:
        return list(self._resources)

    def get_operational_templates(self) -> Dict[str, ResourceTemplate]:
        return dict(self._templates)
