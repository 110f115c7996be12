# infra_engine/engine/template_configure.py
"""
Template configuration.

Applies a ResourceTemplate's literal defaults onto a resource. Field
lookups go through a registry built once per dataclass from its declared
fields and resolved type hints; nothing is looked up by arbitrary
attribute access.

Rules:
- Only zero-valued fields are set (None, 0, "", False, empty collection,
  or a nested structure whose fields are all zero)
- Dotted paths walk nested structures; a None optional structure on the
  way is instantiated
- Dicts are coerced into nested dataclasses, lists of dicts into lists of
  dataclasses
"""

import dataclasses
import typing
from typing import Any, Dict, List, Tuple, Union

from ..construct.models import Resource
from ..errors import ConfigurationError
from ..knowledgebase.models import ResourceTemplate
from ..logging import get_engine_logger

logger = get_engine_logger("template_configure")

# dataclass -> {field name: resolved type hint}
_FIELD_REGISTRY: Dict[type, Dict[str, Any]] = {}


def field_registry(cls: type) -> Dict[str, Any]:
    """Declared fields of a dataclass and their resolved types."""
    registry = _FIELD_REGISTRY.get(cls)
    if registry is None:
        if not dataclasses.is_dataclass(cls):
            raise ConfigurationError(f"{cls.__name__} is not a configurable structure")
        hints = typing.get_type_hints(cls)
        registry = {f.name: hints.get(f.name, Any) for f in dataclasses.fields(cls)}
        _FIELD_REGISTRY[cls] = registry
    return registry


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) is Union:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _is_structure(hint: Any) -> bool:
    return isinstance(hint, type) and dataclasses.is_dataclass(hint)


def is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    if dataclasses.is_dataclass(value):
        return all(is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
    return False


def _coerce(value: Any, hint: Any) -> Any:
    """Convert raw template data into the shape of the target field."""
    base = _unwrap_optional(hint)
    if _is_structure(base) and isinstance(value, dict):
        return _build_structure(base, value)
    if typing.get_origin(base) is list and isinstance(value, (list, tuple)):
        args = typing.get_args(base)
        item_hint = args[0] if args else Any
        return [_coerce(item, item_hint) for item in value]
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _build_structure(cls: type, data: Dict[str, Any]) -> Any:
    registry = field_registry(cls)
    kwargs = {}
    for key, value in data.items():
        if key not in registry:
            raise ConfigurationError(f"unknown field {key} on {cls.__name__}")
        kwargs[key] = _coerce(value, registry[key])
    return cls(**kwargs)


def _field_hint(target: Any, name: str, path: str) -> Any:
    registry = field_registry(type(target))
    if name not in registry:
        raise ConfigurationError(f"unknown field {name} in {path} on {type(target).__name__}")
    return registry[name]


def _resolve(obj: Any, path: str) -> Tuple[Any, str, Any]:
    """
    Walk a dotted path down to the structure holding its last segment.

    Returns:
        (holder, field name, field type)
    """
    parts = path.split(".")
    target = obj
    for part in parts[:-1]:
        hint = _field_hint(target, part, path)
        current = getattr(target, part)
        if current is None:
            base = _unwrap_optional(hint)
            if not _is_structure(base):
                raise ConfigurationError(f"field {part} in {path} is not a structure")
            current = base()
            setattr(target, part, current)
        elif not dataclasses.is_dataclass(current):
            raise ConfigurationError(f"field {part} in {path} is not a structure")
        target = current
    last = parts[-1]
    return target, last, _field_hint(target, last, path)


def apply_default(obj: Any, path: str, value: Any) -> bool:
    """
    Set a field to a default if it is currently zero-valued.

    Returns:
        True if the field was set

    Raises:
        ConfigurationError: If the path names an unknown field
    """
    holder, name, hint = _resolve(obj, path)
    if not is_zero(getattr(holder, name)):
        return False
    setattr(holder, name, _coerce(value, hint))
    return True


def set_resource_field(resource: Resource, path: str, matches: List[Resource]):
    """
    Point a field at the resources that satisfied a rule.

    List fields receive every match, anything else the first one.

    Raises:
        ConfigurationError: If the path names an unknown field
    """
    holder, name, hint = _resolve(resource, path)
    if typing.get_origin(_unwrap_optional(hint)) is list:
        setattr(holder, name, list(matches))
    else:
        setattr(holder, name, matches[0] if matches else None)


def template_configure(resource: Resource, template: ResourceTemplate) -> int:
    """
    Apply a template's literal defaults to a resource.

    Returns:
        Number of fields set

    Raises:
        ConfigurationError: If a configuration entry names an unknown field
    """
    applied = 0
    for configuration in template.configuration:
        if apply_default(resource, configuration.field, configuration.value):
            applied += 1
    if applied:
        logger.debug("template_configured", resource=str(resource.id), fields=applied)
    return applied
