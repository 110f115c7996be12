# infra_engine/knowledgebase/templates.py
"""
Resource template loading.

Templates are authored as JSON, validated with pydantic, and converted
into the knowledge base dataclasses.

Example:
    {
        "type": "lambda_function",
        "rules": [
            {
                "enforcement": "exactly_one",
                "direction": "downstream",
                "resource_types": ["iam_role"],
                "set_field": "role",
                "unsatisfied_action": {"operation": "create_unsatisfied_resource"}
            }
        ],
        "configuration": [{"field": "memory_size", "value": 512}]
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..construct.models import DeleteContext
from ..errors import ConfigurationError
from .models import (
    Configuration,
    Direction,
    Enforcement,
    OperationalRule,
    ResourceTemplate,
    UnsatisfiedAction,
    UnsatisfiedActionOperation,
)


class UnsatisfiedActionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: UnsatisfiedActionOperation = UnsatisfiedActionOperation.NONE


class OperationalRuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enforcement: Enforcement
    direction: Direction
    resource_types: List[str] = Field(default_factory=list)
    classifications: List[str] = Field(default_factory=list)
    num_needed: int = Field(default=1, ge=1)
    set_field: str = ""
    rules: List["OperationalRuleModel"] = Field(default_factory=list)
    unsatisfied_action: UnsatisfiedActionModel = Field(default_factory=UnsatisfiedActionModel)
    remove_direct_dependency: bool = False
    must_create: bool = False

    def to_rule(self) -> OperationalRule:
        return OperationalRule(
            enforcement=self.enforcement,
            direction=self.direction,
            resource_types=list(self.resource_types),
            classifications=list(self.classifications),
            num_needed=self.num_needed,
            set_field=self.set_field,
            rules=[sub.to_rule() for sub in self.rules],
            unsatisfied_action=UnsatisfiedAction(self.unsatisfied_action.operation),
            remove_direct_dependency=self.remove_direct_dependency,
            must_create=self.must_create,
        )


OperationalRuleModel.model_rebuild()


class ConfigurationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: str
    value: Any


class DeleteContextModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    requires_no_upstream: bool = False
    requires_no_downstream: bool = False
    requires_explicit_delete: bool = False
    requires_no_upstream_or_downstream: bool = False


class ResourceTemplateModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    rules: List[OperationalRuleModel] = Field(default_factory=list)
    configuration: List[ConfigurationModel] = Field(default_factory=list)
    delete_context: Optional[DeleteContextModel] = None

    def to_template(self) -> ResourceTemplate:
        return ResourceTemplate(
            type=self.type,
            rules=[rule.to_rule() for rule in self.rules],
            configuration=[Configuration(c.field, c.value) for c in self.configuration],
            delete_context=(
                DeleteContext(**self.delete_context.model_dump())
                if self.delete_context else None
            ),
        )


def parse_resource_templates(data: Union[List, Dict]) -> Dict[str, ResourceTemplate]:
    """
    Parse templates from a list of template objects or a single object.

    Returns:
        Templates keyed by resource type

    Raises:
        ConfigurationError: On schema violations or duplicate types
    """
    items = data if isinstance(data, list) else [data]
    templates: Dict[str, ResourceTemplate] = {}
    for item in items:
        try:
            template = ResourceTemplateModel.model_validate(item).to_template()
        except ValidationError as e:
            raise ConfigurationError(f"invalid resource template: {e}") from e
        if template.type in templates:
            raise ConfigurationError(f"duplicate resource template for type {template.type}")
        templates[template.type] = template
    return templates


def load_resource_templates(path: Union[str, Path]) -> Dict[str, ResourceTemplate]:
    """
    Load every template from a JSON file, or from each *.json file in a directory.
    """
    path = Path(path)
    files = sorted(path.glob("*.json")) if path.is_dir() else [path]

    templates: Dict[str, ResourceTemplate] = {}
    for file in files:
        with open(file, "r", encoding="utf-8") as f:
            data = json.load(f)
        for type_name, template in parse_resource_templates(data).items():
            if type_name in templates:
                raise ConfigurationError(
                    f"duplicate resource template for type {type_name} in {file.name}"
                )
            templates[type_name] = template
    return templates
