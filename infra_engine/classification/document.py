# infra_engine/classification/document.py
"""
Classification index.

Lookups accept a resource instance or a resource class. Unknown types
resolve to an empty classification, never an error.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from ..construct.models import Functionality, Resource
from .base import BASE_CLASSIFICATIONS
from .models import (
    EMPTY_CLASSIFICATION,
    Classification,
    ClassificationDocumentModel,
)

ResourceOrType = Union[Resource, type]

# Tags that map onto a functionality
FUNCTIONALITY_TAGS: Dict[str, Functionality] = {
    Functionality.COMPUTE.value: Functionality.COMPUTE,
    Functionality.CLUSTER.value: Functionality.CLUSTER,
    Functionality.STORAGE.value: Functionality.STORAGE,
    Functionality.API.value: Functionality.API,
    Functionality.MESSAGING.value: Functionality.MESSAGING,
}


class ClassificationDocument:
    """Immutable resource-type -> Classification lookup."""

    def __init__(self, classifications: Optional[Dict[str, Classification]] = None):
        self._classifications: Dict[str, Classification] = dict(classifications or {})

    def __len__(self) -> int:
        return len(self._classifications)

    @classmethod
    def from_dict(cls, data: Dict) -> "ClassificationDocument":
        """
        Build from raw document data.

        Accepts either {"classifications": {...}} or the bare mapping of
        "<provider>:<type>:" keys.
        """
        if "classifications" not in data:
            data = {"classifications": data}
        model = ClassificationDocumentModel.model_validate(data)
        return cls({
            key: value.to_classification()
            for key, value in model.classifications.items()
        })

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ClassificationDocument":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def merged_with(self, other: "ClassificationDocument") -> "ClassificationDocument":
        """New document with `other` taking precedence on key clashes."""
        merged = dict(self._classifications)
        merged.update(other._classifications)
        return ClassificationDocument(merged)

    def get_classification(self, resource: ResourceOrType) -> Classification:
        """
        Exact id match first, then the "<provider>:<type>:" key, then
        the "<provider>:" key.
        """
        for key in _lookup_keys(resource):
            classification = self._classifications.get(key)
            if classification is not None:
                return classification
        return EMPTY_CLASSIFICATION

    def get_functionality(self, resource: ResourceOrType) -> Functionality:
        """
        Derive the functionality from the classification tags.

        No functional tag, or more than one, is UNKNOWN.
        """
        functionality = None
        for tag in self.get_classification(resource).is_:
            match = FUNCTIONALITY_TAGS.get(tag)
            if match is None:
                continue
            if functionality is not None and functionality != match:
                return Functionality.UNKNOWN
            functionality = match
        return functionality or Functionality.UNKNOWN

    def gives_attribute_for_functionality(
        self,
        resource: ResourceOrType,
        attribute: str,
        functionality: Functionality,
    ) -> bool:
        for gives in self.get_classification(resource).gives:
            if gives.attribute == attribute and functionality.value in gives.functionality:
                return True
        return False

    def has_tags(self, resource: ResourceOrType, tags: Iterable[str]) -> bool:
        """True if the resource carries every tag."""
        is_ = self.get_classification(resource).is_
        return all(tag in is_ for tag in tags)


def _lookup_keys(resource: ResourceOrType):
    if not isinstance(resource, type):
        yield str(resource.id)
    yield f"{resource.PROVIDER}:{resource.TYPE}:"
    yield f"{resource.PROVIDER}:"


BASE_CLASSIFICATION_DOCUMENT = ClassificationDocument(BASE_CLASSIFICATIONS)


def load_classification_document(path: Optional[str] = None) -> ClassificationDocument:
    """
    Load the classification document for a run.

    Without a path the built-in base document is returned; a path is
    layered on top of the base document.
    """
    if not path:
        return BASE_CLASSIFICATION_DOCUMENT
    return BASE_CLASSIFICATION_DOCUMENT.merged_with(ClassificationDocument.from_json(path))

