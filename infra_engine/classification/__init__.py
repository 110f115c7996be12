# Classification module - static tag/grant metadata per resource type
from .models import Classification, Gives, EMPTY_CLASSIFICATION
from .document import (
    BASE_CLASSIFICATION_DOCUMENT,
    FUNCTIONALITY_TAGS,
    ClassificationDocument,
    load_classification_document,
)

__all__ = [
    # Models
    "Classification",
    "Gives",
    "EMPTY_CLASSIFICATION",
    # Document
    "BASE_CLASSIFICATION_DOCUMENT",
    "FUNCTIONALITY_TAGS",
    "ClassificationDocument",
    "load_classification_document",
]
