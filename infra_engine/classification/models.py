# infra_engine/classification/models.py
"""
Classification models.

A classification says what a resource type *is* (semantic tags) and what
it *gives* to constructs of a given functionality.
"""

from typing import Dict, List
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Gives:
    """Capability grant, scoped to one or more functionalities."""
    attribute: str
    functionality: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Classification:
    """Static tag/grant metadata for one resource type."""
    is_: List[str] = field(default_factory=list)
    gives: List[Gives] = field(default_factory=list)


EMPTY_CLASSIFICATION = Classification()


# ============================================================
# DOCUMENT SCHEMA
# ============================================================
# Validates classification documents loaded from JSON before they
# are converted to the dataclasses above.

class GivesModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    attribute: str
    functionality: List[str] = Field(default_factory=list)


class ClassificationModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    is_: List[str] = Field(default_factory=list, alias="is")
    gives: List[GivesModel] = Field(default_factory=list)

    def to_classification(self) -> Classification:
        return Classification(
            is_=list(self.is_),
            gives=[Gives(g.attribute, list(g.functionality)) for g in self.gives],
        )


class ClassificationDocumentModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    classifications: Dict[str, ClassificationModel] = Field(default_factory=dict)
