# tests/mocks.py
"""
Mock resources, classifications and knowledge bases shared by the tests.

Every mock type lives under the "mock" provider. Tests that need a
specific knowledge-base shape build their own with mock_kb().
"""

from dataclasses import dataclass, field
from typing import List, Optional

from infra_engine.classification import ClassificationDocument
from infra_engine.construct import Resource
from infra_engine.knowledgebase import EdgeTemplate, KnowledgeBase
from infra_engine.provider import StaticProvider


MOCK_PROVIDER = "mock"


@dataclass
class NestedConfig:
    field1: int = 0
    field2: str = ""
    field3: bool = False
    arr1: List[str] = field(default_factory=list)


@dataclass
class MockResource1(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock1"


@dataclass
class MockResource2(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock2"


@dataclass
class MockResource3(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock3"


@dataclass
class MockResource4(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock4"


@dataclass
class MockResource5(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock5"

    mock1: Optional[Resource] = None
    mock2s: List[Resource] = field(default_factory=list)


@dataclass
class MockResource6(Resource):
    PROVIDER = MOCK_PROVIDER
    TYPE = "mock6"

    field1: int = 0
    field2: str = ""
    field3: bool = False
    arr1: List[str] = field(default_factory=list)
    arr2: List[NestedConfig] = field(default_factory=list)
    arr3: List[Optional[NestedConfig]] = field(default_factory=list)
    struct1: NestedConfig = field(default_factory=NestedConfig)
    struct2: Optional[NestedConfig] = None


MOCK_RESOURCES = [
    MockResource1,
    MockResource2,
    MockResource3,
    MockResource4,
    MockResource5,
    MockResource6,
]

# mock1/mock5 are compute, mock2 storage; the rest have no functionality.
# mock3 grants "highly_available" to compute constructs.
MOCK_CLASSIFICATIONS = {
    "mock:mock1:": {"is": ["compute"]},
    "mock:mock2:": {"is": ["storage"]},
    "mock:mock3:": {
        "is": ["network"],
        "gives": [{"attribute": "highly_available", "functionality": ["compute"]}],
    },
    "mock:mock4:": {"is": ["network"]},
    "mock:mock5:": {"is": ["compute", "serverless"]},
    "mock:mock6:": {"is": []},
}


def mock_classifications() -> ClassificationDocument:
    return ClassificationDocument.from_dict(MOCK_CLASSIFICATIONS)


def mock_kb(*pairs, **kwargs) -> KnowledgeBase:
    """Knowledge base with one template per (source, destination) class pair."""
    return KnowledgeBase.build(*(EdgeTemplate(src, dst) for src, dst in pairs), **kwargs)


def mock_provider(templates=None) -> StaticProvider:
    return StaticProvider(MOCK_PROVIDER, MOCK_RESOURCES, templates)
