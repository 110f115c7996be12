"""
Pytest configuration and fixtures.

Fixtures build the mock world from tests/mocks.py: classifications,
provider, rule enforcer and a fresh resource graph per test.
"""

import pytest

from infra_engine.construct import ResourceGraph
from infra_engine.engine import DecisionLog, OperationalRuleEnforcer

from mocks import MOCK_PROVIDER, mock_classifications, mock_provider


@pytest.fixture
def classifications():
    """Classification document for the mock resource types."""
    return mock_classifications()


@pytest.fixture
def provider():
    """Mock provider without operational templates."""
    return mock_provider()


@pytest.fixture
def enforcer(provider, classifications) -> OperationalRuleEnforcer:
    return OperationalRuleEnforcer({MOCK_PROVIDER: provider}, classifications)


@pytest.fixture
def graph() -> ResourceGraph:
    return ResourceGraph()


@pytest.fixture
def log() -> DecisionLog:
    return DecisionLog()


# ============================================================
# AUTO-MARKER FOR FULL SOLVES
# ============================================================
# Tests that use the engine fixture are marked "solve", so
# "pytest -m 'not solve'" runs only the component tests.

SOLVE_FIXTURES = {"engine"}


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests that run full engine solves."""
    solve_marker = pytest.mark.solve

    for item in items:
        if hasattr(item, "fixturenames"):
            if any(fixture in SOLVE_FIXTURES for fixture in item.fixturenames):
                if not any(mark.name == "solve" for mark in item.iter_markers()):
                    item.add_marker(solve_marker)
