"""
Pytest Configuration for Contract Query Engine Tests
====================================================
Shared fixtures and configuration for all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def engine_config():
    """Default compiled rule set"""
    from src.query_engine.rules import load_engine_config
    return load_engine_config()


@pytest.fixture(scope="session")
def test_queries():
    """Get standard test queries"""
    from tests.fixtures.standard_queries import STANDARD_TEST_QUERIES
    return STANDARD_TEST_QUERIES


@pytest.fixture
def flags():
    """Feature flags with every default, independent of the environment"""
    from config.feature_flags import FeatureFlags
    return FeatureFlags()


@pytest.fixture
def pipeline(engine_config, flags):
    """Fresh pipeline per test (own cache and stats)"""
    from src.query_engine.pipeline import QueryPipeline
    return QueryPipeline(config=engine_config, flags=flags, cache_size=32)


@pytest.fixture
def stages(engine_config):
    """All stages built from the default rule set"""
    from src.query_engine.pipeline import build_stages
    return build_stages(engine_config)


@pytest.fixture
def rules_file(tmp_path):
    """Write a JSON rule override file and return its path"""
    import json

    def _write(overrides, name="rules.json"):
        path = tmp_path / name
        path.write_text(json.dumps(overrides), encoding="utf-8")
        return path

    return _write


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on markers"""
    # Add integration marker to tests that use the API client
    for item in items:
        if "client" in item.fixturenames:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
