"""
Integration Test Fixtures

Tests in this directory run against a real Neo4j started with testcontainers
and are marked with @pytest.mark.integration.
"""

import pytest

from tests.integration.fixtures.neo4j import (  # noqa: F401
    neo4j_container,
    neo4j_settings,
    social_graph,
)


def pytest_collection_modifyitems(config, items):
    """Mark every test collected here as an integration test."""
    for item in items:
        if "tests/integration" in str(item.fspath).replace("\\", "/"):
            item.add_marker(pytest.mark.integration)
