"""Root-level pytest configuration and shared Neo4j doubles."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from socialgraph.config import Settings
from socialgraph.graph.connection import GraphSessionManager

# Configure pytest plugins at top level
pytest_plugins = ("pytest_asyncio",)


def make_result(
    rows: list[dict[str, Any]] | None = None, single: Any = None
) -> MagicMock:
    """Build a mock Neo4j result.

    ``data()`` returns ``rows``; ``single()`` returns ``single``.
    """
    result = MagicMock()
    result.data = AsyncMock(return_value=rows or [])
    result.single = AsyncMock(return_value=single)
    result.consume = AsyncMock()
    return result


@pytest.fixture
def result_factory():
    """Expose ``make_result`` to tests."""
    return make_result


@pytest.fixture
def test_settings() -> Settings:
    """Settings with credentials filled in, independent of the environment."""
    return Settings(
        _env_file=None,
        NEO4J_URI="bolt://localhost:7687",
        NEO4J_USER="neo4j",
        NEO4J_PASSWORD="testpassword",
        NEO4J_DATABASE="socialgraph",
    )


@pytest.fixture
def mock_tx() -> AsyncMock:
    """Create mock Neo4j transaction."""
    tx = AsyncMock()
    tx.run = AsyncMock(return_value=make_result())
    return tx


@pytest.fixture
def mock_session(mock_tx: AsyncMock) -> AsyncMock:
    """Create mock Neo4j session."""
    session = AsyncMock()
    session.run = AsyncMock(return_value=make_result())
    session.begin_transaction = AsyncMock(return_value=mock_tx)
    return session


@pytest.fixture
def mock_driver(mock_session: AsyncMock) -> MagicMock:
    """Mock driver whose session() context manager yields ``mock_session``."""
    driver = MagicMock()
    driver.session.return_value.__aenter__.return_value = mock_session
    driver.session.return_value.__aexit__.return_value = None
    driver.verify_connectivity = AsyncMock()
    driver.close = AsyncMock()
    return driver


@pytest.fixture
def sessions(test_settings: Settings, mock_driver: MagicMock) -> GraphSessionManager:
    """Session manager wired to the mock driver."""
    return GraphSessionManager(test_settings, driver=mock_driver)
