"""Unit tests for GraphSessionManager.

Tests cover:
- Driver initialization (fail-fast on missing settings and connectivity)
- Idempotent teardown
- Read/write session access modes and database targeting
- Single-statement helpers and driver error translation
- Managed transactions (commit, rollback, exactly-once invocation)
- Health check and schema loading
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from neo4j import READ_ACCESS, WRITE_ACCESS
from neo4j.exceptions import ConstraintError, ServiceUnavailable, TransientError

from socialgraph.exceptions import (
    ConflictError,
    ErrorKind,
    GraphConfigurationError,
    GraphOperationError,
    GraphUnavailableError,
    NotFoundError,
)
from socialgraph.graph.connection import GraphSessionManager
from socialgraph.graph.schema import SCHEMA_FILE, load_schema_statements


class TestInitialize:
    """Test driver lifecycle."""

    @pytest.mark.asyncio
    async def test_initialize_creates_driver_and_applies_schema(
        self, test_settings, mock_driver, mock_session
    ):
        """Test driver creation, connectivity check and schema statements."""
        manager = GraphSessionManager(test_settings)

        with patch(
            "socialgraph.graph.connection.AsyncGraphDatabase.driver",
            return_value=mock_driver,
        ) as driver_factory:
            driver = await manager.initialize()

        assert driver is mock_driver
        assert manager.driver is mock_driver

        driver_factory.assert_called_once()
        call_args = driver_factory.call_args
        assert call_args[0][0] == "bolt://localhost:7687"
        assert call_args[1]["auth"] == ("neo4j", "testpassword")
        assert call_args[1]["max_connection_pool_size"] == 50

        mock_driver.verify_connectivity.assert_awaited_once()
        statements = [call[0][0] for call in mock_session.run.call_args_list]
        assert len(statements) == len(load_schema_statements())
        assert all(stmt.startswith("CREATE CONSTRAINT") for stmt in statements)

    @pytest.mark.asyncio
    async def test_initialize_missing_password(self, test_settings):
        """Test fail-fast when credentials are not configured."""
        config = test_settings.model_copy(update={"NEO4J_PASSWORD": ""})
        manager = GraphSessionManager(config)

        with patch("socialgraph.graph.connection.AsyncGraphDatabase.driver") as driver_factory:
            with pytest.raises(GraphConfigurationError, match="username or password"):
                await manager.initialize()

        driver_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_initialize_missing_uri(self, test_settings):
        """Test fail-fast when the URI is not configured."""
        config = test_settings.model_copy(update={"NEO4J_URI": ""})

        with pytest.raises(GraphConfigurationError, match="URI"):
            await GraphSessionManager(config).initialize()

    @pytest.mark.asyncio
    async def test_initialize_connectivity_failure(self, test_settings, mock_driver):
        """Test connectivity failure propagates and releases the driver."""
        mock_driver.verify_connectivity.side_effect = ServiceUnavailable("down")
        manager = GraphSessionManager(test_settings)

        with patch(
            "socialgraph.graph.connection.AsyncGraphDatabase.driver",
            return_value=mock_driver,
        ):
            with pytest.raises(GraphUnavailableError, match="initialization failed"):
                await manager.initialize()

        mock_driver.close.assert_awaited_once()
        with pytest.raises(GraphUnavailableError, match="not initialized"):
            _ = manager.driver

    @pytest.mark.asyncio
    async def test_initialize_twice_returns_existing_driver(self, sessions, mock_driver):
        """Test repeated initialization does not build a second driver."""
        with patch("socialgraph.graph.connection.AsyncGraphDatabase.driver") as driver_factory:
            assert await sessions.initialize() is mock_driver

        driver_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_initialize_injected_driver_applies_schema(
        self, test_settings, mock_driver, mock_session
    ):
        """Test an injected driver is still checked and gets the constraints."""
        manager = GraphSessionManager(test_settings, driver=mock_driver)

        with patch("socialgraph.graph.connection.AsyncGraphDatabase.driver") as driver_factory:
            assert await manager.initialize() is mock_driver
            await manager.initialize()

        driver_factory.assert_not_called()
        mock_driver.verify_connectivity.assert_awaited_once()
        statements = [call[0][0] for call in mock_session.run.call_args_list]
        assert len(statements) == len(load_schema_statements())
        assert any("u.username IS UNIQUE" in stmt for stmt in statements)

    @pytest.mark.asyncio
    async def test_initialize_injected_driver_unreachable(self, test_settings, mock_driver):
        """Test an unreachable injected driver fails fast but is not closed."""
        mock_driver.verify_connectivity.side_effect = ServiceUnavailable("down")
        manager = GraphSessionManager(test_settings, driver=mock_driver)

        with pytest.raises(GraphUnavailableError, match="initialization failed"):
            await manager.initialize()

        mock_driver.close.assert_not_awaited()
        assert manager.driver is mock_driver

    @pytest.mark.asyncio
    async def test_close(self, sessions, mock_driver):
        """Test close releases the pool and forgets the driver."""
        await sessions.close()

        mock_driver.close.assert_awaited_once()
        with pytest.raises(GraphUnavailableError):
            _ = sessions.driver

        # Second close is a no-op
        await sessions.close()
        mock_driver.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_never_initialized(self, test_settings):
        """Test close before initialize does not raise."""
        await GraphSessionManager(test_settings).close()


class TestSessions:
    """Test scoped session access."""

    @pytest.mark.asyncio
    async def test_read_session_defaults(self, sessions, mock_driver, mock_session):
        """Test read sessions use READ access on the configured database."""
        async with sessions.read_session() as session:
            assert session is mock_session

        mock_driver.session.assert_called_once_with(
            database="socialgraph", default_access_mode=READ_ACCESS
        )
        mock_driver.session.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_session_database_override(self, sessions, mock_driver):
        """Test write sessions honour a database override."""
        async with sessions.write_session("analytics"):
            pass

        mock_driver.session.assert_called_once_with(
            database="analytics", default_access_mode=WRITE_ACCESS
        )

    @pytest.mark.asyncio
    async def test_session_released_on_error(self, sessions, mock_driver):
        """Test the session is closed when the body raises."""
        with pytest.raises(RuntimeError):
            async with sessions.read_session():
                raise RuntimeError("boom")

        mock_driver.session.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_read_returns_rows(self, sessions, mock_session, result_factory):
        """Test run_read returns row dictionaries."""
        mock_session.run.return_value = result_factory([{"total": 3}])

        rows = await sessions.run_read("MATCH (n) RETURN count(n) AS total", {"x": 1})

        assert rows == [{"total": 3}]
        mock_session.run.assert_awaited_once_with("MATCH (n) RETURN count(n) AS total", {"x": 1})

    @pytest.mark.asyncio
    async def test_run_write_constraint_violation(self, sessions, mock_session):
        """Test constraint violations surface as ConflictError."""
        mock_session.run.side_effect = ConstraintError("already exists")

        with pytest.raises(ConflictError) as exc_info:
            await sessions.run_write("CREATE (u:User {username: $username})", {"username": "bob"})

        assert exc_info.value.kind is ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_run_read_driver_failure(self, sessions, mock_session):
        """Test driver failures surface as GraphOperationError."""
        mock_session.run.side_effect = ServiceUnavailable("connection lost")

        with pytest.raises(GraphOperationError) as exc_info:
            await sessions.run_read("RETURN 1")

        assert exc_info.value.kind is ErrorKind.INTERNAL
        assert isinstance(exc_info.value.__cause__, ServiceUnavailable)


class TestRunInTransaction:
    """Test managed transactions."""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, sessions, mock_session, mock_tx):
        """Test work result is returned and the transaction committed."""
        work = AsyncMock(return_value={"ok": True})

        result = await sessions.run_in_transaction(work)

        assert result == {"ok": True}
        work.assert_awaited_once_with(mock_tx)
        mock_session.begin_transaction.assert_awaited_once()
        mock_tx.commit.assert_awaited_once()
        mock_tx.rollback.assert_not_awaited()
        mock_tx.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollback_on_domain_error(self, sessions, mock_tx):
        """Test domain errors roll back and propagate unchanged."""
        work = AsyncMock(side_effect=NotFoundError("Author 'x' not found"))

        with pytest.raises(NotFoundError, match="Author 'x' not found"):
            await sessions.run_in_transaction(work)

        work.assert_awaited_once()
        mock_tx.rollback.assert_awaited_once()
        mock_tx.commit.assert_not_awaited()
        mock_tx.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_domain_error(self, sessions, mock_tx):
        """Test a failed rollback does not replace the work's exception."""
        work = AsyncMock(side_effect=NotFoundError("Author 'x' not found"))
        mock_tx.rollback.side_effect = ServiceUnavailable("connection lost")
        mock_tx.close.side_effect = ServiceUnavailable("connection lost")

        with pytest.raises(NotFoundError, match="Author 'x' not found"):
            await sessions.run_in_transaction(work)

        mock_tx.rollback.assert_awaited_once()
        mock_tx.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transient_error_not_retried(self, sessions, mock_tx):
        """Test the unit of work runs once even for retryable driver errors."""
        work = AsyncMock(side_effect=TransientError("deadlock"))

        with pytest.raises(GraphOperationError):
            await sessions.run_in_transaction(work)

        work.assert_awaited_once()
        mock_tx.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_uses_write_session(self, sessions, mock_driver):
        """Test transactions open a write session."""
        await sessions.run_in_transaction(AsyncMock(return_value=None), database="other")

        mock_driver.session.assert_called_once_with(
            database="other", default_access_mode=WRITE_ACCESS
        )


class TestHealth:
    """Test connectivity health check."""

    @pytest.mark.asyncio
    async def test_verify_health_ok(self, sessions, mock_session, result_factory):
        mock_session.run.return_value = result_factory(single={"health": 1})

        assert await sessions.verify_health() is True

    @pytest.mark.asyncio
    async def test_verify_health_failure(self, sessions, mock_driver):
        mock_driver.verify_connectivity.side_effect = ServiceUnavailable("down")

        assert await sessions.verify_health() is False

    @pytest.mark.asyncio
    async def test_verify_health_uninitialized(self, test_settings):
        assert await GraphSessionManager(test_settings).verify_health() is False


def test_load_schema_statements():
    """Test schema file parsing drops comments and splits statements."""
    statements = load_schema_statements(SCHEMA_FILE)

    assert len(statements) == 4
    assert not any("//" in stmt for stmt in statements)
    assert any("u.username IS UNIQUE" in stmt for stmt in statements)
    assert any("t.name IS UNIQUE" in stmt for stmt in statements)


def test_driver_property_uninitialized(test_settings):
    manager = GraphSessionManager(test_settings)

    with pytest.raises(GraphUnavailableError):
        _ = manager.driver
    assert manager.database == "socialgraph"
