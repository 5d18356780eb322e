"""
Neo4j Connection Management

Provides the async Neo4j driver lifecycle, scoped read/write sessions,
managed transactions, and schema setup for the social graph database.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any, TypeVar

import structlog
from neo4j import (
    READ_ACCESS,
    WRITE_ACCESS,
    AsyncDriver,
    AsyncGraphDatabase,
    AsyncSession,
    AsyncTransaction,
)
from neo4j.exceptions import ConstraintError, DriverError, Neo4jError

from socialgraph.config import Settings, settings as default_settings
from socialgraph.exceptions import (
    ConflictError,
    GraphConfigurationError,
    GraphOperationError,
    GraphUnavailableError,
)
from socialgraph.graph.schema import SCHEMA_FILE, load_schema_statements

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@contextmanager
def translate_driver_errors(operation: str) -> Iterator[None]:
    """Re-raise driver failures as social graph exceptions.

    Args:
        operation: Short description of the statement, used in logs and messages

    Raises:
        ConflictError: On uniqueness constraint violations
        GraphOperationError: On any other Neo4j or driver failure
    """
    try:
        yield
    except ConstraintError as e:
        logger.warning("Constraint violated", operation=operation, error=str(e))
        raise ConflictError(
            f"Constraint violated during {operation}",
            details={"operation": operation, "neo4j_code": getattr(e, "code", None)},
        ) from e
    except (Neo4jError, DriverError) as e:
        logger.error("Graph operation failed", operation=operation, error=str(e))
        raise GraphOperationError(
            f"Graph operation failed during {operation}: {e}",
            details={"operation": operation},
        ) from e


class GraphSessionManager:
    """Owns the Neo4j driver and hands out scoped sessions.

    One instance is created at process start, initialized once, shared by
    reference with every store, and closed once at shutdown.

    Example:
        ```python
        sessions = GraphSessionManager(settings)
        await sessions.initialize()

        rows = await sessions.run_read(
            "MATCH (u:User {userId: $userId}) RETURN u.username AS username",
            {"userId": user_id},
        )

        async def work(tx):
            result = await tx.run("CREATE (t:Tag {name: $name})", name="graphs")
            await result.consume()

        await sessions.run_in_transaction(work)
        await sessions.close()
        ```
    """

    def __init__(
        self,
        config: Settings | None = None,
        driver: AsyncDriver | None = None,
    ) -> None:
        """
        Initialize GraphSessionManager.

        Args:
            config: Connection settings (defaults to the global settings)
            driver: Prebuilt driver, skips driver creation in ``initialize``
                (connectivity and schema are still checked there)
        """
        self.config = config or default_settings
        self._driver = driver
        self._initialized = False

    @property
    def database(self) -> str:
        """Default database targeted by new sessions."""
        return self.config.NEO4J_DATABASE

    @property
    def driver(self) -> AsyncDriver:
        """
        Get the Neo4j driver.

        Raises:
            GraphUnavailableError: If the driver is not initialized
        """
        if self._driver is None:
            raise GraphUnavailableError(
                "Neo4j driver not initialized. Call initialize() first."
            )
        return self._driver

    async def initialize(self) -> AsyncDriver:
        """
        Create the driver, verify connectivity and apply the graph schema.

        Returns:
            AsyncDriver: Configured Neo4j async driver

        Raises:
            GraphConfigurationError: If connection settings are missing
            GraphUnavailableError: If the database cannot be reached
        """
        if self._initialized and self._driver is not None:
            logger.warning("Neo4j driver already initialized, returning existing instance")
            return self._driver

        injected = self._driver is not None
        if injected:
            driver = self._driver
            logger.info("Initializing injected Neo4j driver", database=self.database)
        else:
            driver = self._create_driver()

        try:
            await driver.verify_connectivity()
            self._driver = driver
            await self._apply_schema()
        except Exception as e:
            logger.error("Failed to initialize Neo4j driver", error=str(e))
            if not injected:
                # Only a driver built here is ours to close
                self._driver = None
                await driver.close()
            raise GraphUnavailableError(f"Neo4j initialization failed: {e}") from e

        self._initialized = True
        logger.info("Neo4j driver initialized successfully")
        return driver

    def _create_driver(self) -> AsyncDriver:
        """Build a driver from the configured connection settings."""
        if not self.config.NEO4J_URI:
            raise GraphConfigurationError("Neo4j URI is not configured")
        if not self.config.NEO4J_USER or not self.config.NEO4J_PASSWORD:
            raise GraphConfigurationError("Neo4j username or password is not configured")

        logger.info(
            "Initializing Neo4j driver",
            uri=self.config.NEO4J_URI,
            database=self.database,
            pool_size=self.config.NEO4J_MAX_CONNECTION_POOL_SIZE,
        )

        return AsyncGraphDatabase.driver(
            self.config.NEO4J_URI,
            auth=(self.config.NEO4J_USER, self.config.NEO4J_PASSWORD),
            max_connection_lifetime=self.config.NEO4J_MAX_CONNECTION_LIFETIME,
            max_connection_pool_size=self.config.NEO4J_MAX_CONNECTION_POOL_SIZE,
            connection_acquisition_timeout=self.config.NEO4J_CONNECTION_ACQUISITION_TIMEOUT,
            encrypted=self.config.NEO4J_ENCRYPTED,
        )

    async def close(self) -> None:
        """Close the driver and its connection pool."""
        if self._driver is None:
            logger.warning("Neo4j driver not initialized, nothing to close")
            return

        logger.info("Closing Neo4j driver")
        driver, self._driver = self._driver, None
        self._initialized = False
        await driver.close()
        logger.info("Neo4j driver closed successfully")

    @asynccontextmanager
    async def read_session(self, database: str | None = None) -> AsyncIterator[AsyncSession]:
        """
        Open a read-mode session, closed on exit.

        Example:
            async with sessions.read_session() as session:
                result = await session.run("MATCH (n) RETURN count(n) AS total")
                record = await result.single()
        """
        async with self.driver.session(
            database=database or self.database,
            default_access_mode=READ_ACCESS,
        ) as session:
            yield session

    @asynccontextmanager
    async def write_session(self, database: str | None = None) -> AsyncIterator[AsyncSession]:
        """Open a write-mode session, closed on exit."""
        async with self.driver.session(
            database=database or self.database,
            default_access_mode=WRITE_ACCESS,
        ) as session:
            yield session

    async def run_read(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Run a single read statement and return its rows.

        Args:
            query: Cypher statement
            parameters: Statement parameters
            database: Target database (defaults to the configured one)

        Returns:
            List of row dictionaries keyed by the RETURN aliases

        Raises:
            GraphOperationError: If the statement fails
        """
        with translate_driver_errors("read query"):
            async with self.read_session(database) as session:
                result = await session.run(query, parameters or {})
                return await result.data()

    async def run_write(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Run a single write statement in auto-commit mode and return its rows.

        Raises:
            ConflictError: If the statement violates a uniqueness constraint
            GraphOperationError: If the statement fails
        """
        with translate_driver_errors("write query"):
            async with self.write_session(database) as session:
                result = await session.run(query, parameters or {})
                return await result.data()

    async def run_in_transaction(
        self,
        work: Callable[[AsyncTransaction], Awaitable[T]],
        database: str | None = None,
    ) -> T:
        """
        Run a unit of work inside one write transaction.

        ``work`` is awaited exactly once. The transaction commits when it
        returns and rolls back when it raises; the exception is re-raised
        after rollback. Nothing written by ``work`` is visible to other
        transactions before commit.

        Args:
            work: Coroutine function receiving the transaction handle
            database: Target database (defaults to the configured one)

        Returns:
            Whatever ``work`` returns

        Raises:
            SocialGraphError: Domain errors raised by ``work`` pass through
            ConflictError: If a statement violates a uniqueness constraint
            GraphOperationError: If a statement or the commit fails
        """
        with translate_driver_errors("transaction"):
            async with self.write_session(database) as session:
                tx = await session.begin_transaction()
                try:
                    result = await work(tx)
                except Exception as e:
                    logger.warning("Rolling back transaction", error=str(e))
                    try:
                        await tx.rollback()
                    except (Neo4jError, DriverError) as rollback_error:
                        # Keep the work's exception, not the rollback failure
                        logger.error(
                            "Transaction rollback failed",
                            error=str(rollback_error),
                            original_error=str(e),
                        )
                    raise
                else:
                    await tx.commit()
                finally:
                    try:
                        await tx.close()
                    except (Neo4jError, DriverError) as close_error:
                        logger.error("Transaction close failed", error=str(close_error))
                return result

    async def verify_health(self) -> bool:
        """
        Verify Neo4j connection health.

        Returns:
            bool: True if healthy, False otherwise
        """
        try:
            await self.driver.verify_connectivity()
            async with self.read_session() as session:
                result = await session.run("RETURN 1 AS health")
                record = await result.single()
                if record and record["health"] == 1:
                    logger.debug("Neo4j health check passed")
                    return True
            return False
        except Exception as e:
            logger.error("Neo4j health check failed", error=str(e))
            return False

    async def _apply_schema(self) -> None:
        """Create the uniqueness constraints listed in the schema file."""
        logger.info("Applying graph schema", schema_file=str(SCHEMA_FILE))

        statements = load_schema_statements()

        async with self.write_session() as session:
            for i, statement in enumerate(statements, 1):
                result = await session.run(statement)
                await result.consume()
                logger.debug(
                    "Executed schema statement",
                    statement_num=i,
                    total=len(statements),
                )

        logger.info("Graph schema applied", statements_executed=len(statements))
