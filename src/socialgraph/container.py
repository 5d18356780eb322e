"""
Social Graph composition root.

Builds the session manager and the stores that share it, and ties their
lifetime to ``start()`` / ``close()``.
"""

from __future__ import annotations

from types import TracebackType

import structlog

from socialgraph.config import Settings, settings as default_settings
from socialgraph.graph.connection import GraphSessionManager
from socialgraph.graph.posts import ContentGraphStore
from socialgraph.graph.recommendations import RecommendationEngine
from socialgraph.graph.users import IdentityGraphStore
from socialgraph.logging_config import configure_logging

logger = structlog.get_logger(__name__)


class SocialGraph:
    """Owns one GraphSessionManager and the components using it.

    Example:
        ```python
        async with SocialGraph(settings) as graph:
            user = await graph.users.create_user("alice")
            post = await graph.posts.create_post("hello", user.user_id, ["intro"])
        ```
    """

    def __init__(
        self,
        config: Settings | None = None,
        sessions: GraphSessionManager | None = None,
        setup_logging: bool = True,
    ) -> None:
        """
        Args:
            config: Settings (defaults to the global settings)
            sessions: Shared session manager, built from ``config`` when omitted
            setup_logging: Apply ``LOG_LEVEL`` / ``LOG_JSON`` on ``start()``
        """
        self.config = config or default_settings
        self.setup_logging = setup_logging
        self.sessions = sessions or GraphSessionManager(self.config)
        self.users = IdentityGraphStore(self.sessions)
        self.posts = ContentGraphStore(self.sessions)
        self.recommendations = RecommendationEngine(self.sessions)

    async def start(self) -> None:
        """Connect to Neo4j; raises if the database is unreachable."""
        if self.setup_logging:
            configure_logging(config=self.config)
        logger.info("Starting social graph", database=self.sessions.database)
        await self.sessions.initialize()

    async def close(self) -> None:
        """Release the connection pool."""
        await self.sessions.close()
        logger.info("Social graph stopped")

    async def __aenter__(self) -> SocialGraph:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
