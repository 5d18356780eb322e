"""IdentityGraphStore - User nodes and FOLLOWS relationships.

Provides graph operations for:
- User node creation (username uniqueness enforced by a graph constraint)
- Point lookup by userId
- FOLLOWS relationship creation (idempotent MERGE, self-follow rejected)
- Follower / following adjacency queries
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import structlog

from socialgraph.exceptions import (
    ConflictError,
    GraphOperationError,
    NotFoundError,
    ValidationError,
)
from socialgraph.graph.connection import GraphSessionManager
from socialgraph.models import UserRecord, UserSummary

logger = structlog.get_logger(__name__)

MIN_USERNAME_LENGTH = 3


class IdentityGraphStore:
    """Neo4j store for users and the FOLLOWS graph.

    Example:
        ```python
        users = IdentityGraphStore(sessions)

        alice = await users.create_user("alice")
        bob = await users.create_user("bob")
        await users.follow_user(alice.user_id, bob.user_id)

        following = await users.get_following(alice.user_id)
        ```
    """

    def __init__(
        self, sessions: GraphSessionManager, strict_endpoints: bool | None = None
    ) -> None:
        """
        Initialize IdentityGraphStore.

        Args:
            sessions: Shared session manager
            strict_endpoints: Raise when a FOLLOWS merge matches no users
                (defaults to ``STRICT_ENDPOINT_MATCHING``)
        """
        self.sessions = sessions
        if strict_endpoints is None:
            strict_endpoints = sessions.config.STRICT_ENDPOINT_MATCHING
        self.strict_endpoints = strict_endpoints

    async def create_user(self, username: str) -> UserRecord:
        """Create a User node.

        Args:
            username: Unique username (at least 3 characters after trimming)

        Returns:
            UserRecord: The created user

        Raises:
            ValidationError: If the username is too short
            ConflictError: If the username is already taken
            GraphOperationError: If the database operation fails
        """
        username = (username or "").strip()
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters",
                details={"username": username},
            )

        user_id = str(uuid4())
        created_at = datetime.now(UTC)

        query = """
        CREATE (u:User {
            userId: $userId,
            username: $username,
            createdAt: datetime($createdAt)
        })
        RETURN u.userId AS userId, u.username AS username, u.createdAt AS createdAt
        """

        try:
            rows = await self.sessions.run_write(
                query,
                {
                    "userId": user_id,
                    "username": username,
                    "createdAt": created_at.isoformat(),
                },
            )
        except ConflictError as e:
            raise ConflictError(
                f"User with username '{username}' already exists",
                details={"username": username},
            ) from e

        if not rows:
            raise GraphOperationError(
                "User creation failed, no record returned",
                details={"username": username},
            )

        user = UserRecord.model_validate(rows[0])
        logger.info("Created User node", user_id=user.user_id, username=username)
        return user

    async def find_user_by_id(self, user_id: str) -> UserRecord | None:
        """Get a user by id.

        Returns:
            UserRecord or None if not found
        """
        query = """
        MATCH (u:User {userId: $userId})
        RETURN u.userId AS userId, u.username AS username, u.createdAt AS createdAt
        """

        rows = await self.sessions.run_read(query, {"userId": user_id})
        if not rows:
            logger.debug("User not found", user_id=user_id)
            return None

        return UserRecord.model_validate(rows[0])

    async def follow_user(self, follower_id: str, followed_id: str) -> None:
        """Create a FOLLOWS relationship between two users.

        Following an already-followed user succeeds without adding a
        second relationship.

        Raises:
            ValidationError: If a user tries to follow themselves
            NotFoundError: If either user does not exist
            GraphOperationError: If the database operation fails
        """
        if follower_id == followed_id:
            raise ValidationError(
                "User cannot follow themselves", details={"user_id": follower_id}
            )

        for user_id in (follower_id, followed_id):
            if await self.find_user_by_id(user_id) is None:
                raise NotFoundError(
                    f"User '{user_id}' not found", details={"user_id": user_id}
                )

        query = """
        MATCH (follower:User {userId: $followerId})
        MATCH (followed:User {userId: $followedId})
        MERGE (follower)-[r:FOLLOWS]->(followed)
        RETURN type(r) AS relationshipType
        """

        rows = await self.sessions.run_write(
            query, {"followerId": follower_id, "followedId": followed_id}
        )

        if rows:
            logger.info(
                "Created/matched FOLLOWS relationship",
                follower_id=follower_id,
                followed_id=followed_id,
            )
            return

        if self.strict_endpoints:
            raise NotFoundError(
                "One or both users not found",
                details={"follower_id": follower_id, "followed_id": followed_id},
            )
        logger.warning(
            "FOLLOWS relationship not created, endpoints did not match",
            follower_id=follower_id,
            followed_id=followed_id,
        )

    async def get_followers(self, user_id: str) -> list[UserSummary]:
        """List users following ``user_id``."""
        query = """
        MATCH (follower:User)-[:FOLLOWS]->(:User {userId: $userId})
        RETURN follower.userId AS userId, follower.username AS username
        """

        rows = await self.sessions.run_read(query, {"userId": user_id})
        logger.debug("Retrieved followers", user_id=user_id, count=len(rows))
        return [UserSummary.model_validate(row) for row in rows]

    async def get_following(self, user_id: str) -> list[UserSummary]:
        """List users that ``user_id`` follows."""
        query = """
        MATCH (:User {userId: $userId})-[:FOLLOWS]->(followed:User)
        RETURN followed.userId AS userId, followed.username AS username
        """

        rows = await self.sessions.run_read(query, {"userId": user_id})
        logger.debug("Retrieved following", user_id=user_id, count=len(rows))
        return [UserSummary.model_validate(row) for row in rows]
