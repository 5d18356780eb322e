"""ContentGraphStore - Post and Tag nodes, POSTED/HAS_TAG/LIKED relationships.

Post creation writes the Post node, its POSTED relationship and every
HAS_TAG relationship in a single transaction, so a failure at any step
leaves no partial post behind.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from neo4j import AsyncTransaction

from socialgraph.exceptions import NotFoundError, ValidationError
from socialgraph.graph.connection import GraphSessionManager
from socialgraph.models import CreatedPost, PostDetail, UserSummary, normalize_tag_names

logger = structlog.get_logger(__name__)

CREATE_POST_QUERY = """
MATCH (author:User {userId: $authorId})
CREATE (post:Post {
    postId: $postId,
    content: $content,
    createdAt: datetime($createdAt)
})
CREATE (author)-[:POSTED]->(post)
RETURN post.postId AS postId, post.content AS content,
       post.createdAt AS createdAt, author.username AS authorUsername
"""

ATTACH_TAG_QUERY = """
MATCH (post:Post {postId: $postId})
MERGE (t:Tag {name: $tagName})
MERGE (post)-[:HAS_TAG]->(t)
RETURN t.name AS tagName
"""


class ContentGraphStore:
    """Neo4j store for posts, tags and likes."""

    def __init__(
        self, sessions: GraphSessionManager, strict_endpoints: bool | None = None
    ) -> None:
        """
        Initialize ContentGraphStore.

        Args:
            sessions: Shared session manager
            strict_endpoints: Raise when a LIKED merge matches no user/post
                (defaults to ``STRICT_ENDPOINT_MATCHING``)
        """
        self.sessions = sessions
        if strict_endpoints is None:
            strict_endpoints = sessions.config.STRICT_ENDPOINT_MATCHING
        self.strict_endpoints = strict_endpoints

    async def create_post(
        self,
        content: str,
        author_id: str,
        tags: Iterable[str] | str | None = None,
    ) -> CreatedPost:
        """Create a Post authored by ``author_id`` and attach its tags.

        Tag names are lower-cased and trimmed; duplicates collapse to a
        single HAS_TAG relationship and are processed in input order.

        Args:
            content: Post body
            author_id: userId of the author
            tags: Optional tag names (a bare string is one tag)

        Returns:
            CreatedPost: The created post with the tags actually attached

        Raises:
            ValidationError: If content is empty
            NotFoundError: If the author does not exist (nothing is written)
            GraphOperationError: If the transaction fails
        """
        if not content or not content.strip():
            raise ValidationError("Post content cannot be empty")

        tag_names = normalize_tag_names(tags)
        post_id = str(uuid4())
        created_at = datetime.now(UTC)

        async def work(tx: AsyncTransaction) -> dict[str, Any]:
            result = await tx.run(
                CREATE_POST_QUERY,
                authorId=author_id,
                postId=post_id,
                content=content,
                createdAt=created_at.isoformat(),
            )
            record = await result.single()
            if record is None:
                raise NotFoundError(
                    f"Author '{author_id}' not found", details={"author_id": author_id}
                )

            post = dict(record)
            post["tags"] = []
            for tag_name in tag_names:
                result = await tx.run(ATTACH_TAG_QUERY, postId=post_id, tagName=tag_name)
                tag_record = await result.single()
                if tag_record is not None:
                    post["tags"].append(tag_record["tagName"])
            return post

        try:
            post = CreatedPost.model_validate(await self.sessions.run_in_transaction(work))
        except NotFoundError:
            logger.warning("Post not created, author missing", author_id=author_id)
            raise

        logger.info(
            "Created Post node",
            post_id=post.post_id,
            author_id=author_id,
            tags=post.tags,
        )
        return post

    async def find_post_by_id(self, post_id: str) -> PostDetail | None:
        """Get a post with its author and tag names.

        Returns:
            PostDetail or None if not found
        """
        query = """
        MATCH (p:Post {postId: $postId})<-[:POSTED]-(author:User)
        OPTIONAL MATCH (p)-[:HAS_TAG]->(t:Tag)
        RETURN p.postId AS postId, p.content AS content, p.createdAt AS createdAt,
               author.userId AS authorId, author.username AS authorUsername,
               collect(DISTINCT t.name) AS tags
        """

        rows = await self.sessions.run_read(query, {"postId": post_id})
        if not rows:
            logger.debug("Post not found", post_id=post_id)
            return None

        row = rows[0]
        return PostDetail(
            post_id=row["postId"],
            content=row["content"],
            created_at=row["createdAt"],
            author=UserSummary(user_id=row["authorId"], username=row["authorUsername"]),
            tags=row["tags"],
        )

    async def like_post(self, user_id: str, post_id: str) -> None:
        """Create a LIKED relationship from a user to a post.

        Liking an already-liked post is a no-op.

        Raises:
            NotFoundError: If the user or post does not exist (strict mode)
            GraphOperationError: If the database operation fails
        """
        query = """
        MATCH (u:User {userId: $userId})
        MATCH (p:Post {postId: $postId})
        MERGE (u)-[r:LIKED]->(p)
        RETURN type(r) AS relationshipType
        """

        rows = await self.sessions.run_write(query, {"userId": user_id, "postId": post_id})

        if rows:
            logger.info("User liked post", user_id=user_id, post_id=post_id)
            return

        if self.strict_endpoints:
            raise NotFoundError(
                "User or post not found",
                details={"user_id": user_id, "post_id": post_id},
            )
        logger.warning(
            "LIKED relationship not created, check that user and post exist",
            user_id=user_id,
            post_id=post_id,
        )

    async def get_likes_for_post(self, post_id: str) -> list[UserSummary]:
        """List users who liked ``post_id``."""
        query = """
        MATCH (u:User)-[:LIKED]->(:Post {postId: $postId})
        RETURN u.userId AS userId, u.username AS username
        """

        rows = await self.sessions.run_read(query, {"postId": post_id})
        logger.debug("Retrieved post likes", post_id=post_id, count=len(rows))
        return [UserSummary.model_validate(row) for row in rows]
