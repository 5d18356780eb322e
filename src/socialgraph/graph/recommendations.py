"""RecommendationEngine - "users who liked this post also liked".

Read-only traversal: likers of a reference post (minus an excluded user)
-> other posts those likers liked, ranked by the number of distinct shared
likers and then by recency.
"""

from __future__ import annotations

import structlog

from socialgraph.graph.connection import GraphSessionManager
from socialgraph.models import RecommendedPost

logger = structlog.get_logger(__name__)

RECOMMEND_FROM_LIKERS_QUERY = """
MATCH (target:Post {postId: $postId})<-[:LIKED]-(liker:User)
WHERE $excludeUserId IS NULL OR liker.userId <> $excludeUserId
MATCH (liker)-[:LIKED]->(other:Post)
WHERE other <> target
WITH other, count(DISTINCT liker) AS commonLikersCount
MATCH (author:User)-[:POSTED]->(other)
OPTIONAL MATCH (other)-[:HAS_TAG]->(t:Tag)
WITH other, author, commonLikersCount, collect(DISTINCT t.name) AS tags
RETURN other.postId AS postId,
       other.content AS content,
       other.createdAt AS createdAt,
       author.username AS authorUsername,
       commonLikersCount,
       tags
ORDER BY commonLikersCount DESC, createdAt DESC, postId ASC
LIMIT $limit
"""


class RecommendationEngine:
    """Recommend posts through shared likers.

    Example:
        ```python
        engine = RecommendationEngine(sessions)
        posts = await engine.recommend_from_likers(post_id, exclude_user_id=viewer_id)
        for post in posts:
            print(post.post_id, post.common_likers_count)
        ```
    """

    def __init__(self, sessions: GraphSessionManager, limit: int | None = None) -> None:
        """
        Initialize RecommendationEngine.

        Args:
            sessions: Shared session manager
            limit: Maximum number of recommendations (defaults to
                ``RECOMMENDATION_LIMIT``)
        """
        if limit is None:
            limit = sessions.config.RECOMMENDATION_LIMIT
        if limit < 1:
            raise ValueError(f"Recommendation limit must be positive, got {limit}")
        self.sessions = sessions
        self.limit = limit

    async def recommend_from_likers(
        self, post_id: str, exclude_user_id: str | None
    ) -> list[RecommendedPost]:
        """Rank other posts liked by the likers of ``post_id``.

        Args:
            post_id: Reference post
            exclude_user_id: Liker left out of the shared-liker set, usually
                the viewer; ``None`` keeps every liker

        Returns:
            Up to ``limit`` posts ordered by shared-liker count, then newest
            first. Empty when the post has no other likers.
        """
        rows = await self.sessions.run_read(
            RECOMMEND_FROM_LIKERS_QUERY,
            {"postId": post_id, "excludeUserId": exclude_user_id, "limit": self.limit},
        )

        recommendations = [RecommendedPost.model_validate(row) for row in rows]

        logger.info(
            "Computed recommendations from likers",
            post_id=post_id,
            exclude_user_id=exclude_user_id,
            count=len(recommendations),
        )
        return recommendations
