"""
Neo4j Graph Layer for the Social Graph

Session management, user/content stores and the likers-based
recommendation traversal.
"""

from socialgraph.graph.connection import GraphSessionManager
from socialgraph.graph.posts import ContentGraphStore
from socialgraph.graph.recommendations import RecommendationEngine
from socialgraph.graph.schema import SCHEMA_FILE
from socialgraph.graph.users import IdentityGraphStore

__all__ = [
    "SCHEMA_FILE",
    "ContentGraphStore",
    "GraphSessionManager",
    "IdentityGraphStore",
    "RecommendationEngine",
]
