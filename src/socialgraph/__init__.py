"""Social graph data and query layer on Neo4j."""

from socialgraph.container import SocialGraph
from socialgraph.exceptions import (
    ConflictError,
    ErrorKind,
    GraphConfigurationError,
    GraphOperationError,
    GraphUnavailableError,
    NotFoundError,
    SocialGraphError,
    ValidationError,
)
from socialgraph.graph import (
    ContentGraphStore,
    GraphSessionManager,
    IdentityGraphStore,
    RecommendationEngine,
)
from socialgraph.models import (
    CreatedPost,
    PostDetail,
    RecommendedPost,
    UserRecord,
    UserSummary,
)

__version__ = "0.1.0"

__all__ = [
    "ConflictError",
    "ContentGraphStore",
    "CreatedPost",
    "ErrorKind",
    "GraphConfigurationError",
    "GraphOperationError",
    "GraphSessionManager",
    "GraphUnavailableError",
    "IdentityGraphStore",
    "NotFoundError",
    "PostDetail",
    "RecommendationEngine",
    "RecommendedPost",
    "SocialGraph",
    "SocialGraphError",
    "UserRecord",
    "UserSummary",
    "ValidationError",
]
