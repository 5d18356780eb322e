"""
Social Graph Models

Pydantic records returned by the graph stores. Attributes are snake_case;
``model_dump(by_alias=True)`` produces the camelCase shape used on the wire
and inside the graph (``userId``, ``createdAt``, ``commonLikersCount``).
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def normalize_tag_name(name: str) -> str:
    """Lower-case and trim a tag name."""
    return name.strip().lower()


def normalize_tag_names(names: Iterable[str] | str | None) -> list[str]:
    """Normalize tag names, dropping blanks and duplicates.

    First-seen order is preserved, so ``["Tech", " tech ", "news"]`` becomes
    ``["tech", "news"]``. A bare string is treated as a single tag.
    """
    if isinstance(names, str):
        names = [names]
    normalized: list[str] = []
    for name in names or ():
        tag = normalize_tag_name(name)
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized


def to_native_datetime(value: Any) -> Any:
    """Convert a Neo4j temporal value into a ``datetime``.

    Values without ``to_native`` (``datetime``, ISO strings) are returned
    unchanged for pydantic to parse.
    """
    to_native = getattr(value, "to_native", None)
    if callable(to_native):
        return to_native()
    return value


class GraphRecord(BaseModel):
    """Base class for records mapped from Cypher result rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("created_at", mode="before", check_fields=False)
    @classmethod
    def convert_graph_datetime(cls, v: Any) -> Any:
        """Accept ``neo4j.time.DateTime`` values straight from result rows."""
        return to_native_datetime(v)


class UserSummary(GraphRecord):
    """User identity as listed by adjacency queries."""

    user_id: str = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")


class UserRecord(UserSummary):
    """Full User node."""

    created_at: datetime = Field(..., description="When the user was created")


class CreatedPost(GraphRecord):
    """Result of a successful post creation."""

    post_id: str = Field(..., description="Unique post identifier")
    content: str = Field(..., description="Post body")
    created_at: datetime = Field(..., description="When the post was created")
    author_username: str = Field(..., description="Username of the author")
    tags: list[str] = Field(
        default_factory=list, description="Normalized tags attached to the post"
    )


class PostDetail(GraphRecord):
    """Post joined with its author and tag names."""

    post_id: str
    content: str
    created_at: datetime
    author: UserSummary
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: Any) -> Any:
        return v or []


class RecommendedPost(GraphRecord):
    """Post recommended through shared likers."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "postId": "8d7f7f1e-4c8b-4a57-9f2b-0e6c5f0a1d11",
                "content": "Graph databases are fun",
                "authorUsername": "alice",
                "commonLikersCount": 2,
                "tags": ["graphs", "tech"],
                "createdAt": "2024-05-01T12:00:00Z",
            }
        }
    )

    post_id: str
    content: str
    author_username: str
    common_likers_count: int = Field(
        ..., ge=1, description="Distinct likers shared with the reference post"
    )
    tags: list[str] = Field(default_factory=list)
    created_at: datetime

    @field_validator("common_likers_count", mode="before")
    @classmethod
    def convert_count(cls, v: Any) -> int:
        return int(v)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: Any) -> Any:
        return v or []
