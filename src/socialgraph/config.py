"""
Social Graph Configuration

Environment-based configuration for the Neo4j connection and graph services.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Neo4j Graph Database
    NEO4J_URI: str = Field(
        default="bolt://localhost:7687", description="Neo4j Bolt protocol URI"
    )
    NEO4J_USER: str = Field(default="neo4j", description="Neo4j username")
    NEO4J_PASSWORD: str = Field(default="", description="Neo4j password")
    NEO4J_DATABASE: str = Field(default="neo4j", description="Neo4j database name")
    NEO4J_MAX_CONNECTION_LIFETIME: int = Field(
        default=3600, gt=0, description="Neo4j connection lifetime in seconds"
    )
    NEO4J_MAX_CONNECTION_POOL_SIZE: int = Field(
        default=50, ge=1, description="Maximum Neo4j connection pool size"
    )
    NEO4J_CONNECTION_ACQUISITION_TIMEOUT: int = Field(
        default=60, gt=0, description="Neo4j connection acquisition timeout in seconds"
    )
    NEO4J_ENCRYPTED: bool = Field(
        default=False, description="Enable TLS encryption for Neo4j connections"
    )

    # Graph services
    RECOMMENDATION_LIMIT: int = Field(
        default=10, ge=1, le=100, description="Number of recommended posts returned"
    )
    STRICT_ENDPOINT_MATCHING: bool = Field(
        default=True,
        description="Raise not-found when a like/follow merge matches no endpoints",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(default=False, description="Render logs as JSON lines")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",  # Ignore extra environment variables
    }


# Global settings instance
settings = Settings()
