"""
Neo4j database configuration settings.
"""

from pydantic import AliasChoices, Field, field_validator
from .base_config import BaseConfig

NEO4J_URI_SCHEMES = ("bolt", "bolt+s", "bolt+ssc", "neo4j", "neo4j+s", "neo4j+ssc")

class Neo4jSettings(BaseConfig):
    """
    Defines the Neo4j connection settings for the graph store.

    URI and credentials have no defaults: the crawler refuses to start without them.
    """
    NEO4J_URI: str = Field(min_length=1, description="Neo4j connection URI")
    NEO4J_USERNAME: str = Field(
        min_length=1,
        validation_alias=AliasChoices("NEO4J_USERNAME", "NEO4J_USR"),
        description="Neo4j username",
    )
    NEO4J_PASSWORD: str = Field(
        min_length=1,
        validation_alias=AliasChoices("NEO4J_PASSWORD", "NEO4J_PWD"),
        description="Neo4j password",
    )
    NEO4J_DATABASE: str = Field(default="neo4j", description="Neo4j database name")
    NEO4J_CONNECTION_TIMEOUT: float = Field(default=30.0, description="Neo4j connection timeout in seconds")
    NEO4J_MAX_CONNECTION_POOL_SIZE: int = Field(default=50, description="Neo4j maximum connection pool size")
    NEO4J_MAX_TRANSACTION_RETRY_TIME: float = Field(default=30.0, description="Neo4j maximum transaction retry time in seconds")

    @field_validator('NEO4J_URI')
    @classmethod
    def validate_uri(cls, v: str) -> str:
        """Validate that the URI uses a scheme the driver supports."""
        scheme, sep, _ = v.partition("://")
        if v and (not sep or scheme.lower() not in NEO4J_URI_SCHEMES):
            raise ValueError(f"URI scheme must be one of {', '.join(NEO4J_URI_SCHEMES)}")
        return v

    @field_validator('NEO4J_CONNECTION_TIMEOUT', 'NEO4J_MAX_TRANSACTION_RETRY_TIME')
    @classmethod
    def validate_timeout(cls, v):
        """Validate that timeout values are positive."""
        if v <= 0:
            raise ValueError(f"Timeout values must be positive, got {v}")
        return v

    @field_validator('NEO4J_MAX_CONNECTION_POOL_SIZE')
    @classmethod
    def validate_positive_int(cls, v):
        """Validate that integer values are positive."""
        if v <= 0:
            raise ValueError(f"Integer values must be positive, got {v}")
        return v

