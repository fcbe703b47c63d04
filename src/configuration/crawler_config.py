"""
Composed configuration settings for the crawler process.
"""
from functools import lru_cache
from typing import Iterable, List

from pydantic import Field, ValidationError, field_validator
from dotenv import load_dotenv

from utils.exceptions import ConfigurationError
from .base_config import BaseConfig
from .neo4j_config import Neo4jSettings
from .github_config import GitHubSettings

# Explicitly load .env file at the module level.
load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CrawlerSettings(BaseConfig):
    """
    Holds the composed settings for the crawler.
    """

    CRAWL_MAX_CONCURRENCY: int = Field(
        default=8,
        description="Maximum number of crawls in flight in coalesce mode"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level"
    )

    neo4j: Neo4jSettings
    github: GitHubSettings

    @field_validator('CRAWL_MAX_CONCURRENCY')
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Validate that the worker pool has at least one slot."""
        if v <= 0:
            raise ValueError(f"Concurrency must be positive, got {v}")
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


def _error_variables(error: ValidationError) -> List[str]:
    names = []
    for item in error.errors():
        loc = item.get("loc") or ()
        if loc:
            names.append(str(loc[0]))
    return names


def _describe(error: ValidationError) -> Iterable[str]:
    for item in error.errors():
        loc = item.get("loc") or ("?",)
        if item.get("type") in ("missing", "string_too_short"):
            yield f"{loc[0]} not set"
        else:
            yield f"{loc[0]}: {item.get('msg')}"


@lru_cache()
def get_crawler_settings() -> CrawlerSettings:
    """
    Load every settings group once.

    Raises:
        ConfigurationError: naming each missing or invalid variable
    """
    problems: List[str] = []
    variables: List[str] = []
    groups = {}
    for key, factory in (("neo4j", Neo4jSettings), ("github", GitHubSettings)):
        try:
            groups[key] = factory()
        except ValidationError as e:
            problems.extend(_describe(e))
            variables.extend(_error_variables(e))

    if problems:
        raise ConfigurationError("; ".join(problems), variables)

    try:
        return CrawlerSettings(**groups)
    except ValidationError as e:
        raise ConfigurationError("; ".join(_describe(e)), _error_variables(e)) from e
