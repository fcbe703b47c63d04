"""
GitHub configuration settings.

Provides access configuration for the GitHub GraphQL API (dependencies) and the
public web pages that list a repository's dependents.
"""

from pydantic import Field, field_validator

from .base_config import BaseConfig


class GitHubSettings(BaseConfig):
    """
    GitHub API configuration settings.
    """

    GITHUB_API_SECRET: str = Field(
        min_length=1,
        description="Token sent as a Bearer credential to the GraphQL API"
    )

    GITHUB_GRAPHQL_URL: str = Field(
        default="https://api.github.com/graphql",
        description="GraphQL endpoint used for dependency manifests"
    )

    GITHUB_WEB_URL: str = Field(
        default="https://github.com",
        description="Base URL of the GitHub web UI (dependents listing)"
    )

    GITHUB_HTTP_TIMEOUT: float = Field(
        default=30.0,
        description="HTTP timeout for GitHub calls in seconds"
    )

    GITHUB_MANIFESTS_PAGE_SIZE: int = Field(
        default=100,
        description="Number of dependency manifests requested per repository"
    )

    GITHUB_DEPENDENCIES_PAGE_SIZE: int = Field(
        default=100,
        description="Number of dependencies requested per manifest"
    )

    GITHUB_DEPENDENTS_MAX_PAGES: int = Field(
        default=10,
        description="Maximum number of 'Used by' pages followed per repository"
    )

    @field_validator('GITHUB_GRAPHQL_URL', 'GITHUB_WEB_URL')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that the URL is properly formatted."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('GITHUB_HTTP_TIMEOUT')
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        """Validate that timeout values are positive."""
        if v <= 0:
            raise ValueError('Timeout values must be positive')
        return v

    @field_validator('GITHUB_MANIFESTS_PAGE_SIZE', 'GITHUB_DEPENDENCIES_PAGE_SIZE', 'GITHUB_DEPENDENTS_MAX_PAGES')
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate that page sizes and limits are positive."""
        if v <= 0:
            raise ValueError('Page sizes and limits must be positive')
        return v

