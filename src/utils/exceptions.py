"""Exception types raised by the crawler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from models.repository import RepositoryReference


class DependagraphError(Exception):
    """Base class for crawler errors."""


class ConfigurationError(DependagraphError):
    """Raised when required startup settings are missing or invalid."""

    def __init__(self, message: str, variables: Iterable[str] = ()):
        super().__init__(message)
        self.variables = list(variables)


class MalformedReferenceError(DependagraphError, ValueError):
    """Raised when text is not of the form `org/repo`."""

    def __init__(self, text: str, reason: str = "must have exactly one slash"):
        super().__init__(f"invalid repository reference {text!r}: {reason}")
        self.text = text
        self.reason = reason


class DependencySourceError(DependagraphError):
    """Raised by a dependency source when a query fails."""


class FetchError(DependagraphError):
    """Raised when either neighborhood query of a crawl failed."""

    def __init__(self, reference: "RepositoryReference", query: str, cause: BaseException):
        super().__init__(f"failed to fetch {query} for {reference}: {cause}")
        self.reference = reference
        self.query = query
        self.cause = cause


class PersistenceError(DependagraphError):
    """Raised when a graph store transaction or read fails."""
