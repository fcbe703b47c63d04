"""Repository identity and dependency records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from utils.exceptions import MalformedReferenceError

SEPARATOR = "/"


@dataclass(frozen=True)
class RepositoryReference:
    """A crawlable repository identified by `organization/name`."""

    organization: str
    name: str

    def __post_init__(self) -> None:
        if not self.organization or not self.name:
            raise MalformedReferenceError(
                f"{self.organization}{SEPARATOR}{self.name}",
                "organization and name must be non-empty",
            )

    @classmethod
    def parse(cls, text: str) -> "RepositoryReference":
        """Parse `org/repo`; no other validation is applied."""
        parts = (text or "").split(SEPARATOR)
        if len(parts) != 2:
            raise MalformedReferenceError(text or "")
        return cls(organization=parts[0], name=parts[1])

    def __str__(self) -> str:
        return SEPARATOR.join((self.organization, self.name))


@dataclass(frozen=True)
class Repository:
    """A dependency as reported by a dependency source.

    Only `fully_qualified_name` is guaranteed; it becomes the graph node key.
    """

    fully_qualified_name: str
    organization: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    version: Optional[str] = None
    language: Optional[str] = None

    @classmethod
    def from_reference(cls, ref: RepositoryReference, url: Optional[str] = None) -> "Repository":
        return cls(
            fully_qualified_name=str(ref),
            organization=ref.organization,
            name=ref.name,
            url=url,
        )
