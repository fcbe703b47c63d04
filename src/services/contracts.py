"""Collaborator contracts used by the crawl orchestrator and frontier driver."""

from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from models.repository import Repository, RepositoryReference


class DependencySource(Protocol):
    """Reports the one-hop neighborhood of a repository."""

    async def get_dependencies(self, ref: RepositoryReference) -> list[Repository]:
        """Repositories and packages `ref` depends on."""

    async def get_dependents(self, ref: RepositoryReference) -> list[Repository]:
        """Repositories that depend on `ref`."""


class GraphStore(Protocol):
    """Durable owner of the dependency graph and therefore of the frontier."""

    def save_window(
        self,
        ref: RepositoryReference,
        dependencies: Sequence[Repository],
        dependents: Sequence[Repository],
    ) -> None:
        """Upsert `ref`, its neighbors and the edges between them atomically; mark `ref` targeted."""

    def get_untargeted_node(self, exclude: Collection[str] = ()) -> Optional[RepositoryReference]:
        """Return one frontier node not named in `exclude`, or None when the frontier is empty."""

    def ensure_schema(self) -> None:
        """Create constraints the store relies on, idempotently."""

    def close(self) -> None:
        """Release connections."""
