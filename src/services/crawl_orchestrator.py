"""Fetch one repository's window and commit it to the graph store."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from models.repository import RepositoryReference
from services.contracts import DependencySource, GraphStore
from utils.exceptions import FetchError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CrawlResult:
    reference: RepositoryReference
    dependencies: int
    dependents: int


class CrawlOrchestrator:
    """Runs single crawls: two concurrent reads, then at most one write."""

    def __init__(self, source: DependencySource, store: GraphStore):
        self.source = source
        self.store = store

    async def crawl(self, ref: RepositoryReference) -> CrawlResult:
        """
        Crawl `ref` and persist its window.

        Both queries always run to completion. If either failed nothing is
        written and the node stays in the frontier.

        Raises:
            FetchError: If the dependencies or the dependents query failed
            PersistenceError: If the store rejected the window
        """
        log = logger.bind(reference=str(ref))
        log.info("Crawl started")

        dependencies, dependents = await asyncio.gather(
            self.source.get_dependencies(ref),
            self.source.get_dependents(ref),
            return_exceptions=True,
        )

        if isinstance(dependencies, BaseException):
            raise FetchError(ref, "dependencies", dependencies) from dependencies
        if isinstance(dependents, BaseException):
            raise FetchError(ref, "dependents", dependents) from dependents

        # The Neo4j driver is blocking; keep it off the event loop.
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.store.save_window, ref, dependencies, dependents)

        result = CrawlResult(reference=ref, dependencies=len(dependencies), dependents=len(dependents))
        log.info("Crawl committed", dependencies=result.dependencies, dependents=result.dependents)
        return result
