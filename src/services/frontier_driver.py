"""Top-level crawl loop.

The seed is crawled once. In coalesce mode the driver then keeps asking the
graph store for a node that has never been crawled and crawls it, until the
store has none left. The graph itself is the work queue.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Set

import structlog

from models.repository import RepositoryReference
from services.contracts import GraphStore
from services.crawl_orchestrator import CrawlOrchestrator
from utils.exceptions import DependagraphError, MalformedReferenceError, PersistenceError

logger = structlog.get_logger(__name__)


@dataclass
class DriverStats:
    crawled: int = 0
    failed: int = 0
    skipped: int = 0


class FrontierDriver:
    """Seeds the graph and, optionally, coalesces it through a bounded pool of crawls."""

    def __init__(self, orchestrator: CrawlOrchestrator, store: GraphStore, max_concurrency: int = 8):
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self.orchestrator = orchestrator
        self.store = store
        self.max_concurrency = max_concurrency
        self.stats = DriverStats()
        self._in_flight: Dict[str, asyncio.Task] = {}
        # Names that must not be handed out again this run: failed crawls and
        # names that are not repository references.
        self._rejected: Set[str] = set()

    async def run(self, seed: RepositoryReference, coalesce: bool = False) -> DriverStats:
        """
        Crawl `seed`, then drain the frontier if `coalesce` is set.

        Returns once every launched crawl has finished.
        """
        try:
            self._launch(seed)
            if coalesce:
                logger.warning("Running in coalesce mode, may run forever")
                await self._coalesce()
            while self._in_flight:
                await self._wait_for_one()
        finally:
            pending = list(self._in_flight.values())
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                self._in_flight.clear()

        logger.info(
            "Crawl run finished",
            crawled=self.stats.crawled,
            failed=self.stats.failed,
            skipped=self.stats.skipped,
        )
        return self.stats

    async def _coalesce(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            if len(self._in_flight) >= self.max_concurrency:
                await self._wait_for_one()
                continue

            exclude = frozenset(self._in_flight) | frozenset(self._rejected)
            try:
                ref = await loop.run_in_executor(None, self.store.get_untargeted_node, exclude)
            except MalformedReferenceError as e:
                logger.warning("Skipping frontier node that is not a repository", full_name=e.text)
                self._rejected.add(e.text)
                self.stats.skipped += 1
                continue
            except PersistenceError as e:
                logger.error("Frontier read failed, no new crawls will be started", error=str(e))
                return

            if ref is None:
                if not self._in_flight:
                    logger.info("Frontier exhausted")
                    return
                # In-flight crawls may still add nodes to the frontier.
                await self._wait_for_one()
                continue

            self._launch(ref)

    def _launch(self, ref: RepositoryReference) -> None:
        key = str(ref)
        if key in self._in_flight:
            return
        self._in_flight[key] = asyncio.create_task(self._crawl(ref), name=f"crawl:{key}")

    async def _crawl(self, ref: RepositoryReference) -> None:
        try:
            await self.orchestrator.crawl(ref)
        except DependagraphError as e:
            logger.error("Crawl failed", reference=str(ref), error=str(e), error_type=type(e).__name__)
            self._rejected.add(str(ref))
            self.stats.failed += 1
        except Exception as e:
            logger.error(
                "Crawl failed unexpectedly",
                reference=str(ref),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._rejected.add(str(ref))
            self.stats.failed += 1
        else:
            self.stats.crawled += 1

    async def _wait_for_one(self) -> None:
        done, _ = await asyncio.wait(set(self._in_flight.values()), return_when=asyncio.FIRST_COMPLETED)
        for key, task in list(self._in_flight.items()):
            if task in done:
                del self._in_flight[key]
        for task in done:
            task.result()
