"""
Dependagraph crawler entry point.

Seeds the dependency graph with one repository and, in coalesce mode, keeps
crawling untargeted nodes from the graph until none remain.
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog
import neo4j

from configuration.crawler_config import CrawlerSettings, get_crawler_settings
from configuration.logging_config import configure_logging
from models.repository import RepositoryReference
from services.crawl_orchestrator import CrawlOrchestrator
from services.frontier_driver import DriverStats, FrontierDriver
from services.github_dependency_source import GitHubDependencySource
from services.neo4j_graph_store import Neo4jGraphStore
from utils.exceptions import ConfigurationError, MalformedReferenceError, PersistenceError
from utils.neo4j_client import Neo4jClient

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dependagraph",
        description="Crawl GitHub dependency relationships into Neo4j",
    )
    parser.add_argument(
        "--repository",
        type=str,
        default="",
        help="The repo to seed the graph with. Must be in the form of org/repo (e.g. offset46/Dependagraph)",
    )
    parser.add_argument(
        "--coalesce",
        action="store_true",
        help="Enable unlimited crawling: after seeding, keep crawling untargeted nodes from the graph",
    )
    return parser


async def run_crawler(settings: CrawlerSettings, seed: RepositoryReference, coalesce: bool) -> DriverStats:
    """Wire the GitHub source and Neo4j store together and run the frontier driver."""
    try:
        client = Neo4jClient(settings.neo4j)
    except (neo4j.exceptions.ConfigurationError, ValueError) as e:
        raise ConfigurationError(f"NEO4J_URI: {e}", ["NEO4J_URI"]) from e

    store = Neo4jGraphStore(client)
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, store.ensure_schema)

        async with GitHubDependencySource(settings.github) as source:
            driver = FrontierDriver(
                CrawlOrchestrator(source, store),
                store,
                max_concurrency=settings.CRAWL_MAX_CONCURRENCY,
            )
            return await driver.run(seed, coalesce=coalesce)
    finally:
        store.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse flags, validate startup configuration and run the crawl."""
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        settings = get_crawler_settings()
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e), variables=e.variables)
        return 1

    configure_logging(settings.LOG_LEVEL, force_reconfigure=True)

    try:
        seed = RepositoryReference.parse(args.repository)
    except MalformedReferenceError as e:
        logger.error("Invalid github repository reference", error=str(e))
        return 1

    try:
        stats = asyncio.run(run_crawler(settings, seed, args.coalesce))
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e), variables=e.variables)
        return 1
    except PersistenceError as e:
        logger.error("Graph store unavailable", error=str(e))
        return 1

    logger.info("Done", seed=str(seed), crawled=stats.crawled, failed=stats.failed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
