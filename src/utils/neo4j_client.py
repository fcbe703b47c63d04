"""Neo4j client utilities and health checks."""

import structlog
from neo4j import GraphDatabase, Driver, Session
from neo4j.exceptions import Neo4jError, DriverError
from configuration.neo4j_config import Neo4jSettings

logger = structlog.get_logger(__name__)

class Neo4jClientFactory:
    """Create Neo4j driver from settings."""

    @staticmethod
    def create_driver(settings: Neo4jSettings) -> Driver:
        """Create a Neo4j driver from settings."""
        driver = GraphDatabase.driver(
            settings.NEO4J_URI,
            auth=(settings.NEO4J_USERNAME, settings.NEO4J_PASSWORD),
            max_connection_lifetime=settings.NEO4J_CONNECTION_TIMEOUT,
            max_connection_pool_size=settings.NEO4J_MAX_CONNECTION_POOL_SIZE,
            max_transaction_retry_time=settings.NEO4J_MAX_TRANSACTION_RETRY_TIME
        )

        logger.info("Neo4j driver created", uri=settings.NEO4J_URI)
        return driver

class Neo4jClient:
    """Client for interacting with a Neo4j database.

    The driver keeps a connection pool; sessions are cheap and must not be
    shared between threads, so callers open one per unit of work.
    """

    def __init__(self, settings: Neo4jSettings):
        self.settings = settings
        self._driver = Neo4jClientFactory.create_driver(settings)

        logger.info("Neo4j client initialized")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def driver(self) -> Driver:
        """Get the Neo4j driver."""
        return self._driver

    def close(self):
        """Close the Neo4j driver connections."""
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Neo4j driver closed")

    def get_session(self, database: str = None) -> Session:
        """Get a Neo4j session."""
        return self.driver.session(database=database or self.settings.NEO4J_DATABASE)


class Neo4jHealthChecker:
    """Checks that the Neo4j database answers queries."""

    @staticmethod
    def check_health(client: Neo4jClient) -> bool:
        """
        Check Neo4j connection health.

        Args:
            client: Neo4j client instance

        Returns:
            bool: True if Neo4j is healthy, False otherwise
        """
        try:
            with client.get_session() as session:
                record = session.run("RETURN 1 as n").single()
                if record is None or record["n"] != 1:
                    raise Neo4jError("Unexpected health check result")

            logger.info("Neo4j health check passed")
            return True
        except (Neo4jError, DriverError, OSError) as e:
            logger.error("Neo4j health check failed", error=str(e))
            return False
