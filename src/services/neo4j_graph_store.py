"""Neo4j-backed graph store.

Every crawl commits its window through one managed write transaction. The
frontier is read back from the same graph, so restarting the crawler resumes
from whatever the store holds.
"""

from typing import Collection, List, Optional, Sequence

import structlog
from neo4j.exceptions import DriverError, Neo4jError

from models.repository import Repository, RepositoryReference
from services.schema_query_builder import SchemaQueryBuilder
from utils.exceptions import PersistenceError
from utils.neo4j_client import Neo4jClient, Neo4jHealthChecker

logger = structlog.get_logger(__name__)


def _unique_names(repositories: Sequence[Repository]) -> List[str]:
    return list(dict.fromkeys(r.fully_qualified_name for r in repositories if r.fully_qualified_name))


class Neo4jGraphStore:
    """Persists crawl windows and serves the crawl frontier."""

    def __init__(self, neo4j_client: Neo4jClient, query_builder: Optional[SchemaQueryBuilder] = None) -> None:
        """Initialize the graph store.

        Args:
            neo4j_client: Neo4j client owning the driver
            query_builder: Cypher builder, defaults to SchemaQueryBuilder
        """
        self.neo4j_client = neo4j_client
        self.query_builder = query_builder or SchemaQueryBuilder()

    def ensure_schema(self) -> None:
        """Create the uniqueness constraint on node keys if it does not exist.

        Raises:
            PersistenceError: If the database is unreachable or a statement fails
        """
        if not Neo4jHealthChecker.check_health(self.neo4j_client):
            raise PersistenceError("Neo4j connection verification failed")

        for query in self.query_builder.get_constraint_queries():
            try:
                with self.neo4j_client.get_session() as session:
                    session.run(query).consume()
            except (Neo4jError, DriverError) as e:
                logger.error("Schema statement failed", query=query, error=str(e))
                raise PersistenceError(f"schema statement failed: {e}") from e
        logger.info("Neo4j schema ensured")

    def save_window(
        self,
        ref: RepositoryReference,
        dependencies: Sequence[Repository],
        dependents: Sequence[Repository],
    ) -> None:
        """Upsert the crawled node, its neighbors and DEPENDS_ON edges in one transaction.

        Raises:
            PersistenceError: If the transaction fails; nothing is committed
        """
        full_name = str(ref)
        dependency_names = _unique_names(dependencies)
        dependent_names = _unique_names(dependents)

        def _work(tx):
            tx.run(self.query_builder.get_mark_targeted_query(), full_name=full_name).consume()
            if dependency_names:
                tx.run(
                    self.query_builder.get_merge_dependencies_query(),
                    full_name=full_name,
                    names=dependency_names,
                ).consume()
            if dependent_names:
                tx.run(
                    self.query_builder.get_merge_dependents_query(),
                    full_name=full_name,
                    names=dependent_names,
                ).consume()

        try:
            with self.neo4j_client.get_session() as session:
                session.execute_write(_work)
        except (Neo4jError, DriverError) as e:
            raise PersistenceError(f"failed to save window for {full_name}: {e}") from e

        logger.info(
            "Window saved",
            reference=full_name,
            dependencies=len(dependency_names),
            dependents=len(dependent_names),
        )

    def get_untargeted_node(self, exclude: Collection[str] = ()) -> Optional[RepositoryReference]:
        """Return one node that has never been crawled, or None if there is none.

        Selection order among eligible nodes is up to the database.

        Raises:
            PersistenceError: If the read fails
            MalformedReferenceError: If the selected node's name is not `org/repo`
        """
        query = self.query_builder.get_untargeted_node_query()

        def _work(tx):
            record = tx.run(query, exclude=list(exclude)).single()
            return record["full_name"] if record else None

        try:
            with self.neo4j_client.get_session() as session:
                full_name = session.execute_read(_work)
        except (Neo4jError, DriverError) as e:
            raise PersistenceError(f"failed to read frontier: {e}") from e

        if full_name is None:
            return None
        return RepositoryReference.parse(full_name)

    def close(self) -> None:
        self.neo4j_client.close()
