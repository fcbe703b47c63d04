"""
Cypher for the dependency graph.

Node keys are `full_name`; the only relationship type is DEPENDS_ON, pointing
from the dependent to the dependency.
"""

from typing import List

LABEL_REPOSITORY = "Repository"
REL_DEPENDS_ON = "DEPENDS_ON"


class SchemaQueryBuilder:
    """Builds the Cypher statements used by the Neo4j graph store."""

    def get_constraint_queries(self) -> List[str]:
        """
        Uniqueness on `full_name` makes MERGE race-safe across concurrent crawls.

        Returns:
            List[str]: Cypher constraint queries
        """
        return [
            (f"CREATE CONSTRAINT repository_full_name_unique IF NOT EXISTS "
             f"FOR (r:`{LABEL_REPOSITORY}`) REQUIRE r.full_name IS UNIQUE"),
        ]

    def get_mark_targeted_query(self) -> str:
        return (
            f"MERGE (c:`{LABEL_REPOSITORY}` {{full_name: $full_name}}) "
            f"SET c.last_targeted = timestamp() "
            f"RETURN c.full_name AS full_name"
        )

    def get_merge_dependencies_query(self) -> str:
        return (
            f"MATCH (c:`{LABEL_REPOSITORY}` {{full_name: $full_name}}) "
            f"UNWIND $names AS name "
            f"MERGE (r:`{LABEL_REPOSITORY}` {{full_name: name}}) "
            f"MERGE (c)-[:{REL_DEPENDS_ON}]->(r)"
        )

    def get_merge_dependents_query(self) -> str:
        return (
            f"MATCH (c:`{LABEL_REPOSITORY}` {{full_name: $full_name}}) "
            f"UNWIND $names AS name "
            f"MERGE (r:`{LABEL_REPOSITORY}` {{full_name: name}}) "
            f"MERGE (r)-[:{REL_DEPENDS_ON}]->(c)"
        )

    def get_untargeted_node_query(self) -> str:
        """Frontier predicate; names containing '.' are package coordinates, not repositories."""
        return (
            f"MATCH (n:`{LABEL_REPOSITORY}`) "
            f"WHERE n.last_targeted IS NULL "
            f"AND NOT n.full_name CONTAINS '.' "
            f"AND NOT n.full_name IN $exclude "
            f"RETURN n.full_name AS full_name "
            f"LIMIT 1"
        )
