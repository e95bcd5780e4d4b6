"""
Neo4j graph store implementation.

Entities are (:Entity {name}) nodes; each extracted relationship is a
[:RELATED {type, confidence, document_id, created_at, metadata}] edge.
"""

import json
from datetime import datetime

from neo4j import AsyncDriver, AsyncGraphDatabase

from src.core.graph_store.base import GraphStore
from src.models.relationships import GraphStats, Relationship
from src.utils.exceptions import GraphStoreError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class Neo4jGraphStore(GraphStore):
    """
    Neo4j-based entity relationship graph.

    Features:
    - Entity nodes merged by name
    - Relationship edges tagged with their source document
    - Per-document replace via delete + insert
    - Orphaned entities removed after deletes
    """

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        username: str = "neo4j",
        password: str = "password",
        database: str = "neo4j",
    ):
        """
        Initialize Neo4j graph store.

        Args:
            uri: Neo4j connection URI
            username: Username
            password: Password
            database: Database name
        """
        self.uri = uri
        self.username = username
        self.password = password
        self.database = database
        self.driver: AsyncDriver | None = None

    async def connect(self) -> None:
        """
        Establish connection to Neo4j.

        Raises:
            GraphStoreError: If connection fails
        """
        if self.driver is None:
            try:
                self.driver = AsyncGraphDatabase.driver(
                    self.uri,
                    auth=(self.username, self.password),
                )
            except Exception as e:
                logger.bind(uri=self.uri, error=str(e)).error(f"Failed to connect to Neo4j: {e}")
                raise GraphStoreError(f"Failed to connect to Neo4j: {e}") from e

    async def initialize(self) -> None:
        """
        Create constraints and indexes.

        Raises:
            GraphStoreError: If initialization fails
        """
        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                await session.run(
                    "CREATE CONSTRAINT entity_name IF NOT EXISTS "
                    "FOR (e:Entity) REQUIRE e.name IS UNIQUE"
                )
                await session.run(
                    "CREATE INDEX related_document IF NOT EXISTS "
                    "FOR ()-[r:RELATED]-() ON (r.document_id)"
                )
        except GraphStoreError:
            raise
        except Exception as e:
            logger.bind(database=self.database, error=str(e)).error(
                f"Failed to initialize Neo4j: {e}"
            )
            raise GraphStoreError(f"Failed to initialize Neo4j: {e}") from e

    async def upsert_relationships(
        self, document_id: str, relationships: list[Relationship]
    ) -> int:
        """
        Merge entities and create one RELATED edge per relationship.

        Raises:
            ValidationError: If document_id is empty
            GraphStoreError: If the write fails
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")
        if not relationships:
            return 0

        rows = [
            {
                "source": rel.source,
                "target": rel.target,
                "type": rel.type,
                "confidence": rel.confidence,
                "created_at": rel.created_at.isoformat(),
                "metadata": json.dumps(rel.metadata),
            }
            for rel in relationships
        ]

        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                result = await session.run(
                    """
                    UNWIND $rows AS row
                    MERGE (source:Entity {name: row.source})
                    MERGE (target:Entity {name: row.target})
                    CREATE (source)-[r:RELATED {
                        type: row.type,
                        confidence: row.confidence,
                        document_id: $document_id,
                        created_at: row.created_at,
                        metadata: row.metadata
                    }]->(target)
                    RETURN count(r) AS created
                    """,
                    {"rows": rows, "document_id": document_id},
                )
                record = await result.single()

            created = record["created"] if record else 0
            logger.bind(document_id=document_id, count=created).debug(
                f"Stored {created} relationships for {document_id}"
            )
            return created
        except Exception as e:
            logger.bind(document_id=document_id, error=str(e)).error(
                f"Failed to upsert relationships for {document_id}: {e}"
            )
            raise GraphStoreError(f"Failed to upsert relationships: {e}") from e

    async def delete_relationships(self, document_id: str) -> int:
        """
        Delete a document's edges, then any entity left without edges.

        Raises:
            ValidationError: If document_id is empty
            GraphStoreError: If the delete fails
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")

        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                result = await session.run(
                    """
                    MATCH ()-[r:RELATED {document_id: $document_id}]->()
                    DELETE r
                    RETURN count(r) AS deleted
                    """,
                    {"document_id": document_id},
                )
                record = await result.single()

                await session.run("MATCH (e:Entity) WHERE NOT (e)--() DELETE e")

            return record["deleted"] if record else 0
        except Exception as e:
            logger.bind(document_id=document_id, error=str(e)).error(
                f"Failed to delete relationships for {document_id}: {e}"
            )
            raise GraphStoreError(f"Failed to delete relationships: {e}") from e

    async def get_document_entities(self, document_ids: list[str]) -> list[str]:
        """
        Distinct entity names touched by the documents' edges.

        Raises:
            GraphStoreError: If the read fails
        """
        if not document_ids:
            return []

        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                result = await session.run(
                    """
                    MATCH (source:Entity)-[r:RELATED]->(target:Entity)
                    WHERE r.document_id IN $document_ids
                    UNWIND [source.name, target.name] AS name
                    RETURN DISTINCT name
                    ORDER BY name
                    """,
                    {"document_ids": document_ids},
                )
                records = await result.data()

            return [record["name"] for record in records]
        except Exception as e:
            logger.bind(document_ids=document_ids, error=str(e)).error(
                f"Failed to read document entities: {e}"
            )
            raise GraphStoreError(f"Failed to read document entities: {e}") from e

    async def query(self, entity_ids: list[str], limit: int = 100) -> list[Relationship]:
        """
        Edges touching any of the given entities, highest confidence first.

        Raises:
            GraphStoreError: If the read fails
        """
        if not entity_ids:
            return []

        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                result = await session.run(
                    """
                    MATCH (source:Entity)-[r:RELATED]->(target:Entity)
                    WHERE source.name IN $entity_ids OR target.name IN $entity_ids
                    RETURN source.name AS source,
                           target.name AS target,
                           r.type AS type,
                           r.confidence AS confidence,
                           r.document_id AS document_id,
                           r.created_at AS created_at,
                           r.metadata AS metadata
                    ORDER BY confidence DESC, source, target, type
                    LIMIT $limit
                    """,
                    {"entity_ids": entity_ids, "limit": limit},
                )
                records = await result.data()

            return [self._record_to_relationship(record) for record in records]
        except Exception as e:
            logger.bind(entity_count=len(entity_ids), error=str(e)).error(
                f"Failed to query relationships: {e}"
            )
            raise GraphStoreError(f"Failed to query relationships: {e}") from e

    async def stats(self) -> GraphStats:
        """
        Count Entity nodes and RELATED edges.

        Raises:
            GraphStoreError: If the read fails
        """
        try:
            await self.connect()

            async with self.driver.session(database=self.database) as session:
                node_result = await session.run("MATCH (e:Entity) RETURN count(e) AS count")
                node_record = await node_result.single()

                rel_result = await session.run(
                    "MATCH ()-[r:RELATED]->() RETURN count(r) AS count"
                )
                rel_record = await rel_result.single()

            return GraphStats(
                node_count=node_record["count"] if node_record else 0,
                relationship_count=rel_record["count"] if rel_record else 0,
            )
        except Exception as e:
            logger.bind(error=str(e)).error(f"Failed to read graph stats: {e}")
            raise GraphStoreError(f"Failed to read graph stats: {e}") from e

    async def health_check(self) -> bool:
        """Verify the driver can reach the server."""
        await self.connect()
        await self.driver.verify_connectivity()
        return True

    async def close(self) -> None:
        """Close the Neo4j driver."""
        if self.driver is not None:
            await self.driver.close()
            self.driver = None

    @staticmethod
    def _record_to_relationship(record: dict) -> Relationship:
        created_at = record.get("created_at")
        return Relationship(
            source=record["source"],
            target=record["target"],
            type=record["type"],
            confidence=record.get("confidence", 1.0),
            document_id=record["document_id"],
            metadata=json.loads(record.get("metadata") or "{}"),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
        )
