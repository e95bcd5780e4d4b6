"""
SQLite graph store implementation using aiosqlite.

Local, single-file backend for development and tests. Relationships are
rows tagged with their document ID; entities are the distinct source and
target values.
"""

import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.core.graph_store.base import GraphStore
from src.models.relationships import GraphStats, Relationship
from src.utils.exceptions import GraphStoreError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteGraphStore(GraphStore):
    """
    SQLite-based entity relationship graph.

    Features:
    - Fast local storage
    - JSON metadata column
    - Indexed lookups by document, source and target
    """

    def __init__(self, db_path: str = "data/cme_graph.db"):
        """
        Initialize SQLite graph store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            try:
                self.connection = await aiosqlite.connect(self.db_path)
                self.connection.row_factory = aiosqlite.Row
                await self.connection.execute("PRAGMA journal_mode = WAL")
                await self.connection.commit()
            except Exception as e:
                logger.bind(db_path=self.db_path, error=str(e)).error(
                    f"Failed to open SQLite graph store: {e}"
                )
                raise GraphStoreError(f"Failed to open SQLite graph store: {e}") from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        try:
            await self.connection.execute(
                """
                CREATE TABLE IF NOT EXISTS relationships (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT NOT NULL,
                    target TEXT NOT NULL,
                    type TEXT NOT NULL,
                    confidence REAL DEFAULT 1.0,
                    document_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    metadata TEXT DEFAULT '{}'
                )
                """
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_rel_document ON relationships(document_id)"
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_rel_source ON relationships(source)"
            )
            await self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_rel_target ON relationships(target)"
            )
            await self.connection.commit()
        except Exception as e:
            raise GraphStoreError(f"Failed to initialize SQLite graph store: {e}") from e

    async def upsert_relationships(
        self, document_id: str, relationships: list[Relationship]
    ) -> int:
        """Insert a document's relationships in one transaction."""
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")
        if not relationships:
            return 0

        await self.connect()

        try:
            await self.connection.executemany(
                """
                INSERT INTO relationships (
                    source, target, type, confidence, document_id, created_at, metadata
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        rel.source,
                        rel.target,
                        rel.type,
                        rel.confidence,
                        document_id,
                        rel.created_at.isoformat(),
                        json.dumps(rel.metadata),
                    )
                    for rel in relationships
                ],
            )
            await self.connection.commit()
        except Exception as e:
            await self.connection.rollback()
            logger.bind(document_id=document_id, error=str(e)).error(
                f"Failed to upsert relationships for {document_id}: {e}"
            )
            raise GraphStoreError(f"Failed to upsert relationships: {e}") from e

        return len(relationships)

    async def delete_relationships(self, document_id: str) -> int:
        """Delete a document's relationships."""
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")

        await self.connect()

        try:
            cursor = await self.connection.execute(
                "DELETE FROM relationships WHERE document_id = ?", (document_id,)
            )
            await self.connection.commit()
            return cursor.rowcount
        except Exception as e:
            logger.bind(document_id=document_id, error=str(e)).error(
                f"Failed to delete relationships for {document_id}: {e}"
            )
            raise GraphStoreError(f"Failed to delete relationships: {e}") from e

    async def get_document_entities(self, document_ids: list[str]) -> list[str]:
        """Distinct entities referenced by the documents' relationships."""
        if not document_ids:
            return []

        await self.connect()

        placeholders = ",".join("?" for _ in document_ids)
        try:
            cursor = await self.connection.execute(
                f"""
                SELECT source AS name FROM relationships WHERE document_id IN ({placeholders})
                UNION
                SELECT target AS name FROM relationships WHERE document_id IN ({placeholders})
                ORDER BY name
                """,
                (*document_ids, *document_ids),
            )
            rows = await cursor.fetchall()
        except Exception as e:
            raise GraphStoreError(f"Failed to read document entities: {e}") from e

        return [row["name"] for row in rows]

    async def query(self, entity_ids: list[str], limit: int = 100) -> list[Relationship]:
        """Relationships touching any of the entities, highest confidence first."""
        if not entity_ids:
            return []

        await self.connect()

        placeholders = ",".join("?" for _ in entity_ids)
        try:
            cursor = await self.connection.execute(
                f"""
                SELECT source, target, type, confidence, document_id, created_at, metadata
                FROM relationships
                WHERE source IN ({placeholders}) OR target IN ({placeholders})
                ORDER BY confidence DESC, source, target, type
                LIMIT ?
                """,
                (*entity_ids, *entity_ids, limit),
            )
            rows = await cursor.fetchall()
        except Exception as e:
            raise GraphStoreError(f"Failed to query relationships: {e}") from e

        return [self._row_to_relationship(row) for row in rows]

    async def stats(self) -> GraphStats:
        """Entity and relationship counts."""
        await self.connect()

        try:
            cursor = await self.connection.execute("SELECT COUNT(*) FROM relationships")
            rel_count = (await cursor.fetchone())[0]

            cursor = await self.connection.execute(
                """
                SELECT COUNT(*) FROM (
                    SELECT source FROM relationships
                    UNION
                    SELECT target FROM relationships
                )
                """
            )
            node_count = (await cursor.fetchone())[0]
        except Exception as e:
            raise GraphStoreError(f"Failed to read graph stats: {e}") from e

        return GraphStats(node_count=node_count, relationship_count=rel_count)

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None

    @staticmethod
    def _row_to_relationship(row) -> Relationship:
        return Relationship(
            source=row["source"],
            target=row["target"],
            type=row["type"],
            confidence=row["confidence"],
            document_id=row["document_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            metadata=json.loads(row["metadata"] or "{}"),
        )
