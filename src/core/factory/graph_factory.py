"""
Relationship graph store construction.
"""

from pathlib import Path

from src.config import Config
from src.core.graph_store.base import GraphStore
from src.core.graph_store.neo4j_store import Neo4jGraphStore
from src.core.graph_store.sqlite_store import SQLiteGraphStore
from src.utils.exceptions import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class GraphStoreFactory:
    """Creates the graph store selected by `Config.graph_backend`."""

    BACKENDS = ("neo4j", "sqlite")

    @staticmethod
    def create(config: Config) -> GraphStore:
        """
        Create the configured graph backend.

        The SQLite backend gets its database directory created up front.

        Raises:
            ConfigurationError: If the backend is unknown
        """
        backend = config.graph_backend.lower()

        if backend == "neo4j":
            store: GraphStore = Neo4jGraphStore(
                uri=config.neo4j.uri,
                username=config.neo4j.username,
                password=config.neo4j.password,
                database=config.neo4j.database,
            )
        elif backend == "sqlite":
            Path(config.sqlite.db_path).parent.mkdir(parents=True, exist_ok=True)
            store = SQLiteGraphStore(db_path=config.sqlite.db_path)
        else:
            raise ConfigurationError(
                f"Unsupported graph backend: {config.graph_backend}",
                context={"supported": list(GraphStoreFactory.BACKENDS)},
            )

        logger.bind(backend=backend).debug(f"Created {backend} graph store")
        return store
