"""
Graph store implementations for the entity relationship graph.

Available backends:
- Neo4jGraphStore: Production graph database
- SQLiteGraphStore: Local single-file backend
"""

from src.core.graph_store.base import GraphStore
from src.core.graph_store.neo4j_store import Neo4jGraphStore
from src.core.graph_store.sqlite_store import SQLiteGraphStore

__all__ = [
    "GraphStore",
    "Neo4jGraphStore",
    "SQLiteGraphStore",
]
