"""
Configuration for the Context Memory Engine.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

OLLAMA_DEFAULT_HOST = "http://localhost:11434"


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llama3"
    # None: the provider default (local Ollama daemon, public OpenAI API)
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: float = 120.0


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "mxbai-embed-large"
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 120.0
    # Optional: embedding dimension (fallback to auto-detect)
    dimension: int | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class QdrantConfig(BaseModel):
    """Qdrant vector store configuration."""

    url: str = "http://localhost:6333"
    collection_name: str = "documents"
    use_grpc: bool = False
    hnsw_m: int = 16
    hnsw_ef_construct: int = 100
    on_disk: bool = False
    batch_size: int = 100
    timeout: int = 30


class Neo4jConfig(BaseModel):
    """Neo4j graph database configuration."""

    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: str = "password"
    database: str = "neo4j"


class SQLiteConfig(BaseModel):
    """SQLite graph store configuration (local / test backend)."""

    db_path: str = "data/cme_graph.db"


class IngestionConfig(BaseModel):
    """Ingestion pipeline configuration."""

    chunk_size: int = Field(default=1000, ge=1)
    max_concurrent_documents: int = Field(default=4, ge=1)
    summary_max_length: int = Field(default=500, ge=4)


class ContextConfig(BaseModel):
    """Context fusion defaults and budgets."""

    max_documents: int = Field(default=10, ge=1)
    min_score: float = Field(default=0.5, ge=0.0, le=1.0)
    over_fetch_factor: int = Field(default=3, ge=1)
    max_relationships: int = Field(default=50, ge=0)
    summary_max_length: int = Field(default=1000, ge=4)


class StreamingConfig(BaseModel):
    """Streaming analysis configuration."""

    max_document_chars: int = Field(default=2000, ge=1)
    # Events the producer may run ahead of the consumer
    event_buffer_size: int = Field(default=1, ge=1)
    system_prompt: str = (
        "You are an expert context analyst. Provide streaming insights as you analyze "
        "the given context. Break your analysis into digestible chunks."
    )


class HealthCheckConfig(BaseModel):
    """Health check cache configuration."""

    ttl_seconds: float = Field(default=30.0, gt=0)
    timeout_seconds: float = Field(default=5.0, gt=0)


class FeaturesConfig(BaseModel):
    """Feature flags gating optional LLM work."""

    relationship_extraction: bool = True
    contextual_summarization: bool = True


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    neo4j: Neo4jConfig = Field(default_factory=Neo4jConfig)
    sqlite: SQLiteConfig = Field(default_factory=SQLiteConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    health: HealthCheckConfig = Field(default_factory=HealthCheckConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)

    # Graph store backend
    graph_backend: str = "neo4j"  # neo4j, sqlite

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            CME_LLM_PROVIDER: LLM provider (ollama, openai)
            CME_LLM_MODEL: LLM model name
            CME_LLM_BASE_URL: LLM base URL
            CME_LLM_API_KEY: LLM API key (for OpenAI)
            CME_EMBEDDER_PROVIDER: Embedder provider
            CME_EMBEDDER_MODEL: Embedder model name
            CME_EMBEDDER_DIMENSION: Embedding dimension (optional)
            CME_GRAPH_BACKEND: Graph backend (neo4j, sqlite)
            CME_NEO4J_URI / _USERNAME / _PASSWORD / _DATABASE: Neo4j connection
            CME_SQLITE_DB_PATH: SQLite graph database path
            CME_QDRANT_URL: Qdrant URL
            CME_QDRANT_COLLECTION: Qdrant collection name
            CME_CHUNK_SIZE: Default chunk size in characters
            CME_MAX_CONCURRENT_DOCUMENTS: Ingestion worker limit
            CME_CONTEXT_MAX_DOCUMENTS / CME_CONTEXT_MIN_SCORE: Context defaults
            CME_CONTEXT_MAX_RELATIONSHIPS: Relationship budget
            CME_HEALTH_TTL_SECONDS / CME_HEALTH_TIMEOUT_SECONDS: Health cache
            CME_FEATURE_RELATIONSHIP_EXTRACTION / CME_FEATURE_SUMMARIZATION: Feature flags
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        dimension = get_env("CME_EMBEDDER_DIMENSION")

        return cls(
            llm=LLMConfig(
                provider=get_env("CME_LLM_PROVIDER", "ollama"),
                model=get_env("CME_LLM_MODEL", "llama3"),
                base_url=get_env("CME_LLM_BASE_URL"),
                api_key=get_env("CME_LLM_API_KEY"),
                temperature=get_env("CME_LLM_TEMPERATURE", 0.7),
                max_tokens=get_env("CME_LLM_MAX_TOKENS", 2000),
                timeout=get_env("CME_LLM_TIMEOUT", 120.0),
            ),
            embedder=EmbedderConfig(
                provider=get_env("CME_EMBEDDER_PROVIDER", "ollama"),
                model=get_env("CME_EMBEDDER_MODEL", "mxbai-embed-large"),
                base_url=get_env("CME_EMBEDDER_BASE_URL"),
                api_key=get_env("CME_EMBEDDER_API_KEY"),
                timeout=get_env("CME_EMBEDDER_TIMEOUT", 120.0),
                dimension=int(dimension) if dimension is not None else None,
            ),
            graph_backend=get_env("CME_GRAPH_BACKEND", "neo4j"),
            neo4j=Neo4jConfig(
                uri=get_env("CME_NEO4J_URI", "bolt://localhost:7687"),
                username=get_env("CME_NEO4J_USERNAME", "neo4j"),
                password=get_env("CME_NEO4J_PASSWORD", "password"),
                database=get_env("CME_NEO4J_DATABASE", "neo4j"),
            ),
            sqlite=SQLiteConfig(
                db_path=get_env("CME_SQLITE_DB_PATH", "data/cme_graph.db"),
            ),
            qdrant=QdrantConfig(
                url=get_env("CME_QDRANT_URL", "http://localhost:6333"),
                collection_name=get_env("CME_QDRANT_COLLECTION", "documents"),
                use_grpc=get_env("CME_QDRANT_USE_GRPC", False),
                hnsw_m=get_env("CME_QDRANT_HNSW_M", 16),
                hnsw_ef_construct=get_env("CME_QDRANT_HNSW_EF_CONSTRUCT", 100),
                on_disk=get_env("CME_QDRANT_ON_DISK", False),
            ),
            ingestion=IngestionConfig(
                chunk_size=get_env("CME_CHUNK_SIZE", 1000),
                max_concurrent_documents=get_env("CME_MAX_CONCURRENT_DOCUMENTS", 4),
                summary_max_length=get_env("CME_SUMMARY_MAX_LENGTH", 500),
            ),
            context=ContextConfig(
                max_documents=get_env("CME_CONTEXT_MAX_DOCUMENTS", 10),
                min_score=get_env("CME_CONTEXT_MIN_SCORE", 0.5),
                over_fetch_factor=get_env("CME_CONTEXT_OVER_FETCH_FACTOR", 3),
                max_relationships=get_env("CME_CONTEXT_MAX_RELATIONSHIPS", 50),
            ),
            health=HealthCheckConfig(
                ttl_seconds=get_env("CME_HEALTH_TTL_SECONDS", 30.0),
                timeout_seconds=get_env("CME_HEALTH_TIMEOUT_SECONDS", 5.0),
            ),
            features=FeaturesConfig(
                relationship_extraction=get_env("CME_FEATURE_RELATIONSHIP_EXTRACTION", True),
                contextual_summarization=get_env("CME_FEATURE_SUMMARIZATION", True),
            ),
            logging=LoggingConfig(
                level=get_env("CME_LOG_LEVEL", "INFO"),
                log_to_file=get_env("CME_LOG_TO_FILE", True),
                log_dir=get_env("CME_LOG_DIR", "logs"),
                file_rotation=get_env("CME_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("CME_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("CME_LOG_COMPRESSION", "zip"),
                serialize=get_env("CME_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Env sections that differ from defaults override YAML sections
        final_dict = {**config_dict}
        default = cls()
        for section in (
            "llm",
            "embedder",
            "neo4j",
            "sqlite",
            "qdrant",
            "ingestion",
            "context",
            "health",
            "features",
            "logging",
        ):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        if env_config.graph_backend != default.graph_backend:
            final_dict["graph_backend"] = env_config.graph_backend

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
