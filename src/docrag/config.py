"""
Configuration for docrag.

Split into one config per concern so each stage only receives what it
needs. PipelineConfig bundles them all for the CLI and pipeline stages.

Usage:
    # Defaults everywhere
    config = PipelineConfig()

    # Override specific parts
    config = PipelineConfig(
        embedding=EmbeddingConfig(batch_size=50, concurrency=4),
        chunking=ChunkingConfig(max_tokens=400),
    )

    # Resolve from the environment (.env is loaded on import)
    config = PipelineConfig.from_env()
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from docrag.errors import ConfigError

# Load .env from the working directory (falls back to parent dirs).
# Runs once at import time so any stage that imports config sees the
# environment before it resolves settings.
load_dotenv()


def require_env(name: str) -> str:
    """
    Read a required environment variable.

    Resolved on every call, so tests (and long-lived processes) always
    see the current value.

    Raises:
        ConfigError: If the variable is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be an integer, got {raw!r}")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VectorStoreType(str, Enum):
    """Supported vector index backends."""

    FAISS = "faiss"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class ChunkingConfig(BaseModel):
    """
    Section chunking configuration.

    Used by: indexing/chunking.py

    Budgets are in *estimated* tokens (ceil(chars / 4)), not real
    tokenizer tokens. Strategy stays an open string so a custom
    BaseChunker can be registered without touching this model.
    """

    strategy: str = Field(
        default="section",
        description="Chunking strategy. Built-in: 'section'",
    )
    max_tokens: int = Field(
        default=600,
        gt=0,
        description="Estimated-token budget per chunk",
    )
    overlap_tokens: int = Field(
        default=80,
        ge=0,
        description="Estimated tokens carried over from the end of one chunk into the next",
    )

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingConfig":
        """Overlap must be smaller than the budget, otherwise chunks would never advance."""
        if self.overlap_tokens >= self.max_tokens:
            raise ValueError(
                f"overlap_tokens ({self.overlap_tokens}) must be less than "
                f"max_tokens ({self.max_tokens})"
            )
        return self


class EmbeddingConfig(BaseModel):
    """
    Embedding model and dispatch configuration.

    Used by: indexing/embeddings.py

    provider + model_name pick the LangChain embeddings class. batch_size,
    concurrency and max_retries control how chunks are sent to it.
    """

    provider: str = Field(
        default="openai",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier; also the cache key prefix",
    )
    batch_size: int = Field(
        default=100,
        gt=0,
        description="Chunks per embedding request batch",
    )
    concurrency: int = Field(
        default=2,
        gt=0,
        description="Maximum embedding requests in flight at once",
    )
    max_retries: int = Field(
        default=5,
        ge=0,
        description="Retries for rate-limited or server-failed requests",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )


class VectorStoreConfig(BaseModel):
    """
    Vector index configuration.

    Used by: indexing/vectorstore.py
    """

    store_type: VectorStoreType = Field(
        default=VectorStoreType.FAISS,
        description="Vector index backend",
    )
    persist_directory: Optional[str] = Field(
        default=None,
        description="Directory the index is saved to / loaded from",
    )
    upsert_batch_size: int = Field(
        default=100,
        gt=0,
        description="Records per upsert call",
    )


class PathsConfig(BaseModel):
    """
    Locations of the pipeline's intermediate files.

    Used by: pipeline.py
    """

    data_dir: Path = Field(default=Path("data"))

    @property
    def scraped_file(self) -> Path:
        return self.data_dir / "scraped.json"

    @property
    def chunks_file(self) -> Path:
        return self.data_dir / "chunks.json"

    @property
    def cache_file(self) -> Path:
        return self.data_dir / "embeddings_cache.json"

    @property
    def embedded_file(self) -> Path:
        return self.data_dir / "embedded_chunks.json"

    @property
    def index_dir(self) -> Path:
        return self.data_dir / "faiss_index"


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

class PipelineConfig(BaseModel):
    """
    Complete pipeline configuration.

    Stages receive slices of it:
        run_ingest(config.paths, config.chunking)
        run_embed(config.paths, config.embedding, provider)
    """

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """
        Build a config from environment variables, keeping defaults for
        anything unset.

        Recognised variables:
            OPENAI_EMBEDDING_MODEL, EMBED_BATCH_SIZE, EMBED_CONCURRENCY,
            EMBED_MAX_RETRIES, DOCRAG_DATA_DIR, FAISS_PERSIST_DIR
        """
        embedding_defaults = EmbeddingConfig()
        try:
            embedding = EmbeddingConfig(
                model_name=os.environ.get("OPENAI_EMBEDDING_MODEL") or embedding_defaults.model_name,
                batch_size=_env_int("EMBED_BATCH_SIZE", embedding_defaults.batch_size),
                concurrency=_env_int("EMBED_CONCURRENCY", embedding_defaults.concurrency),
                max_retries=_env_int("EMBED_MAX_RETRIES", embedding_defaults.max_retries),
            )
        except ValueError as exc:
            # pydantic.ValidationError is a ValueError subclass
            raise ConfigError(f"Invalid embedding settings: {exc}") from exc

        paths = PathsConfig(data_dir=Path(os.environ.get("DOCRAG_DATA_DIR") or "data"))
        vector_store = VectorStoreConfig(
            persist_directory=os.environ.get("FAISS_PERSIST_DIR") or str(paths.index_dir),
        )
        return cls(embedding=embedding, vector_store=vector_store, paths=paths)
