"""Tests for config models (pure Pydantic validation, no API calls)."""

from pathlib import Path

import pytest

from docrag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    PathsConfig,
    PipelineConfig,
    VectorStoreConfig,
    VectorStoreType,
    require_env,
)
from docrag.errors import ConfigError

ENV_VARS = (
    "OPENAI_EMBEDDING_MODEL",
    "EMBED_BATCH_SIZE",
    "EMBED_CONCURRENCY",
    "EMBED_MAX_RETRIES",
    "DOCRAG_DATA_DIR",
    "FAISS_PERSIST_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestChunkingConfig:

    def test_defaults(self):
        config = ChunkingConfig()
        assert config.strategy == "section"
        assert config.max_tokens == 600
        assert config.overlap_tokens == 80

    def test_overlap_must_be_less_than_max(self):
        with pytest.raises(ValueError, match="overlap_tokens"):
            ChunkingConfig(max_tokens=100, overlap_tokens=100)

    def test_zero_overlap_allowed(self):
        assert ChunkingConfig(overlap_tokens=0).overlap_tokens == 0

    def test_max_tokens_positive(self):
        with pytest.raises(Exception):
            ChunkingConfig(max_tokens=0, overlap_tokens=0)


class TestEmbeddingConfig:

    def test_defaults(self):
        config = EmbeddingConfig()
        assert config.provider == "openai"
        assert config.model_name == "text-embedding-3-small"
        assert config.batch_size == 100
        assert config.concurrency == 2
        assert config.max_retries == 5

    def test_batch_size_positive(self):
        with pytest.raises(Exception):
            EmbeddingConfig(batch_size=0)

    def test_concurrency_positive(self):
        with pytest.raises(Exception):
            EmbeddingConfig(concurrency=0)


class TestVectorStoreConfig:

    def test_defaults(self):
        config = VectorStoreConfig()
        assert config.store_type == VectorStoreType.FAISS
        assert config.persist_directory is None
        assert config.upsert_batch_size == 100

    def test_unknown_store_rejected(self):
        with pytest.raises(Exception):
            VectorStoreConfig(store_type="pinecone")


class TestPathsConfig:

    def test_file_layout(self):
        paths = PathsConfig(data_dir=Path("/tmp/d"))
        assert paths.scraped_file == Path("/tmp/d/scraped.json")
        assert paths.chunks_file == Path("/tmp/d/chunks.json")
        assert paths.embedded_file == Path("/tmp/d/embedded_chunks.json")
        assert paths.cache_file == Path("/tmp/d/embeddings_cache.json")
        assert paths.index_dir == Path("/tmp/d/faiss_index")


class TestRequireEnv:

    def test_returns_value(self, monkeypatch):
        monkeypatch.setenv("DOCRAG_TEST_VAR", "value")
        assert require_env("DOCRAG_TEST_VAR") == "value"

    def test_missing_raises(self, monkeypatch):
        monkeypatch.delenv("DOCRAG_TEST_VAR", raising=False)
        with pytest.raises(ConfigError, match="DOCRAG_TEST_VAR"):
            require_env("DOCRAG_TEST_VAR")

    def test_empty_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("DOCRAG_TEST_VAR", "")
        with pytest.raises(ConfigError):
            require_env("DOCRAG_TEST_VAR")


class TestPipelineConfig:

    def test_defaults(self):
        config = PipelineConfig()
        assert config.chunking.max_tokens == 600
        assert config.embedding.batch_size == 100
        assert config.paths.data_dir == Path("data")

    def test_from_env_defaults(self, clean_env):
        config = PipelineConfig.from_env()

        assert config.embedding.model_name == "text-embedding-3-small"
        assert config.embedding.concurrency == 2
        assert config.vector_store.persist_directory == str(Path("data") / "faiss_index")

    def test_from_env_overrides(self, clean_env):
        clean_env.setenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-large")
        clean_env.setenv("EMBED_BATCH_SIZE", "25")
        clean_env.setenv("EMBED_CONCURRENCY", "4")
        clean_env.setenv("EMBED_MAX_RETRIES", "1")
        clean_env.setenv("DOCRAG_DATA_DIR", "/srv/docs")
        clean_env.setenv("FAISS_PERSIST_DIR", "/srv/index")

        config = PipelineConfig.from_env()

        assert config.embedding.model_name == "text-embedding-3-large"
        assert config.embedding.batch_size == 25
        assert config.embedding.concurrency == 4
        assert config.embedding.max_retries == 1
        assert config.paths.data_dir == Path("/srv/docs")
        assert config.vector_store.persist_directory == "/srv/index"

    def test_from_env_non_integer_raises(self, clean_env):
        clean_env.setenv("EMBED_BATCH_SIZE", "lots")
        with pytest.raises(ConfigError, match="EMBED_BATCH_SIZE"):
            PipelineConfig.from_env()

    def test_from_env_out_of_range_raises(self, clean_env):
        clean_env.setenv("EMBED_CONCURRENCY", "0")
        with pytest.raises(ConfigError):
            PipelineConfig.from_env()
