"""
docrag: chunk, embed and index crawled documentation for semantic search.

Quick start:
    from docrag import chunk_pages, embed_chunks, LangChainEmbeddingProvider
    from docrag.indexing import get_embedding_model, load_cache, save_cache

    chunks = chunk_pages(pages)
    cache = load_cache("data/embeddings_cache.json")
    provider = LangChainEmbeddingProvider(get_embedding_model(EmbeddingConfig()))
    embedded = await embed_chunks(chunks, cache, provider, EmbeddingConfig())
    save_cache("data/embeddings_cache.json", cache)

Or run the stages from the shell: docrag ingest / embed / upsert / query.
"""

from docrag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    PathsConfig,
    PipelineConfig,
    VectorStoreConfig,
)
from docrag.indexing import (
    ConcurrencyGate,
    LangChainEmbeddingProvider,
    chunk_pages,
    embed_batch,
    embed_chunks,
    split_section_text,
    with_retry,
)
from docrag.retrieval import SimilarityRetriever

__all__ = [
    # Pipeline
    "split_section_text",
    "chunk_pages",
    "embed_batch",
    "embed_chunks",
    "ConcurrencyGate",
    "with_retry",
    "LangChainEmbeddingProvider",
    "SimilarityRetriever",
    # Config
    "ChunkingConfig",
    "EmbeddingConfig",
    "VectorStoreConfig",
    "PathsConfig",
    "PipelineConfig",
]

__version__ = "0.1.0"
