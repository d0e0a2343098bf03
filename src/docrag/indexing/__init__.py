"""
Indexing pipeline: chunk → embed (cached, bounded, retried) → store.

Usage:
    from docrag.indexing import chunk_pages, embed_chunks, upsert_embedded_chunks
"""

from .cache import EmbeddingsCache, cache_key, load_cache, save_cache
from .chunking import SectionChunker, chunk_pages, get_chunker, split_section_text
from .concurrency import ConcurrencyGate
from .embeddings import (
    LangChainEmbeddingProvider,
    embed_batch,
    embed_chunks,
    get_embedding_model,
    make_embed_text,
)
from .retry import is_retryable, with_retry
from .vectorstore import (
    FaissVectorIndex,
    build_vector_records,
    create_vector_index,
    upsert_embedded_chunks,
)

__all__ = [
    # Chunking
    "split_section_text",
    "chunk_pages",
    "get_chunker",
    "SectionChunker",
    # Cache
    "EmbeddingsCache",
    "cache_key",
    "load_cache",
    "save_cache",
    # Dispatch
    "ConcurrencyGate",
    "with_retry",
    "is_retryable",
    # Embeddings
    "get_embedding_model",
    "LangChainEmbeddingProvider",
    "make_embed_text",
    "embed_batch",
    "embed_chunks",
    # Vector index
    "build_vector_records",
    "FaissVectorIndex",
    "create_vector_index",
    "upsert_embedded_chunks",
]
