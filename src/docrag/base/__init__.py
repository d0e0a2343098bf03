"""
Abstract contracts for each pipeline stage.

Usage:
    from docrag.base import BaseChunker, BaseEmbeddingProvider, BaseVectorIndex
"""

from .indexer import BaseChunker, BaseEmbeddingProvider, BaseVectorIndex

__all__ = [
    "BaseChunker",
    "BaseEmbeddingProvider",
    "BaseVectorIndex",
]
