"""
Retrieval: question → embedding → nearest chunks.

Usage:
    from docrag.retrieval import SimilarityRetriever
"""

from .search import SimilarityRetriever, match_to_chunk

__all__ = [
    "SimilarityRetriever",
    "match_to_chunk",
]
