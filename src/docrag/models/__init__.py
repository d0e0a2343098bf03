"""
Pydantic models shared across docrag.

Import from here rather than reaching into submodules:
    from docrag.models import Chunk, EmbeddedChunk, Page
"""

from .document import Chunk, EmbeddedChunk, Page, RetrievedChunk, Section
from .vector import VectorMatch, VectorRecord

__all__ = [
    # Document
    "Section",
    "Page",
    "Chunk",
    "EmbeddedChunk",
    "RetrievedChunk",
    # Vector index
    "VectorRecord",
    "VectorMatch",
]
