"""
Abstract base classes for the indexing pipeline.

Why three separate contracts?
    Chunking, embedding and storage each have one job and each has a
    natural test double. Keeping them apart means the embedding executor
    never knows which provider it talks to, and the upsert stage never
    knows which index backend it writes to:
        chunks = chunker.chunk(pages)
        vectors = await provider.embed(model, texts)
        index.upsert(records)

Providers and indexes are always passed in explicitly. Nothing in
docrag reaches for a process-wide client.
"""

from abc import ABC, abstractmethod

from docrag.config import ChunkingConfig
from docrag.models.document import Chunk, Page
from docrag.models.vector import VectorMatch, VectorRecord


class BaseChunker(ABC):
    """
    Contract for page chunkers.

    A chunker takes scraped Pages and returns Chunks in page order, then
    section order, then split order. Every chunker receives a
    ChunkingConfig so the caller controls the budgets.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def chunk(self, pages: list[Page]) -> list[Chunk]:
        """
        Split pages into chunks.

        Args:
            pages: Scraped pages, in the order they should be indexed.

        Returns:
            Chunks with ids, content hashes and per-page chunk_index set.
        """
        ...


class BaseEmbeddingProvider(ABC):
    """
    Contract for embedding providers.

    Implementations must return exactly one vector per input, in input
    order, and raise docrag.errors.ProviderError for provider-side
    failures so the retry policy can classify them.
    """

    @abstractmethod
    async def embed(self, model: str, inputs: list[str]) -> list[list[float]]:
        """
        Embed a list of texts.

        Args:
            model: Embedding model identifier.
            inputs: Texts to embed.

        Returns:
            One vector per input, same order.
        """
        ...


class BaseVectorIndex(ABC):
    """
    Contract for vector indexes.

    Upserts replace records with the same id. Queries return matches
    ranked best-first with higher scores meaning more similar.
    """

    @abstractmethod
    def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or replace records."""
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[VectorMatch]:
        """
        Find the records nearest to a vector.

        Args:
            vector: Query embedding.
            top_k: Number of matches to return.
            include_metadata: Attach each record's metadata to its match.

        Returns:
            Matches ranked best-first.
        """
        ...
