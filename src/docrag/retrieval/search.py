"""
Query-time retrieval.

Embeds a question with the same model the chunks were indexed with, asks
the vector index for its nearest records, and rebuilds RetrievedChunks
from the stored metadata.

Usage:
    from docrag.retrieval.search import SimilarityRetriever

    retriever = SimilarityRetriever(provider, index, model="text-embedding-3-small")
    results = await retriever.query_similar("How do I configure webhooks?", top_k=5)
"""

import logging

from docrag.base.indexer import BaseEmbeddingProvider, BaseVectorIndex
from docrag.errors import FailureKind, ProviderError
from docrag.indexing.retry import DEFAULT_MAX_RETRIES, with_retry
from docrag.models.document import RetrievedChunk
from docrag.models.vector import VectorMatch

logger = logging.getLogger(__name__)


def match_to_chunk(match: VectorMatch) -> RetrievedChunk:
    """Rebuild a RetrievedChunk from a match's id, score and metadata."""
    meta = match.metadata
    return RetrievedChunk(
        id=match.id,
        score=match.score or 0.0,
        text=meta.get("text", ""),
        url=meta.get("url", ""),
        title=meta.get("title", ""),
        headings=list(meta.get("headings") or []),
        chunk_index=meta.get("chunk_index", 0),
        content_hash=meta.get("content_hash", ""),
        created_at=meta.get("created_at", ""),
        embedding_model=meta.get("embedding_model", ""),
    )


class SimilarityRetriever:
    """
    Embed-then-search retriever.

    The provider and index are injected so tests can pass fakes and so
    one process can hold retrievers for several indexes at once.
    """

    def __init__(
        self,
        provider: BaseEmbeddingProvider,
        index: BaseVectorIndex,
        model: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self._provider = provider
        self._index = index
        self._model = model
        self._max_retries = max_retries

    async def query_similar(self, question: str, top_k: int = 5) -> list[RetrievedChunk]:
        """
        Return the top_k chunks most similar to the question, best first.
        """
        vectors = await with_retry(
            lambda: self._provider.embed(self._model, [question]),
            self._max_retries,
        )
        if not vectors:
            raise ProviderError(
                "Provider returned no embedding for the query",
                kind=FailureKind.INVALID_RESPONSE,
            )

        matches = self._index.query(vectors[0], top_k=top_k, include_metadata=True)
        logger.info(f"Retrieved {len(matches)} chunks for query ({len(question)} chars)")
        return [match_to_chunk(m) for m in matches]
