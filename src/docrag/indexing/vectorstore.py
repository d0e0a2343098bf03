"""
Vector index: record building, the FAISS backend, and batched upsert.

This is the final step of the indexing pipeline:

    Chunker → Embeddings → VectorIndex (this file)

Vectors arrive precomputed (and cached), so the index is fed
(id, vector, metadata) records rather than raw text. Before anything is
written, every vector is checked against the first one's length: a
partial upsert with mixed dimensions would leave the index unusable.

FAISS is configured for max inner product, so query scores go up with
similarity (OpenAI embeddings are unit-length, making this cosine).

Usage:
    from docrag.indexing.vectorstore import create_vector_index, upsert_embedded_chunks

    index = create_vector_index(VectorStoreConfig(persist_directory="data/faiss_index"), embeddings)
    upsert_embedded_chunks(index, embedded_chunks, batch_size=100)
    index.save("data/faiss_index")
"""

import logging
from pathlib import Path
from typing import Optional, Union

from langchain_community.vectorstores import FAISS
from langchain_community.vectorstores.utils import DistanceStrategy
from langchain_core.embeddings import Embeddings

from docrag.base.indexer import BaseVectorIndex
from docrag.config import VectorStoreConfig, VectorStoreType
from docrag.errors import DimensionMismatchError, InputError
from docrag.models.document import EmbeddedChunk
from docrag.models.vector import VectorMatch, VectorRecord
from docrag.utils.helpers import chunk_list

logger = logging.getLogger(__name__)

# Stored alongside metadata so matches can be mapped back to record ids
_ID_FIELD = "_record_id"


def build_vector_records(embedded: list[EmbeddedChunk]) -> list[VectorRecord]:
    """
    Turn embedded chunks into upsert records, after checking dimensions.

    Metadata is every chunk field except id and embedding.

    Raises:
        InputError: If there are no chunks.
        DimensionMismatchError: If the first vector is empty or any vector
            differs in length from the first.
    """
    if not embedded:
        raise InputError("No embedded chunks to upsert")

    dim = len(embedded[0].embedding)
    if dim == 0:
        raise DimensionMismatchError(f"First chunk (id={embedded[0].id}) has no embedding values")

    for chunk in embedded:
        if len(chunk.embedding) != dim:
            raise DimensionMismatchError(
                f"Embedding dimension mismatch for id={chunk.id}: "
                f"expected {dim}, got {len(chunk.embedding)}"
            )

    return [
        VectorRecord(
            id=chunk.id,
            values=chunk.embedding,
            metadata=chunk.model_dump(exclude={"id", "embedding"}),
        )
        for chunk in embedded
    ]


class FaissVectorIndex(BaseVectorIndex):
    """
    In-memory FAISS index holding precomputed vectors.

    The underlying LangChain store is created on the first upsert (FAISS
    needs to see a vector to know the dimension). Call save() to persist
    and FaissVectorIndex.load() to reopen without re-upserting.
    """

    def __init__(self, embeddings: Embeddings, store: Optional[FAISS] = None):
        self._embeddings = embeddings
        self._store = store

    @property
    def size(self) -> int:
        if self._store is None:
            return 0
        return len(self._store.index_to_docstore_id)

    def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return

        # FAISS rejects repeated ids within one call; the last record per id wins
        records = list({r.id: r for r in records}.values())

        text_embeddings = [(r.metadata.get("text", ""), r.values) for r in records]
        metadatas = [{**r.metadata, _ID_FIELD: r.id} for r in records]
        ids = [r.id for r in records]

        if self._store is None:
            self._store = FAISS.from_embeddings(
                text_embeddings,
                self._embeddings,
                metadatas=metadatas,
                ids=ids,
                distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
            )
            return

        existing = set(self._store.index_to_docstore_id.values())
        stale = [i for i in ids if i in existing]
        if stale:
            self._store.delete(ids=stale)
        self._store.add_embeddings(text_embeddings, metadatas=metadatas, ids=ids)

    def query(
        self,
        vector: list[float],
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[VectorMatch]:
        if self._store is None:
            return []

        matches = []
        for doc, score in self._store.similarity_search_with_score_by_vector(vector, k=top_k):
            metadata = dict(doc.metadata)
            record_id = metadata.pop(_ID_FIELD, None) or getattr(doc, "id", None) or ""
            matches.append(VectorMatch(
                id=record_id,
                score=float(score),
                metadata=metadata if include_metadata else {},
            ))
        return matches

    def save(self, path: Union[str, Path]) -> None:
        """Persist the index to a directory."""
        if self._store is None:
            raise InputError("Cannot save an empty FAISS index")
        self._store.save_local(str(path))
        logger.info(f"Saved FAISS index ({self.size} vectors) to {path}")

    @classmethod
    def load(cls, path: Union[str, Path], embeddings: Embeddings) -> "FaissVectorIndex":
        """Reopen an index written by save()."""
        store = FAISS.load_local(
            str(path),
            embeddings,
            allow_dangerous_deserialization=True,
            distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
        )
        return cls(embeddings, store=store)


def create_vector_index(config: VectorStoreConfig, embeddings: Embeddings) -> BaseVectorIndex:
    """
    Factory for the configured backend.

    Reopens the persisted index when persist_directory already holds one,
    so repeated upserts accumulate instead of starting over.
    """
    if config.store_type == VectorStoreType.FAISS:
        if config.persist_directory and (Path(config.persist_directory) / "index.faiss").exists():
            logger.info(f"Loading FAISS index from {config.persist_directory}")
            return FaissVectorIndex.load(config.persist_directory, embeddings)
        return FaissVectorIndex(embeddings)

    raise ValueError(
        f"Unknown vector store type: '{config.store_type}'. Supported: 'faiss'."
    )


def upsert_embedded_chunks(
    index: BaseVectorIndex,
    embedded: list[EmbeddedChunk],
    batch_size: int = 100,
) -> int:
    """
    Validate and upsert embedded chunks in fixed-size batches.

    Validation covers the whole input before the first batch is written.

    Returns:
        Number of records upserted.
    """
    records = build_vector_records(embedded)
    logger.info(f"Loaded {len(records)} vectors (dim={len(records[0].values)})")

    batches = chunk_list(records, batch_size)
    for i, batch in enumerate(batches):
        index.upsert(batch)
        logger.info(f"Upsert batch {i + 1}/{len(batches)} done ({len(batch)} vectors)")

    return len(records)
