"""
File-based pipeline stages.

Each stage reads the previous stage's JSON file under the data dir and
writes its own:

    scraped.json ──ingest──▶ chunks.json ──embed──▶ embedded_chunks.json ──upsert──▶ vector index
                                              │
                                   embeddings_cache.json (read at start, saved at end)

A missing, empty or malformed input file stops the stage before any
work is done. The chunk set is rebuilt from scratch on every ingest;
the embeddings cache is what makes re-runs cheap.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from docrag.base.indexer import BaseEmbeddingProvider, BaseVectorIndex
from docrag.config import ChunkingConfig, EmbeddingConfig, PathsConfig
from docrag.errors import InputError
from docrag.indexing.cache import cache_key, load_cache, save_cache
from docrag.indexing.chunking import get_chunker
from docrag.indexing.embeddings import embed_chunks
from docrag.indexing.vectorstore import upsert_embedded_chunks
from docrag.models.document import Chunk, EmbeddedChunk, Page

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def read_records(path: Path, model: type[M], hint: str = "") -> list[M]:
    """
    Read a non-empty JSON array of `model` records.

    Raises:
        InputError: If the file is missing, not JSON, not a non-empty
            array, or any record fails validation.
    """
    if not path.exists():
        suffix = f" ({hint})" if hint else ""
        raise InputError(f"{path.name} not found at {path}{suffix}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise InputError(f"{path.name} is not valid JSON: {exc}") from exc

    if not isinstance(data, list) or not data:
        raise InputError(f"{path.name} is empty or malformed")

    try:
        return TypeAdapter(list[model]).validate_python(data)
    except ValidationError as exc:
        raise InputError(f"{path.name} has invalid records: {exc}") from exc


def write_records(path: Path, records: list[BaseModel]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload: list[dict[str, Any]] = [r.model_dump(by_alias=True) for r in records]
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def run_ingest(paths: PathsConfig, chunking: Optional[ChunkingConfig] = None) -> list[Chunk]:
    """Chunk scraped.json into chunks.json."""
    pages = read_records(paths.scraped_file, Page, hint="run the scraper first")
    logger.info(f"Loaded {len(pages)} pages from {paths.scraped_file.name}")

    chunks = get_chunker(chunking or ChunkingConfig()).chunk(pages)
    logger.info(f"Produced {len(chunks)} chunks")

    if not chunks:
        logger.warning("No chunks produced, check that sections have text")

    # Always rewritten, so a previous run's chunk set never survives
    write_records(paths.chunks_file, chunks)
    logger.info(f"Wrote {len(chunks)} chunks to {paths.chunks_file}")
    return chunks


async def run_embed(
    paths: PathsConfig,
    config: EmbeddingConfig,
    provider: BaseEmbeddingProvider,
) -> list[EmbeddedChunk]:
    """
    Embed chunks.json into embedded_chunks.json, reusing the cache.

    If a batch fails for good, the vectors of batches that did finish are
    still saved to the cache before the error propagates, so the next run
    picks up where this one stopped. embedded_chunks.json is only written
    on full success.
    """
    chunks = read_records(paths.chunks_file, Chunk, hint="run `docrag ingest` first")
    logger.info(f"Loaded {len(chunks)} chunks")

    cache = load_cache(paths.cache_file)
    missing = sum(1 for c in chunks if cache_key(config.model_name, c) not in cache)
    logger.info(f"{missing} chunks need embedding ({len(chunks) - missing} cached)")

    try:
        embedded = await embed_chunks(chunks, cache, provider, config)
    except Exception:
        save_cache(paths.cache_file, cache)
        raise

    write_records(paths.embedded_file, embedded)
    save_cache(paths.cache_file, cache)

    logger.info(f"Wrote {len(embedded)} embedded chunks to {paths.embedded_file}")
    logger.info(f"Cache has {len(cache)} entries")
    return embedded


def run_upsert(paths: PathsConfig, index: BaseVectorIndex, batch_size: int = 100) -> int:
    """Upsert embedded_chunks.json into the vector index."""
    embedded = read_records(paths.embedded_file, EmbeddedChunk, hint="run `docrag embed` first")
    count = upsert_embedded_chunks(index, embedded, batch_size=batch_size)
    logger.info(f"Done, upserted {count} vectors")
    return count
