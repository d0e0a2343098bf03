"""
Command-line entry point.

    docrag ingest                 scraped.json → chunks.json
    docrag embed                  chunks.json → embedded_chunks.json (+ cache)
    docrag upsert                 embedded_chunks.json → FAISS index
    docrag query "question" -k 5  search the FAISS index

Settings come from the environment (see PipelineConfig.from_env); any
failure is logged verbatim and the process exits with status 1.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from docrag.config import PipelineConfig, PathsConfig, require_env
from docrag.errors import DocragError
from docrag.indexing.embeddings import LangChainEmbeddingProvider, get_embedding_model
from docrag.indexing.vectorstore import FaissVectorIndex, create_vector_index
from docrag.pipeline import run_embed, run_ingest, run_upsert
from docrag.retrieval.search import SimilarityRetriever
from docrag.utils.helpers import configure_logging

logger = logging.getLogger(__name__)


def _embeddings(config: PipelineConfig):
    if config.embedding.provider == "openai":
        require_env("OPENAI_API_KEY")
    return get_embedding_model(config.embedding)


def cmd_ingest(config: PipelineConfig, args: argparse.Namespace) -> None:
    run_ingest(config.paths, config.chunking)


def cmd_embed(config: PipelineConfig, args: argparse.Namespace) -> None:
    provider = LangChainEmbeddingProvider(_embeddings(config))
    asyncio.run(run_embed(config.paths, config.embedding, provider))


def cmd_upsert(config: PipelineConfig, args: argparse.Namespace) -> None:
    index = create_vector_index(config.vector_store, _embeddings(config))
    run_upsert(config.paths, index, batch_size=config.vector_store.upsert_batch_size)
    if isinstance(index, FaissVectorIndex) and config.vector_store.persist_directory:
        index.save(config.vector_store.persist_directory)


def cmd_query(config: PipelineConfig, args: argparse.Namespace) -> None:
    embeddings = _embeddings(config)
    index = create_vector_index(config.vector_store, embeddings)
    retriever = SimilarityRetriever(
        LangChainEmbeddingProvider(embeddings),
        index,
        model=config.embedding.model_name,
        max_retries=config.embedding.max_retries,
    )
    results = asyncio.run(retriever.query_similar(args.question, top_k=args.top_k))

    for rank, chunk in enumerate(results, start=1):
        heading = " > ".join(h for h in chunk.headings if h)
        print(f"{rank}. [{chunk.score:.3f}] {chunk.title}{' > ' + heading if heading else ''}")
        print(f"   {chunk.url}")
        print(f"   {chunk.text[:200]}")


COMMANDS = {
    "ingest": cmd_ingest,
    "embed": cmd_embed,
    "upsert": cmd_upsert,
    "query": cmd_query,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docrag",
        description="Chunk, embed and index scraped documentation pages.",
    )
    parser.add_argument("--data-dir", help="Directory holding the pipeline's JSON files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("ingest", help="Chunk scraped.json into chunks.json")
    sub.add_parser("embed", help="Embed chunks.json, reusing the embeddings cache")
    sub.add_parser("upsert", help="Write embedded chunks into the vector index")

    query = sub.add_parser("query", help="Search the vector index")
    query.add_argument("question")
    query.add_argument("-k", "--top-k", type=int, default=5)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = PipelineConfig.from_env()
        if args.data_dir:
            paths = PathsConfig(data_dir=Path(args.data_dir))
            vector_store = config.vector_store.model_copy(
                update={"persist_directory": str(paths.index_dir)}
            )
            config = config.model_copy(update={"paths": paths, "vector_store": vector_store})

        COMMANDS[args.command](config, args)
    except DocragError as exc:
        logger.error(f"[{args.command}] {exc}")
        return 1
    except Exception:
        logger.exception(f"[{args.command}] failed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
