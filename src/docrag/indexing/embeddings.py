"""
Embedding: provider factory, provider adapter, and the batch executor.

The flow for one run:

    chunks ──chunk_list──▶ batches ──ConcurrencyGate──▶ embed_batch (per batch)
                                                         │
                                  cache hit? ◀───────────┤
                                  cache miss ──with_retry──▶ provider.embed
                                                         │
                                  EmbeddedChunk per chunk, input order

Only cache misses reach the provider. Freshly computed vectors are
written into the caller's cache dict as each batch completes; saving it
is the caller's job.

Supported providers (via get_embedding_model):
    "openai"      → OpenAIEmbeddings (API-based, default)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)
    "cohere"      → CohereEmbeddings (API-based)

Usage:
    from docrag.indexing.embeddings import (
        LangChainEmbeddingProvider, embed_chunks, get_embedding_model,
    )

    config = EmbeddingConfig()
    provider = LangChainEmbeddingProvider(get_embedding_model(config))
    embedded = await embed_chunks(chunks, cache, provider, config)
"""

import asyncio
import functools
import logging
from typing import Optional

import openai
from langchain_core.embeddings import Embeddings

from docrag.base.indexer import BaseEmbeddingProvider
from docrag.config import EmbeddingConfig
from docrag.errors import FailureKind, ProviderError
from docrag.indexing.cache import EmbeddingsCache, cache_key
from docrag.indexing.concurrency import ConcurrencyGate
from docrag.indexing.retry import DEFAULT_MAX_RETRIES, with_retry
from docrag.models.document import Chunk, EmbeddedChunk
from docrag.utils.helpers import chunk_list

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider factory
# ---------------------------------------------------------------------------

def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Provider packages are imported lazily so only the one in use needs to
    be installed. OpenAI's client-side retries are switched off: with_retry
    is the only retry layer, otherwise backoff would compound.

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    provider = config.provider.lower()

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs = {"max_retries": 0, **config.model_kwargs}
        return OpenAIEmbeddings(model=config.model_name, **kwargs)

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install docrag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install docrag[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'openai', 'huggingface', 'cohere'. "
            f"For other providers, wrap a LangChain Embeddings instance directly."
        )


# ---------------------------------------------------------------------------
# Provider adapter
# ---------------------------------------------------------------------------

def _status_of(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    for attr in ("status_code", "status"):
        value = getattr(response, attr, None)
        if isinstance(value, int):
            return value
    return None


def _code_of(exc: BaseException) -> Optional[str]:
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        nested = body.get("error") if isinstance(body.get("error"), dict) else body
        code = nested.get("code")
        if isinstance(code, str):
            return code
    return None


def to_provider_error(exc: BaseException) -> Optional[ProviderError]:
    """
    Translate a provider client exception into a ProviderError.

    Returns None for exceptions that carry no provider status at all
    (programming errors and the like), which should propagate as-is.
    """
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, openai.APIStatusError):
        return ProviderError(str(exc), status=exc.status_code, code=_code_of(exc))
    if isinstance(exc, openai.APIError):
        return ProviderError(str(exc), status=None, code=_code_of(exc))

    status = _status_of(exc)
    if status is None:
        return None
    return ProviderError(str(exc), status=status, code=_code_of(exc))


class LangChainEmbeddingProvider(BaseEmbeddingProvider):
    """
    Adapts a LangChain Embeddings model to BaseEmbeddingProvider.

    The LangChain model is bound to one model name at construction, so
    embed() refuses a different one rather than silently caching vectors
    under the wrong key.
    """

    def __init__(self, embeddings: Embeddings):
        self._embeddings = embeddings

    @property
    def model_name(self) -> Optional[str]:
        for attr in ("model", "model_name"):
            value = getattr(self._embeddings, attr, None)
            if isinstance(value, str):
                return value
        return None

    async def embed(self, model: str, inputs: list[str]) -> list[list[float]]:
        bound = self.model_name
        if bound is not None and bound != model:
            raise ValueError(
                f"Provider is bound to model '{bound}' but was asked for '{model}'"
            )

        try:
            return await self._embeddings.aembed_documents(inputs)
        except Exception as exc:
            translated = to_provider_error(exc)
            if translated is None or translated is exc:
                raise
            raise translated from exc


# ---------------------------------------------------------------------------
# Batch executor
# ---------------------------------------------------------------------------

def make_embed_text(chunk: Chunk) -> str:
    """Title, headings and body joined by newlines, skipping empty parts."""
    headings = "\n".join(chunk.headings)
    return "\n".join(part for part in (chunk.title, headings, chunk.text) if part)


async def embed_batch(
    chunks: list[Chunk],
    cache: EmbeddingsCache,
    model: str,
    provider: BaseEmbeddingProvider,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[EmbeddedChunk]:
    """
    Embed one batch of chunks, calling the provider only for cache misses.

    Misses are sent as a single request (retried per the retry policy)
    and written into `cache` in place.

    Returns:
        One EmbeddedChunk per input chunk, in input order.

    Raises:
        ProviderError: If the provider fails for good, or returns a
            different number of vectors than it was given texts.
    """
    missing = [c for c in chunks if cache_key(model, c) not in cache]

    if missing:
        inputs = [make_embed_text(c) for c in missing]
        vectors = await with_retry(lambda: provider.embed(model, inputs), max_retries)

        if len(vectors) != len(missing):
            raise ProviderError(
                f"Provider returned {len(vectors)} embeddings for {len(missing)} inputs",
                kind=FailureKind.INVALID_RESPONSE,
            )
        for chunk, vector in zip(missing, vectors):
            cache[cache_key(model, chunk)] = list(vector)

    return [
        EmbeddedChunk(
            **chunk.model_dump(),
            embedding_model=model,
            embedding=cache[cache_key(model, chunk)],
        )
        for chunk in chunks
    ]


async def embed_chunks(
    chunks: list[Chunk],
    cache: EmbeddingsCache,
    provider: BaseEmbeddingProvider,
    config: Optional[EmbeddingConfig] = None,
) -> list[EmbeddedChunk]:
    """
    Embed all chunks in fixed-size batches, at most config.concurrency at once.

    Results are stitched back together in batch order, whatever order the
    batches finish in. If a batch fails for good, its error propagates;
    batches that already finished have left their vectors in `cache`.
    """
    config = config or EmbeddingConfig()
    batches = chunk_list(chunks, config.batch_size)
    gate = ConcurrencyGate(config.concurrency)

    async def run_batch(i: int, batch: list[Chunk]) -> list[EmbeddedChunk]:
        embedded = await embed_batch(
            batch, cache, config.model_name, provider, config.max_retries
        )
        logger.info(f"Batch {i + 1}/{len(batches)} done ({len(batch)} chunks)")
        return embedded

    results = await asyncio.gather(
        *(gate.run(functools.partial(run_batch, i, batch)) for i, batch in enumerate(batches))
    )
    return [embedded for batch_result in results for embedded in batch_result]
