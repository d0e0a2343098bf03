"""
Shared test fixtures for the docrag test suite.

Provides reusable fixtures: sample pages, chunk builders, configs, and a
fake embedding provider. Nothing here touches the network.
"""

import pytest

from docrag.base.indexer import BaseEmbeddingProvider
from docrag.config import ChunkingConfig, EmbeddingConfig, PathsConfig
from docrag.models.document import Chunk, Page, Section
from docrag.utils.helpers import hash_sha256


class FakeEmbeddingProvider(BaseEmbeddingProvider):
    """
    Deterministic provider double.

    Each text maps to [len(text), position-in-request] so tests can tell
    which vector came from which request. `failures` is a list of
    exceptions raised by successive calls before the provider starts
    succeeding.
    """

    def __init__(self, failures=None, dim: int = 2):
        self.calls: list[tuple[str, list[str]]] = []
        self.failures = list(failures or [])
        self.dim = dim

    async def embed(self, model, inputs):
        self.calls.append((model, list(inputs)))
        if self.failures:
            raise self.failures.pop(0)
        return [[float(len(text)), float(i)] + [0.0] * (self.dim - 2) for i, text in enumerate(inputs)]


def make_chunk(text: str = "Hello world", **overrides) -> Chunk:
    """Chunk with consistent id/content_hash for the given text."""
    url = overrides.pop("url", "https://example.com/page")
    heading = overrides.pop("heading", "Section One")
    fields = dict(
        id=hash_sha256(f"{url}\n{heading}\n{text}"),
        text=text,
        url=url,
        title="Example Page",
        headings=[heading],
        chunk_index=0,
        content_hash=hash_sha256(text),
        created_at="2024-01-01T00:00:00.000Z",
    )
    fields.update(overrides)
    return Chunk(**fields)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chunking_config():
    return ChunkingConfig(max_tokens=50, overlap_tokens=10)


@pytest.fixture
def embedding_config():
    return EmbeddingConfig(model_name="test-model", batch_size=2, concurrency=2, max_retries=2)


@pytest.fixture
def paths(tmp_path):
    return PathsConfig(data_dir=tmp_path / "data")


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_pages():
    """Two scraped pages, one with several sections and one with none."""
    return [
        Page(
            url="https://docs.example.com/docs/intro",
            title="Introduction",
            scrapedAt="2024-01-01T00:00:00.000Z",
            sections=[
                Section(heading="", text="Welcome to the docs."),
                Section(heading="Install", text="Run pip install example."),
                Section(heading="Usage", text="Import the client and call it."),
            ],
        ),
        Page(
            url="https://docs.example.com/docs/empty",
            title="Empty",
            scrapedAt="2024-01-01T00:00:00.000Z",
            sections=[],
        ),
    ]


@pytest.fixture
def sample_chunks():
    return [
        make_chunk("Alpha text", chunk_index=0),
        make_chunk("Beta text", chunk_index=1),
        make_chunk("Gamma text", chunk_index=2),
    ]


@pytest.fixture
def fake_provider():
    return FakeEmbeddingProvider()
