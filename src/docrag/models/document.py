"""
Document models for the indexing pipeline.

These represent data at each stage:
  Page (scraped) → Chunk (split) → EmbeddedChunk (vectorised) → RetrievedChunk (searched)

Pages come from an external scraper as JSON; every model here
round-trips through JSON unchanged.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Section(BaseModel):
    """One heading and the text under it, in page reading order."""

    heading: str = Field(default="", description="Section heading (empty for text before the first heading)")
    text: str = Field(default="", description="Whitespace-normalised section body")


class Page(BaseModel):
    """
    A scraped documentation page.

    The scraper writes `scrapedAt`; we accept either spelling and emit
    the alias so the file format stays stable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    title: str = ""
    sections: list[Section] = Field(default_factory=list)
    scraped_at: Optional[str] = Field(default=None, alias="scrapedAt")


class Chunk(BaseModel):
    """
    The unit of retrieval.

    `id` depends on (url, heading, text); `content_hash` on text alone, so
    identical text under different headings shares one cache entry but
    keeps distinct ids.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="sha256 of url, heading and text")
    text: str
    url: str
    title: str = ""
    headings: list[str] = Field(default_factory=list)
    chunk_index: int = Field(ge=0, description="Position within the page, across all sections")
    content_hash: str = Field(description="sha256 of text")
    created_at: str = Field(description="Timestamp shared by every chunk of one chunking run")


class EmbeddedChunk(Chunk):
    """A chunk with its vector attached."""

    embedding_model: str
    embedding: list[float]


class RetrievedChunk(Chunk):
    """
    A chunk rebuilt from vector-store metadata at query time.

    score is whatever the index reports; higher means more similar.
    """

    embedding_model: str = ""
    score: float = 0.0
