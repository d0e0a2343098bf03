"""
Page chunking.

Takes scraped Pages and splits every section into bounded, overlapping
chunks for embedding. Budgets are in estimated tokens (ceil(chars / 4)),
so no tokenizer is needed.

How a long section is split:

    words:   w1 w2 w3 ... w40 w41 ... w80 ...
    chunk 1: w1 ............. w40                (budget reached)
    chunk 2:         w33 .... w40 w41 ... w75    (starts with the overlap tail)
    chunk 3:                      w68 ... w80    (only if it adds new words)

The overlap tail is whole words taken from the end of the previous chunk,
up to overlap_tokens * 4 characters. Words are never cut, and every
word of the input lands in at least one chunk.

Usage:
    from docrag.indexing.chunking import chunk_pages, get_chunker
    from docrag.config import ChunkingConfig

    chunks = chunk_pages(pages)

    chunker = get_chunker(ChunkingConfig(max_tokens=400, overlap_tokens=40))
    chunks = chunker.chunk(pages)
"""

import logging
import math
from datetime import datetime, timezone

from docrag.base.indexer import BaseChunker
from docrag.config import ChunkingConfig
from docrag.models.document import Chunk, Page
from docrag.utils.helpers import estimate_tokens, hash_sha256

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 600
DEFAULT_OVERLAP_TOKENS = 80


def _overlap_tail(words: list[str], char_target: int) -> tuple[list[str], int]:
    """
    Take whole words from the end of `words` while they fit in char_target.

    Returns the tail (in original order) and its space-joined length.
    """
    tail: list[str] = []
    char_count = 0
    for word in reversed(words):
        add = len(word) + 1 if tail else len(word)
        if char_count + add > char_target:
            break
        char_count += add
        tail.append(word)
    tail.reverse()
    return tail, char_count


def split_section_text(
    text: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap_tokens: int = DEFAULT_OVERLAP_TOKENS,
) -> list[str]:
    """
    Split one section's text into overlapping chunks.

    Text within budget comes back unchanged as a single chunk (the empty
    string included). Longer text is re-joined with single spaces.

    Args:
        text: Section body.
        max_tokens: Estimated-token budget. A chunk is closed as soon as it
            reaches this estimate, so it may end just past the budget by
            part of one word.
        overlap_tokens: Estimated tokens of trailing words repeated at the
            start of the next chunk. 0 gives disjoint chunks.

    Returns:
        At least one chunk, in reading order.
    """
    if estimate_tokens(text) <= max_tokens:
        return [text]

    words = text.split()
    if not words:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    char_count = 0
    # Words at the head of `current` that were carried over, not consumed
    carried = 0

    for word in words:
        if current:
            char_count += 1
        char_count += len(word)
        current.append(word)

        if math.ceil(char_count / 4) >= max_tokens:
            chunks.append(" ".join(current))
            current, char_count = _overlap_tail(current, overlap_tokens * 4)
            carried = len(current)

    # A trailing buffer holding only the overlap would repeat the end of
    # the previous chunk.
    if len(current) > carried:
        chunks.append(" ".join(current))

    return chunks


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def chunk_pages(
    pages: list[Page],
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap_tokens: int = DEFAULT_OVERLAP_TOKENS,
) -> list[Chunk]:
    """
    Chunk every section of every page.

    All chunks of one call share a single created_at. chunk_index counts
    from 0 within each page, across section boundaries. Sections without
    any text produce no chunks.

    Args:
        pages: Scraped pages, in indexing order.
        max_tokens: Passed to split_section_text.
        overlap_tokens: Passed to split_section_text.

    Returns:
        Chunks in page order, then section order, then split order.
    """
    created_at = _utc_timestamp()
    chunks: list[Chunk] = []

    for page in pages:
        chunk_index = 0
        for section in page.sections:
            for text in split_section_text(section.text, max_tokens, overlap_tokens):
                if not text.strip():
                    continue
                chunks.append(Chunk(
                    id=hash_sha256(f"{page.url}\n{section.heading}\n{text}"),
                    text=text,
                    url=page.url,
                    title=page.title,
                    headings=[section.heading],
                    chunk_index=chunk_index,
                    content_hash=hash_sha256(text),
                    created_at=created_at,
                ))
                chunk_index += 1

        if chunk_index == 0:
            logger.debug(f"No chunks produced for {page.url}")

    return chunks


class SectionChunker(BaseChunker):
    """
    Heading-aware chunker for scraped documentation pages.

    Each section is split on its own, so a chunk never spans two headings
    and always carries the heading it falls under.
    """

    def chunk(self, pages: list[Page]) -> list[Chunk]:
        return chunk_pages(
            pages,
            max_tokens=self.config.max_tokens,
            overlap_tokens=self.config.overlap_tokens,
        )


# ---------------------------------------------------------------------------
# Factory: pick the chunker from config
# ---------------------------------------------------------------------------

def get_chunker(config: ChunkingConfig) -> BaseChunker:
    """
    Factory that returns the right chunker based on config.strategy.

    Raises:
        ValueError: If the strategy is not recognized.
    """
    strategy = config.strategy.lower()

    if strategy == "section":
        return SectionChunker(config)

    raise ValueError(
        f"Unknown chunking strategy: '{config.strategy}'. "
        f"Built-in strategies: 'section'. "
        f"For custom chunkers, subclass BaseChunker directly."
    )
