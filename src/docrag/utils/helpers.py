"""
Shared utility functions.

Small, pure helpers used across the pipeline: content hashing, the
character-based token estimate, batch partitioning, and log setup.
"""

import hashlib
import logging
import math
import sys
from typing import Sequence, TypeVar

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def hash_sha256(text: str) -> str:
    """Hex SHA-256 of the UTF-8 encoding of text (64 lowercase chars)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def estimate_tokens(text: str) -> int:
    """
    Approximate token count as ceil(characters / 4).

    Cheap proxy for a real tokenizer. Chunk boundaries only depend on it
    being deterministic and monotonic in length.
    """
    return math.ceil(len(text) / 4)


def chunk_list(items: Sequence[T], size: int) -> list[list[T]]:
    """
    Partition items into consecutive batches of at most `size`.

    The last batch holds the remainder. Empty input gives no batches.
    """
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def configure_logging(level: int = logging.INFO) -> None:
    """Install one stdout handler on the root logger and quiet HTTP client noise."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "openai", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
