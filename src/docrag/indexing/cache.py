"""
Embeddings cache.

A flat JSON object mapping "<model>:<content_hash>" to a vector. Keyed by
content, not chunk id, so re-chunking a page whose text did not change
costs no new embedding calls, and identical text anywhere in the corpus
is embedded once per model.

Entries are never evicted. Switching models simply misses on the new
prefix.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from docrag.errors import CacheParseError
from docrag.models.document import Chunk

logger = logging.getLogger(__name__)

EmbeddingsCache = dict[str, list[float]]


def cache_key(model: str, chunk: Chunk) -> str:
    return f"{model}:{chunk.content_hash}"


def _validate(data: object, path: Path) -> EmbeddingsCache:
    if not isinstance(data, dict):
        raise CacheParseError(f"Embeddings cache at {path} is not a JSON object")
    for key, vector in data.items():
        if not isinstance(vector, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector
        ):
            raise CacheParseError(
                f"Embeddings cache at {path} has a non-numeric vector under key {key!r}"
            )
    return data


def load_cache(path: Union[str, Path]) -> EmbeddingsCache:
    """
    Load the cache from disk.

    A missing file is an empty cache. A file that exists but does not
    parse is fatal: silently starting empty would re-embed everything and
    hide the problem.

    Raises:
        CacheParseError: If the file is not a JSON object of numeric lists.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"No embeddings cache at {path}, starting empty")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise CacheParseError(f"Embeddings cache at {path} is not valid JSON: {exc}") from exc

    cache = _validate(data, path)
    logger.info(f"Loaded {len(cache)} cached embeddings from {path}")
    return cache


def _target_mode(path: Path) -> int:
    """Permissions for the saved file: the existing file's, else the umask default."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def save_cache(path: Union[str, Path], cache: EmbeddingsCache) -> None:
    """
    Write the whole cache to disk as one snapshot.

    Writes to a temp file in the same directory and renames it over the
    target, so readers see either the old file or the new one.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(cache, f, indent=2)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Saved {len(cache)} cached embeddings to {path}")
