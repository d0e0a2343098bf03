"""
Utility functions.

Usage:
    from docrag.utils.helpers import hash_sha256, estimate_tokens, chunk_list
"""

from .helpers import chunk_list, configure_logging, estimate_tokens, hash_sha256

__all__ = ["hash_sha256", "estimate_tokens", "chunk_list", "configure_logging"]
