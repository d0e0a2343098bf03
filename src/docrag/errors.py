"""
Error taxonomy for docrag.

Every failure the pipeline reports deliberately is a DocragError, so the
CLI can catch one type and exit non-zero with the message verbatim.

ProviderError is the typed form of an embedding-provider failure. The
provider adapter fills in status/code at the boundary; the retry policy
only ever looks at ProviderError.kind.
"""

from enum import Enum
from typing import Optional

QUOTA_EXHAUSTED_CODE = "insufficient_quota"


class DocragError(Exception):
    """Base class for all docrag errors."""


class ConfigError(DocragError):
    """A required setting is missing or malformed."""


class InputError(DocragError):
    """An upstream input file is missing, empty, or malformed."""


class CacheParseError(DocragError):
    """The persisted embeddings cache exists but cannot be parsed."""


class DimensionMismatchError(DocragError):
    """Embedding vectors do not all share one length."""


class FailureKind(str, Enum):
    """Classification of a provider failure."""

    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


def classify_status(status: Optional[int], code: Optional[str] = None) -> FailureKind:
    """Map an HTTP-like status (plus optional provider code) to a FailureKind."""
    if status is None:
        return FailureKind.UNKNOWN
    if status == 429:
        if code == QUOTA_EXHAUSTED_CODE:
            return FailureKind.QUOTA_EXHAUSTED
        return FailureKind.RATE_LIMITED
    if 500 <= status <= 599:
        return FailureKind.SERVER_ERROR
    if 400 <= status <= 499:
        return FailureKind.CLIENT_ERROR
    return FailureKind.UNKNOWN


class ProviderError(DocragError):
    """
    A failed call to the embedding provider.

    Args:
        message: Human-readable description (usually the provider's own).
        status: HTTP status code, if the provider returned one.
        code: Provider error code, e.g. "insufficient_quota".
        kind: Explicit classification. Derived from status/code when omitted.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        kind: Optional[FailureKind] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.kind = kind or classify_status(status, code)

    @property
    def retryable(self) -> bool:
        """Rate limits (without quota exhaustion) and 5xx are worth retrying."""
        return self.kind in (FailureKind.RATE_LIMITED, FailureKind.SERVER_ERROR)

    def __repr__(self) -> str:
        return (
            f"ProviderError({str(self)!r}, status={self.status}, "
            f"code={self.code!r}, kind={self.kind.value})"
        )
