"""Error taxonomy shared by every pipeline stage.

Each exception carries an :class:`ErrorKind` so callers branch on the
cause instead of matching message strings.  Stage errors are aggregated
into :class:`IngestError` / :class:`AskError` at the orchestrator
boundary, keeping the original kind and chaining the original cause.
"""

from __future__ import annotations

from enum import Enum

import openai


class ErrorKind(str, Enum):
    """Closed set of failure causes."""

    EXTRACTION = "extraction"
    NO_CONTENT = "no_content"
    EMBEDDING = "embedding"
    EMBEDDING_MISMATCH = "embedding_mismatch"
    INDEX_BUILD = "index_build"
    INDEX_NOT_FOUND = "index_not_found"
    CORRUPT_INDEX = "corrupt_index"
    MODEL = "model"
    SYNTHESIS = "synthesis"
    INVALID_REQUEST = "invalid_request"
    INTERNAL = "internal"


class DocQAError(Exception):
    """Base class for all pipeline errors.

    Parameters
    ----------
    message:
        Human-readable description.
    retryable:
        ``True`` when the failure looks transient (timeouts, rate limits,
        upstream 5xx).  Nothing in this package retries on its own.
    """

    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class ExtractionError(DocQAError):
    """A document could not be read or parsed."""

    kind = ErrorKind.EXTRACTION


class NoContentError(DocQAError):
    """The uploaded batch contained no indexable text."""

    kind = ErrorKind.NO_CONTENT


class EmbeddingError(DocQAError):
    """The embedding service rejected or failed a request."""

    kind = ErrorKind.EMBEDDING


class EmbeddingMismatchError(DocQAError):
    """Query-time embeddings are incompatible with the persisted index."""

    kind = ErrorKind.EMBEDDING_MISMATCH


class IndexBuildError(DocQAError):
    """Building or persisting an index failed; the prior index is untouched."""

    kind = ErrorKind.INDEX_BUILD


class CorruptIndexError(DocQAError):
    """A persisted index exists but cannot be decoded."""

    kind = ErrorKind.CORRUPT_INDEX


class IndexNotFoundError(DocQAError):
    """No index has been persisted under the requested handle."""

    kind = ErrorKind.INDEX_NOT_FOUND

    def __init__(self, handle: str) -> None:
        super().__init__(f"No index found for handle {handle!r}")
        self.handle = handle


class ModelError(DocQAError):
    """The language model service call failed."""

    kind = ErrorKind.MODEL


class SynthesisError(DocQAError):
    """No usable answer could be produced for a question."""

    kind = ErrorKind.SYNTHESIS


_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    ConnectionError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def is_transient(exc: BaseException) -> bool:
    """Return ``True`` when *exc* looks like a temporary service failure.

    Bad requests, authentication and permission failures are permanent;
    retrying them with the same input cannot succeed.
    """
    if isinstance(exc, DocQAError):
        return exc.retryable
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    status = getattr(exc, "status_code", None)
    return isinstance(status, int) and status >= 500


class _StageAggregate(DocQAError):
    """Orchestrator-level error that keeps the failing stage's kind."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.kind = kind

    @classmethod
    def wrap(cls, exc: Exception) -> _StageAggregate:
        """Build an aggregate from *exc*; the caller chains it with ``from``."""
        if isinstance(exc, DocQAError):
            return cls(exc.message, kind=exc.kind, retryable=exc.retryable)
        return cls(f"{type(exc).__name__}: {exc}", kind=ErrorKind.INTERNAL)


class IngestError(_StageAggregate):
    """Raised by :meth:`docqa.pipeline.RAGPipeline.ingest`."""


class AskError(_StageAggregate):
    """Failure of the question path, reported inside an ``AskResult``."""
