"""Pipeline orchestrator — the *ingest* and *ask* entry points.

``ingest`` runs extraction → chunking → embedding → index build/persist
for a whole batch and raises :class:`~docqa.errors.IngestError` on any
failure.  ``ask`` runs index load → query embedding → search →
synthesis and never raises: every failure comes back inside an
:class:`AskResult` so a front-end can render it.

Usage::

    from docqa.pipeline import RAGPipeline

    pipeline = RAGPipeline()
    pipeline.ingest(["manual.pdf"])
    result = pipeline.ask("How do I reset the device?")
    print(result.response if result.success else result.error)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from docqa.config import settings
from docqa.errors import AskError, DocQAError, ErrorKind, IngestError, NoContentError
from docqa.generation.synthesizer import AnswerSynthesizer
from docqa.ingestion.chunker import chunk_documents
from docqa.ingestion.embedder import Embedder
from docqa.ingestion.loader import load_pdfs
from docqa.retrieval.base import validate_handle
from docqa.retrieval.models import Citation
from docqa.retrieval.retriever import SemanticRetriever
from docqa.retrieval.vector_index import IndexStore

logger = logging.getLogger(__name__)

NOT_UPLOADED_MESSAGE = "No documents have been uploaded yet. Upload a PDF before asking questions."
SERVICE_ERROR_MESSAGE = "The question could not be answered right now. Please try again later."


class IngestReport(BaseModel):
    """Outcome of a successful ingest."""

    handle: str
    documents: int
    pages: int
    chunks: int
    embedding_model: str


class AskResult(BaseModel):
    """Structured outcome of :meth:`RAGPipeline.ask`.

    Exactly one of ``response`` / ``error`` is set, depending on
    ``success``.
    """

    success: bool
    response: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    retryable: bool = False
    sources: list[Citation] = Field(default_factory=list)

    @classmethod
    def failure(cls, exc: AskError) -> AskResult:
        if exc.kind is ErrorKind.INDEX_NOT_FOUND:
            message = NOT_UPLOADED_MESSAGE
        elif exc.kind in (ErrorKind.INVALID_REQUEST, ErrorKind.EMBEDDING_MISMATCH):
            message = exc.message
        else:
            message = SERVICE_ERROR_MESSAGE
        return cls(success=False, error=message, error_kind=exc.kind, retryable=exc.retryable)

    def as_response(self) -> dict[str, Any]:
        """Return the plain ``{success, response | error}`` dict."""
        if self.success:
            return {"success": True, "response": self.response}
        return {"success": False, "error": self.error}


class RAGPipeline:
    """Wires the stages together; holds no state between calls.

    Parameters
    ----------
    index_store:
        Builds, persists and loads indices.
    embedder:
        Used for both chunk and query embeddings.
    synthesizer:
        Produces the final answer.
    handle:
        Default index handle for both entry points.
    """

    def __init__(
        self,
        index_store: IndexStore | None = None,
        embedder: Embedder | None = None,
        synthesizer: AnswerSynthesizer | None = None,
        *,
        handle: str = settings.index_handle,
        top_k: int = settings.top_k,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
    ) -> None:
        self.index_store = index_store or IndexStore()
        self.embedder = embedder or Embedder()
        self.synthesizer = synthesizer or AnswerSynthesizer()
        self.handle = validate_handle(handle)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.retriever = SemanticRetriever(self.index_store, self.embedder, default_k=top_k)

    # -- ingest ---------------------------------------------------------------

    def ingest(self, paths: Iterable[str | Path], handle: str | None = None) -> IngestReport:
        """Replace the index under *handle* with one built from *paths*.

        Raises
        ------
        IngestError
            Wrapping the failing stage's error (its ``kind`` is kept).
            Nothing is persisted when this is raised.
        """
        handle = handle or self.handle
        paths = list(paths)
        try:
            validate_handle(handle)
            if not paths:
                raise NoContentError("No documents were provided")

            documents = load_pdfs(paths)
            chunks = chunk_documents(documents, self.chunk_size, self.chunk_overlap)
            if not chunks:
                raise NoContentError("The uploaded documents contain no extractable text")

            index = self.index_store.build_and_persist(chunks, self.embedder, handle)
        except DocQAError as exc:
            logger.error("Ingest into %r failed [%s]: %s", handle, exc.kind.value, exc.message)
            raise IngestError.wrap(exc) from exc
        except ValueError as exc:
            raise IngestError(str(exc), kind=ErrorKind.INVALID_REQUEST) from exc
        except Exception as exc:
            logger.exception("Unexpected error while ingesting into %r", handle)
            raise IngestError.wrap(exc) from exc

        report = IngestReport(
            handle=handle,
            documents=len(documents),
            pages=sum(len(doc) for doc in documents),
            chunks=len(index),
            embedding_model=index.embedding_model,
        )
        logger.info("Ingested %d document(s) into %r (%d chunks)", report.documents, handle, report.chunks)
        return report

    # -- ask ------------------------------------------------------------------

    def ask(self, question: str, handle: str | None = None) -> AskResult:
        """Answer *question* from the index under *handle*; never raises."""
        handle = handle or self.handle
        try:
            if not question or not question.strip():
                raise AskError("Question must not be empty", kind=ErrorKind.INVALID_REQUEST)
            validate_handle(handle)

            context = self.retriever.search(question, handle=handle)
            answer = self.synthesizer.synthesize(question, context)
        except AskError as exc:
            return AskResult.failure(exc)
        except DocQAError as exc:
            logger.warning("Ask against %r failed [%s]: %s", handle, exc.kind.value, exc.message)
            return AskResult.failure(AskError.wrap(exc))
        except ValueError as exc:
            return AskResult.failure(AskError(str(exc), kind=ErrorKind.INVALID_REQUEST))
        except Exception as exc:
            logger.exception("Unexpected error while answering a question")
            return AskResult.failure(AskError.wrap(exc))

        return AskResult(success=True, response=answer.text, sources=answer.sources)


@lru_cache(maxsize=1)
def get_pipeline() -> RAGPipeline:
    """Return the process-wide pipeline built from settings."""
    return RAGPipeline()


def upload_pdfs(paths: Iterable[str | Path]) -> bool:
    """Ingest *paths* into the default index; raises :class:`IngestError`."""
    get_pipeline().ingest(paths)
    return True


def ask_question(question: str) -> dict[str, Any]:
    """Return ``{"success": True, "response": ...}`` or ``{"success": False, "error": ...}``."""
    return get_pipeline().ask(question).as_response()
