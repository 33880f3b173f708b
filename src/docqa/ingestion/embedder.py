"""Embedding service wrapper.

:class:`Embedder` pairs a LangChain ``Embeddings`` implementation with
the identifier of the model behind it.  The identifier is written into
every persisted index so the query path can refuse vectors produced by
a different model.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docqa.config import settings
from docqa.errors import EmbeddingError, is_transient

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str = settings.embedding_model) -> Embeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(model_name=model_name)


class Embedder:
    """Batching, error-mapping front for an embedding model.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings``.  When *None*, the configured
        HuggingFace model is loaded.
    model_name:
        Identifier recorded in index manifests.  Must change whenever
        the underlying model changes.
    batch_size:
        Maximum number of texts sent per ``embed_documents`` call.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        model_name: str = settings.embedding_model,
        batch_size: int = settings.embedding_batch_size,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._embeddings = embeddings if embeddings is not None else get_embedding_function(model_name)
        self.model_name = model_name
        self.batch_size = batch_size

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in order, one vector per input.

        Raises
        ------
        EmbeddingError
            If any batch fails or the service returns the wrong number of
            vectors.  No partial result is returned.
        """
        vectors: list[list[float]] = []
        for offset in range(0, len(texts), self.batch_size):
            batch = texts[offset : offset + self.batch_size]
            try:
                result = self._embeddings.embed_documents(batch)
            except Exception as exc:
                raise EmbeddingError(
                    f"Embedding failed for texts {offset}..{offset + len(batch) - 1}: {exc}",
                    retryable=is_transient(exc),
                ) from exc
            if len(result) != len(batch):
                raise EmbeddingError(
                    f"Embedding service returned {len(result)} vectors for {len(batch)} texts"
                )
            vectors.extend(result)

        logger.debug("Embedded %d text(s) with %s", len(texts), self.model_name)
        return vectors

    def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Query embedding failed: {exc}", retryable=is_transient(exc)) from exc
        if not vector:
            raise EmbeddingError("Embedding service returned an empty query vector")
        return vector
