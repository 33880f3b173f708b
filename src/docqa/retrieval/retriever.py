"""Semantic retriever — query-time search with citation tracking.

Usage::

    from docqa.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever()
    results   = retriever.search("What does the warranty cover?")
    for r in results:
        print(r.citation.label, r.content[:80])
"""

from __future__ import annotations

import logging

from docqa.config import settings
from docqa.ingestion.embedder import Embedder
from docqa.retrieval.models import RetrievalResult
from docqa.retrieval.vector_index import IndexStore

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """Loads the persisted index for a handle and searches it.

    Parameters
    ----------
    index_store:
        Where indices are loaded from.  When *None*, an
        :class:`~docqa.retrieval.vector_index.IndexStore` over the
        configured local directory is created.
    embedder:
        Query embedder; must be the same model the index was built with.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Optional minimum cosine similarity.  When *None* (the default)
        the top *k* hits are returned unfiltered, since cosine scores may
        be negative.
    """

    def __init__(
        self,
        index_store: IndexStore | None = None,
        embedder: Embedder | None = None,
        *,
        default_k: int = settings.top_k,
        score_threshold: float | None = None,
    ) -> None:
        self._index_store = index_store or IndexStore()
        self._embedder = embedder or Embedder()
        self.default_k = default_k
        self.score_threshold = score_threshold

    def search(
        self,
        query: str,
        *,
        handle: str = settings.index_handle,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Run a semantic search against the index stored under *handle*.

        The index is loaded fresh on every call, so a completed ingest is
        visible to the next question without any cache invalidation.

        Raises
        ------
        IndexNotFoundError
            When nothing has been ingested under *handle*.
        EmbeddingMismatchError
            When the index was built with a different embedding model.
        """
        k = k or self.default_k
        index = self._index_store.load(handle)
        index.check_compatible(self._embedder.model_name)

        vector = self._embedder.embed_query(query)
        hits = self._index_store.search(index, vector, k)
        if self.score_threshold is None:
            results = hits
        else:
            results = [
                r for r in hits if r.citation.score is None or r.citation.score >= self.score_threshold
            ]
        logger.info("Retrieved %d/%d chunk(s) from %r", len(results), len(index), handle)
        for r in results:
            logger.debug("  %s score=%.3f", r.citation.label, r.citation.score or 0.0)
        return results
