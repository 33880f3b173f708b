"""
Retrieval — persisted vector index, storage backends and semantic search.

Public surface
--------------
- :class:`SemanticRetriever` — main entry point for retrieval with citations.
- :class:`IndexStore` / :class:`VectorIndex` — build, persist, load and search.
- :class:`IndexStorage` — abstract blob backend (subclass for S3, etc.).
- :class:`LocalFileStorage` — default file-system backend.
- :class:`Citation`, :class:`RetrievalResult` — data models.
"""

from docqa.retrieval.base import IndexStorage
from docqa.retrieval.models import Citation, RetrievalResult
from docqa.retrieval.retriever import SemanticRetriever
from docqa.retrieval.storage import LocalFileStorage
from docqa.retrieval.vector_index import IndexStore, VectorIndex

__all__ = [
    "Citation",
    "IndexStorage",
    "IndexStore",
    "LocalFileStorage",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorIndex",
]
