"""FAISS-backed vector index with whole-blob persistence.

An index is rebuilt from scratch on every ingest and persisted under a
named handle as a single ``numpy`` archive holding two members:

* ``manifest`` — UTF-8 JSON: format version, handle, embedding model,
  dimension, metric, creation time and the ordered chunk payload.
* ``vectors`` — the FAISS index as produced by ``faiss.serialize_index``.

Vectors are L2-normalised before insertion into an ``IndexFlatIP`` so
inner-product scores are cosine similarities.
"""

from __future__ import annotations

import io
import json
import logging
import threading
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import faiss
import numpy as np

from docqa.config import settings
from docqa.errors import (
    CorruptIndexError,
    EmbeddingError,
    EmbeddingMismatchError,
    IndexBuildError,
    is_transient,
)
from docqa.ingestion.chunker import Chunk
from docqa.ingestion.embedder import Embedder
from docqa.retrieval.base import IndexStorage, validate_handle
from docqa.retrieval.models import Citation, RetrievalResult

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
METRIC = "cosine"


class VectorIndex:
    """In-memory index of chunk vectors, read-only once built or loaded.

    Parameters
    ----------
    handle:
        Name the index is persisted under.
    embedding_model:
        Identifier of the model that produced the vectors.
    dimension:
        Vector dimension (``0`` for an index built from no chunks).
    chunks:
        Chunk payload, aligned with the FAISS row ids.
    faiss_index:
        The FAISS index, or ``None`` when there are no chunks.
    """

    def __init__(
        self,
        handle: str,
        *,
        embedding_model: str,
        dimension: int,
        chunks: list[Chunk],
        faiss_index: faiss.Index | None = None,
        created_at: str | None = None,
    ) -> None:
        self.handle = handle
        self.embedding_model = embedding_model
        self.dimension = dimension
        self.chunks = chunks
        self._index = faiss_index
        self.created_at = created_at or datetime.now(timezone.utc).isoformat()

    def __len__(self) -> int:
        return len(self.chunks)

    # -- construction ---------------------------------------------------------

    @classmethod
    def from_vectors(
        cls,
        handle: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
        *,
        embedding_model: str,
    ) -> VectorIndex:
        """Build an index from *chunks* and their aligned *vectors*."""
        if len(chunks) != len(vectors):
            raise ValueError(f"Got {len(vectors)} vectors for {len(chunks)} chunks")
        if not chunks:
            return cls(handle, embedding_model=embedding_model, dimension=0, chunks=[])

        matrix = np.ascontiguousarray(vectors, dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[1] == 0:
            raise ValueError(f"Embeddings must form a non-empty 2-D matrix, got shape {matrix.shape}")
        faiss.normalize_L2(matrix)

        index = faiss.IndexFlatIP(matrix.shape[1])
        index.add(matrix)
        return cls(
            handle,
            embedding_model=embedding_model,
            dimension=int(matrix.shape[1]),
            chunks=list(chunks),
            faiss_index=index,
        )

    # -- querying -------------------------------------------------------------

    def check_compatible(self, embedding_model: str) -> None:
        """Raise :class:`EmbeddingMismatchError` unless *embedding_model* built this index."""
        if embedding_model != self.embedding_model:
            raise EmbeddingMismatchError(
                f"Index {self.handle!r} was built with {self.embedding_model!r} "
                f"but queries are embedded with {embedding_model!r}; re-upload the documents."
            )

    def search(self, query_vector: list[float], k: int = settings.top_k) -> list[RetrievalResult]:
        """Return up to *k* chunks ordered by descending cosine similarity."""
        if self._index is None or self._index.ntotal == 0 or k <= 0:
            return []

        query = np.ascontiguousarray([query_vector], dtype=np.float32)
        if query.shape[1] != self.dimension:
            raise EmbeddingMismatchError(
                f"Query vector has dimension {query.shape[1]}, index {self.handle!r} expects {self.dimension}"
            )
        faiss.normalize_L2(query)

        scores, ids = self._index.search(query, min(k, self._index.ntotal))
        results: list[RetrievalResult] = []
        for score, idx in zip(scores[0].tolist(), ids[0].tolist()):
            if idx < 0:
                continue
            chunk = self.chunks[idx]
            citation = Citation(
                chunk_id=chunk.chunk_id,
                source=chunk.source,
                page=chunk.page,
                score=float(score),
            )
            results.append(RetrievalResult(content=chunk.text, citation=citation))
        return results

    # -- (de)serialisation ----------------------------------------------------

    def manifest(self) -> dict[str, Any]:
        return {
            "format_version": FORMAT_VERSION,
            "handle": self.handle,
            "embedding_model": self.embedding_model,
            "dimension": self.dimension,
            "metric": METRIC,
            "chunk_count": len(self.chunks),
            "created_at": self.created_at,
            "chunks": [c.model_dump() for c in self.chunks],
        }

    def to_bytes(self) -> bytes:
        manifest = json.dumps(self.manifest(), ensure_ascii=False).encode("utf-8")
        if self._index is not None:
            vectors = faiss.serialize_index(self._index)
        else:
            vectors = np.zeros(0, dtype=np.uint8)

        buf = io.BytesIO()
        np.savez(buf, manifest=np.frombuffer(manifest, dtype=np.uint8), vectors=vectors)
        return buf.getvalue()

    @classmethod
    def from_bytes(cls, handle: str, data: bytes) -> VectorIndex:
        """Decode a blob written by :meth:`to_bytes`.

        Raises
        ------
        CorruptIndexError
            When the blob is unreadable or from an unknown format version.
        """
        try:
            with np.load(io.BytesIO(data), allow_pickle=False) as archive:
                manifest = json.loads(archive["manifest"].tobytes().decode("utf-8"))
                raw_vectors = archive["vectors"]
            if manifest.get("format_version") != FORMAT_VERSION:
                raise CorruptIndexError(
                    f"Index {handle!r} has unsupported format version {manifest.get('format_version')!r}"
                )
            chunks = [Chunk.model_validate(c) for c in manifest["chunks"]]
            faiss_index = faiss.deserialize_index(raw_vectors) if raw_vectors.size else None
        except CorruptIndexError:
            raise
        except (ValueError, KeyError, EOFError, OSError, RuntimeError, zipfile.BadZipFile) as exc:
            raise CorruptIndexError(f"Index {handle!r} could not be decoded: {exc}") from exc

        if faiss_index is not None and faiss_index.ntotal != len(chunks):
            raise CorruptIndexError(
                f"Index {handle!r} holds {faiss_index.ntotal} vectors for {len(chunks)} chunks"
            )
        return cls(
            manifest.get("handle", handle),
            embedding_model=manifest["embedding_model"],
            dimension=int(manifest["dimension"]),
            chunks=chunks,
            faiss_index=faiss_index,
            created_at=manifest.get("created_at"),
        )


class HandleLocks:
    """Registry of per-handle locks giving each handle a single writer."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, handle: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(handle, threading.Lock())
        with lock:
            yield


# Shared by every IndexStore in the process.
_HANDLE_LOCKS = HandleLocks()


class IndexStore:
    """Builds, persists, loads and searches :class:`VectorIndex` objects.

    Parameters
    ----------
    storage:
        Durable blob storage.  When *None*, a
        :class:`~docqa.retrieval.storage.LocalFileStorage` rooted at
        ``settings.index_dir`` is used.
    locks:
        Per-handle writer locks; defaults to the process-wide registry.
    """

    def __init__(
        self,
        storage: IndexStorage | None = None,
        *,
        locks: HandleLocks | None = None,
    ) -> None:
        if storage is None:
            from docqa.retrieval.storage import LocalFileStorage

            storage = LocalFileStorage()
        self.storage = storage
        self.locks = locks or _HANDLE_LOCKS

    def build_and_persist(
        self,
        chunks: list[Chunk],
        embedder: Embedder,
        handle: str = settings.index_handle,
    ) -> VectorIndex:
        """Embed *chunks*, build a fresh index and replace whatever *handle* held.

        The index is assembled entirely in memory and handed to storage in
        a single atomic write, so a failure at any step leaves the
        previously persisted index untouched.

        Raises
        ------
        IndexBuildError
            If embedding, index construction or the durable write fails.
        """
        validate_handle(handle)
        with self.locks.hold(handle):
            try:
                vectors = embedder.embed_texts([c.text for c in chunks])
            except EmbeddingError as exc:
                raise IndexBuildError(
                    f"Embedding failed while building {handle!r}: {exc.message}",
                    retryable=exc.retryable,
                ) from exc

            try:
                index = VectorIndex.from_vectors(
                    handle, chunks, vectors, embedding_model=embedder.model_name
                )
                blob = index.to_bytes()
            except (ValueError, RuntimeError) as exc:
                raise IndexBuildError(f"Could not build index {handle!r}: {exc}") from exc

            try:
                self.storage.write(handle, blob)
            except Exception as exc:
                raise IndexBuildError(
                    f"Could not persist index {handle!r}: {exc}",
                    retryable=is_transient(exc),
                ) from exc

        logger.info(
            "Persisted index %r: %d chunks, dim=%d, model=%s",
            handle,
            len(index),
            index.dimension,
            index.embedding_model,
        )
        return index

    def load(self, handle: str = settings.index_handle) -> VectorIndex:
        """Read the index persisted under *handle*.

        Raises
        ------
        IndexNotFoundError
            When nothing has been persisted under *handle* yet.
        CorruptIndexError
            When the stored blob cannot be decoded.
        """
        data = self.storage.read(validate_handle(handle))
        index = VectorIndex.from_bytes(handle, data)
        logger.debug("Loaded index %r with %d chunks", handle, len(index))
        return index

    def search(
        self,
        index: VectorIndex,
        query_vector: list[float],
        k: int = settings.top_k,
    ) -> list[RetrievalResult]:
        """Top-*k* similarity search; an empty index yields ``[]``."""
        return index.search(query_vector, k)
