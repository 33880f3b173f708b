"""Abstract base class for durable index storage.

Storage is a named-blob key/value store: a handle maps to the complete
serialized index.  Adding a backend (S3, a database table …) only
requires subclassing :class:`IndexStorage` and implementing the
abstract methods.  The index format itself lives in
:mod:`docqa.retrieval.vector_index` and is backend-agnostic.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

_HANDLE_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]{0,127}$")


def validate_handle(handle: str) -> str:
    """Return *handle* unchanged, or raise ``ValueError`` if it is unsafe.

    Handles become storage keys (file names for the local backend), so
    path separators and leading dots are rejected.
    """
    if not isinstance(handle, str) or not _HANDLE_RE.match(handle):
        raise ValueError(f"Invalid index handle: {handle!r}")
    return handle


class IndexStorage(ABC):
    """Backend-agnostic blob storage for persisted indices."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def write(self, handle: str, data: bytes) -> None:
        """Replace the blob stored under *handle* with *data*.

        Implementations **must** be atomic: a concurrent or later
        :meth:`read` sees either the previous blob or *data* in full,
        never a partial write.
        """
        ...

    @abstractmethod
    def read(self, handle: str) -> bytes:
        """Return the blob stored under *handle*.

        Raises
        ------
        docqa.errors.IndexNotFoundError
            When nothing has been written under *handle*.
        """
        ...

    @abstractmethod
    def exists(self, handle: str) -> bool:
        """Return ``True`` when a blob is stored under *handle*."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, handle: str) -> None:
        """Remove the blob under *handle*.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")
