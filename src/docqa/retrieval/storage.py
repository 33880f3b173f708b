"""Local file-system implementation of the index storage abstraction."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from docqa.config import settings
from docqa.errors import IndexNotFoundError
from docqa.retrieval.base import IndexStorage, validate_handle

logger = logging.getLogger(__name__)


class LocalFileStorage(IndexStorage):
    """Stores each handle as ``<root>/<handle>.bin``.

    Writes go to a temporary file in the same directory which is then
    swapped in with :func:`os.replace`, so readers never observe a
    half-written blob.

    Parameters
    ----------
    root:
        Directory holding the blobs; created on first write.
    """

    suffix = ".bin"

    def __init__(self, root: str | Path = settings.index_dir) -> None:
        self.root = Path(root)

    def path_for(self, handle: str) -> Path:
        return self.root / f"{validate_handle(handle)}{self.suffix}"

    # -- IndexStorage overrides -----------------------------------------------

    def write(self, handle: str, data: bytes) -> None:
        target = self.path_for(handle)
        self.root.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{handle}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote %d bytes to %s", len(data), target)

    def read(self, handle: str) -> bytes:
        path = self.path_for(handle)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise IndexNotFoundError(handle) from None

    def exists(self, handle: str) -> bool:
        return self.path_for(handle).is_file()

    def delete(self, handle: str) -> None:
        self.path_for(handle).unlink(missing_ok=True)
