"""PDF text extraction — thin wrapper around LangChain's ``PyPDFLoader``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader

from docqa.errors import ExtractionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from langchain_core.documents import Document

logger = logging.getLogger(__name__)


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page.

    Every page carries ``metadata["source"]`` (the file path) and
    ``metadata["page"]`` (0-based page number).

    Raises
    ------
    ExtractionError
        When the file is missing, unreadable or not a valid PDF.
    """
    path = Path(path)
    if not path.is_file():
        raise ExtractionError(f"File not found: {path}")

    try:
        pages = PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise ExtractionError(f"Could not extract text from {path.name}: {exc}") from exc

    for i, page in enumerate(pages):
        page.metadata["source"] = str(path)
        page.metadata.setdefault("page", i)
    logger.info("Extracted %d page(s) from %s", len(pages), path)
    return pages


def load_pdfs(paths: Iterable[str | Path]) -> list[list[Document]]:
    """Load every PDF in *paths*, preserving input order.

    Fails fast: the first unreadable file aborts the whole batch.
    """
    return [load_pdf(p) for p in paths]
