"""Text chunking strategies."""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING, Any

from langchain_text_splitters import TextSplitter
from pydantic import BaseModel

from docqa.config import settings

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " "]
PAGE_SEPARATOR = "\n\n"


class Chunk(BaseModel):
    """A contiguous, bounded span of one document's text.

    Attributes
    ----------
    chunk_id:
        1-based position within the ingest batch.  Positional, never
        derived from the content.
    text:
        The chunk content (``len(text) <= chunk_size``).
    source:
        Identifier of the originating document (its file path).
    page:
        0-based page containing the chunk's first character, if known.
    start_index:
        Character offset of the chunk within the document text.
    """

    chunk_id: int
    text: str
    source: str = "unknown"
    page: int | None = None
    start_index: int = 0


class OverlappingTextSplitter(TextSplitter):
    """Hierarchical splitter with an exact overlap window.

    Each chunk is cut after the last paragraph break inside the
    ``chunk_size`` window, falling back to a line break, a sentence end,
    a space and finally a hard character cut.  The next chunk starts
    exactly ``chunk_overlap`` characters before the previous one ends,
    so the chunks are contiguous slices of the input and dropping the
    first ``chunk_overlap`` characters of every chunk but the first
    reconstructs the text.
    """

    def __init__(
        self,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        separators: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)
        self._separators = separators if separators is not None else list(DEFAULT_SEPARATORS)

    def split_text(self, text: str) -> list[str]:
        return [text[start:end] for start, end in self.split_spans(text)]

    def split_spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every chunk of *text*."""
        if not text:
            return []

        spans: list[tuple[int, int]] = []
        start = 0
        while len(text) - start > self._chunk_size:
            end = self._find_cut(text, start)
            spans.append((start, end))
            start = end - self._chunk_overlap
        spans.append((start, len(text)))
        return spans

    def _find_cut(self, text: str, start: int) -> int:
        limit = start + self._chunk_size
        # A cut at or before this point would not move the next chunk forward.
        floor = start + self._chunk_overlap + 1
        for sep in self._separators:
            pos = text.rfind(sep, start, limit)
            if pos != -1 and pos + len(sep) >= floor:
                return pos + len(sep)
        return limit


def chunk_documents(
    documents: list[list[Document]],
    chunk_size: int = settings.chunk_size,
    chunk_overlap: int = settings.chunk_overlap,
) -> list[Chunk]:
    """Split each document's pages into overlapping chunks.

    A document's pages are joined into one text before splitting, so the
    overlap window also spans page breaks.  Documents are never merged,
    even when two of them come from the same ``source``.  Chunk ids run
    across the whole batch in input order.

    Parameters
    ----------
    documents:
        One list of page documents per input file, as produced by
        :func:`docqa.ingestion.loader.load_pdfs`.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of characters shared by consecutive chunks.

    Returns
    -------
    list[Chunk]
        Ordered chunks; empty when no page holds any text.
    """
    splitter = OverlappingTextSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    chunks: list[Chunk] = []
    page_count = 0

    for pages in documents:
        page_count += len(pages)
        source = pages[0].metadata.get("source", "unknown") if pages else "unknown"
        text, page_offsets, page_numbers = _join_pages(pages)
        skipped = len(pages) - len(page_numbers)
        if skipped:
            logger.warning("Skipped %d empty page(s) in %s", skipped, source)

        for start, end in splitter.split_spans(text):
            at = bisect.bisect_right(page_offsets, start) - 1
            chunks.append(
                Chunk(
                    chunk_id=len(chunks) + 1,
                    text=text[start:end],
                    source=str(source),
                    page=page_numbers[at] if at >= 0 else None,
                    start_index=start,
                )
            )

    logger.info("Produced %d chunks from %d page(s)", len(chunks), page_count)
    return chunks


def _join_pages(pages: list[Document]) -> tuple[str, list[int], list[int | None]]:
    """Join non-blank pages; return the text, page start offsets and page numbers."""
    parts: list[str] = []
    offsets: list[int] = []
    numbers: list[int | None] = []
    cursor = 0
    for i, page in enumerate(pages):
        content = page.page_content
        if not content.strip():
            continue
        if parts:
            parts.append(PAGE_SEPARATOR)
            cursor += len(PAGE_SEPARATOR)
        offsets.append(cursor)
        numbers.append(page.metadata.get("page", i))
        parts.append(content)
        cursor += len(content)
    return "".join(parts), offsets, numbers
