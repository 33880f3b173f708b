"""Retrieved chunks and the provenance returned with every answer."""

from __future__ import annotations

from pydantic import BaseModel


class Citation(BaseModel):
    """Where a retrieved chunk came from and how close it was to the query.

    Attributes
    ----------
    chunk_id:
        1-based position of the chunk inside its index.
    source:
        Source locator, usually the PDF file path.
    page:
        0-based page on which the chunk starts (``None`` when unknown).
    score:
        Cosine similarity between the query and the chunk.
    """

    chunk_id: int | None = None
    source: str = "unknown"
    page: int | None = None
    score: float | None = None

    @property
    def label(self) -> str:
        """``source p.N #id`` for log lines; page and id are omitted when unknown."""
        parts = [self.source]
        if self.page is not None:
            parts.append(f"p.{self.page}")
        if self.chunk_id is not None:
            parts.append(f"#{self.chunk_id}")
        return " ".join(parts)


class RetrievalResult(BaseModel):
    """One retrieved chunk: its text and its citation."""

    content: str
    citation: Citation
