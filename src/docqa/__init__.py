"""
docqa — retrieval-augmented question answering over uploaded PDFs.

Public API
----------
- :class:`RAGPipeline` — ``ingest`` and ``ask`` entry points.
- :func:`upload_pdfs` / :func:`ask_question` — module-level shortcuts
  using the default pipeline.
"""

from docqa.pipeline import AskResult, IngestReport, RAGPipeline, ask_question, upload_pdfs

__all__ = [
    "AskResult",
    "IngestReport",
    "RAGPipeline",
    "ask_question",
    "upload_pdfs",
]
