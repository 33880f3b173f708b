"""FastAPI application exposing the upload and question entry points."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel

from docqa.config import settings
from docqa.errors import ErrorKind, IngestError
from docqa.pipeline import AskResult, RAGPipeline, get_pipeline

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DocQA API",
    version="0.1.0",
    description="Upload PDFs, then ask questions answered from their content.",
)

# Ingest failures caused by the upload itself rather than by a backing service.
_CLIENT_ERROR_KINDS = {ErrorKind.EXTRACTION, ErrorKind.NO_CONTENT, ErrorKind.INVALID_REQUEST}


# ── Request / Response schemas ────────────────────────────────────────
class QuestionRequest(BaseModel):
    """Incoming question from the user."""

    question: str


class UploadResponse(BaseModel):
    """Summary of a successful upload."""

    success: bool = True
    documents: int
    chunks: int


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/upload", response_model=UploadResponse)
def upload(
    files: list[UploadFile] = File(...),
    pipeline: RAGPipeline = Depends(get_pipeline),
) -> UploadResponse:
    """Replace the indexed corpus with the uploaded PDFs."""
    for f in files:
        if not (f.filename or "").lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail=f"Not a PDF file: {f.filename!r}")

    with tempfile.TemporaryDirectory(prefix="docqa-upload-") as tmp:
        paths: list[Path] = []
        for i, f in enumerate(files):
            target = Path(tmp) / f"{i:03d}_{Path(f.filename or 'upload.pdf').name}"
            with target.open("wb") as out:
                shutil.copyfileobj(f.file, out)
            paths.append(target)

        try:
            report = pipeline.ingest(paths)
        except IngestError as exc:
            status = 400 if exc.kind in _CLIENT_ERROR_KINDS else 500
            raise HTTPException(
                status_code=status,
                detail={"success": False, "error": exc.message, "error_kind": exc.kind.value},
            ) from exc

    return UploadResponse(documents=report.documents, chunks=report.chunks)


@app.post("/ask", response_model=AskResult)
def ask(request: QuestionRequest, pipeline: RAGPipeline = Depends(get_pipeline)) -> AskResult:
    """Answer a question from the uploaded documents."""
    return pipeline.ask(request.question)
