"""Unit tests for PDF text extraction."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from langchain_core.documents import Document

from docqa.errors import ErrorKind, ExtractionError
from docqa.ingestion.loader import load_pdf, load_pdfs


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError) as info:
        load_pdf(tmp_path / "absent.pdf")
    assert info.value.kind is ErrorKind.EXTRACTION


def test_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "corrupt.pdf"
    path.write_bytes(b"this is not a pdf")
    with pytest.raises(ExtractionError):
        load_pdf(path)


def test_pages_carry_source_and_page(tmp_path: Path) -> None:
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF-1.4")
    pages = [Document(page_content="one"), Document(page_content="two", metadata={"page": 1})]

    with patch("docqa.ingestion.loader.PyPDFLoader") as loader_cls:
        loader_cls.return_value.load.return_value = pages
        result = load_pdf(path)

    loader_cls.assert_called_once_with(str(path))
    assert [p.metadata["source"] for p in result] == [str(path), str(path)]
    assert [p.metadata["page"] for p in result] == [0, 1]


def test_batch_fails_fast(tmp_path: Path) -> None:
    good = tmp_path / "good.pdf"
    good.write_bytes(b"%PDF-1.4")

    with patch("docqa.ingestion.loader.PyPDFLoader") as loader_cls:
        loader_cls.return_value.load.return_value = [Document(page_content="text")]
        with pytest.raises(ExtractionError):
            load_pdfs([good, tmp_path / "missing.pdf", good])
    assert loader_cls.call_count == 1
