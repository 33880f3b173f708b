"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from helpers import FAKE_MODEL, KeywordEmbeddings, fake_llm

from docqa.generation.synthesizer import AnswerSynthesizer
from docqa.ingestion.embedder import Embedder
from docqa.retrieval.storage import LocalFileStorage
from docqa.retrieval.vector_index import HandleLocks, IndexStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "vectors")


@pytest.fixture()
def index_store(storage: LocalFileStorage) -> IndexStore:
    return IndexStore(storage, locks=HandleLocks())


@pytest.fixture()
def embedder() -> Embedder:
    return Embedder(KeywordEmbeddings(), model_name=FAKE_MODEL, batch_size=4)


@pytest.fixture()
def llm() -> MagicMock:
    return fake_llm()


@pytest.fixture()
def synthesizer(llm: MagicMock) -> AnswerSynthesizer:
    return AnswerSynthesizer(llm)
