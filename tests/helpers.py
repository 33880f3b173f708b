"""Fakes shared by the unit tests."""

from __future__ import annotations

import re
import zlib
from unittest.mock import MagicMock

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

FAKE_MODEL = "fake-bow-256"


class KeywordEmbeddings(Embeddings):
    """Deterministic bag-of-words embeddings.

    Every lower-cased word is hashed into one of ``dim`` buckets, so texts
    sharing vocabulary get a high cosine similarity.
    """

    def __init__(self, dim: int = 256) -> None:
        self.dim = dim
        self.document_calls = 0

    def _embed(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for word in re.findall(r"\w+", text.lower()):
            vec[zlib.crc32(word.encode()) % self.dim] += 1.0
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls += 1
        return [self._embed(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


class FailingEmbeddings(KeywordEmbeddings):
    """Fails every document batch."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise RuntimeError("quota exceeded")


def make_pages(source: str, *texts: str) -> list[Document]:
    """One page ``Document`` per text, as the PDF loader would emit."""
    return [
        Document(page_content=text, metadata={"source": source, "page": i})
        for i, text in enumerate(texts)
    ]


def fake_llm(content: str = "The answer.") -> MagicMock:
    """Chat model mock whose ``invoke`` returns *content*."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content=content)
    return llm
