"""Unit tests for the retrieval layer: citations, SemanticRetriever and Embedder."""

from __future__ import annotations

import pytest
from helpers import KeywordEmbeddings
from langchain_core.embeddings import Embeddings

from docqa.errors import EmbeddingError, EmbeddingMismatchError, IndexNotFoundError
from docqa.ingestion.chunker import Chunk
from docqa.ingestion.embedder import Embedder
from docqa.retrieval.models import Citation, RetrievalResult
from docqa.retrieval.retriever import SemanticRetriever
from docqa.retrieval.vector_index import IndexStore

CHUNKS = [
    Chunk(chunk_id=1, text="Invoices are payable within thirty days of the issue date.", source="invoices.pdf", page=2),
    Chunk(chunk_id=2, text="Late payments accrue interest at two percent per month.", source="terms.pdf", page=0),
    Chunk(chunk_id=3, text="Shipping is free for orders above fifty euros.", source="shipping.pdf"),
]


@pytest.fixture()
def retriever(index_store: IndexStore, embedder: Embedder) -> SemanticRetriever:
    index_store.build_and_persist(CHUNKS, embedder, "kb")
    return SemanticRetriever(index_store, embedder, default_k=5)


# ── Citation model tests ───────────────────────────────────────────────


class TestCitation:
    def test_label_with_page_and_chunk(self) -> None:
        c = Citation(source="guide.pdf", page=2, chunk_id=3)
        assert c.label == "guide.pdf p.2 #3"

    def test_label_without_page(self) -> None:
        c = Citation(source="guide.pdf", chunk_id=3)
        assert c.label == "guide.pdf #3"

    def test_default_source_is_unknown(self) -> None:
        assert Citation().source == "unknown"
        assert Citation().label == "unknown"


# ── SemanticRetriever tests ────────────────────────────────────────────


class TestSemanticRetriever:
    def test_search_returns_retrieval_results(self, retriever: SemanticRetriever) -> None:
        results = retriever.search("When are invoices payable?", handle="kb")
        assert len(results) == 3
        assert all(isinstance(r, RetrievalResult) for r in results)

    def test_citations_populated(self, retriever: SemanticRetriever) -> None:
        first = retriever.search("Invoices are payable within thirty days of the issue date", handle="kb")[0].citation
        assert first.chunk_id == 1
        assert first.source == "invoices.pdf"
        assert first.page == 2
        assert first.score is not None and first.score > 0.9

    def test_explicit_k_overrides_default(self, retriever: SemanticRetriever) -> None:
        assert len(retriever.search("anything", handle="kb", k=1)) == 1

    def test_score_threshold_filters(self, index_store: IndexStore, embedder: Embedder) -> None:
        index_store.build_and_persist(CHUNKS, embedder, "kb")
        retriever = SemanticRetriever(index_store, embedder, score_threshold=0.5)
        results = retriever.search("Late payments accrue interest at two percent per month", handle="kb")
        assert [r.citation.chunk_id for r in results] == [2]

    def test_negative_scores_are_still_returned(self, index_store: IndexStore) -> None:
        class Opposed(Embeddings):
            def embed_documents(self, texts: list[str]) -> list[list[float]]:
                return [[-1.0, 0.0], [-1.0, -0.5]][: len(texts)]

            def embed_query(self, text: str) -> list[float]:
                return [1.0, 0.0]

        opposed = Embedder(Opposed(), model_name="opposed")
        index_store.build_and_persist(CHUNKS[:2], opposed, "kb")
        raw = index_store.search(index_store.load("kb"), [1.0, 0.0], 2)
        results = SemanticRetriever(index_store, opposed, default_k=2).search("q", handle="kb")

        assert len(raw) == 2
        assert [r.citation.chunk_id for r in results] == [r.citation.chunk_id for r in raw]
        assert all(r.citation.score is not None and r.citation.score < 0 for r in results)

    def test_missing_index(self, index_store: IndexStore, embedder: Embedder) -> None:
        retriever = SemanticRetriever(index_store, embedder)
        with pytest.raises(IndexNotFoundError):
            retriever.search("anything", handle="nothing-here")

    def test_rejects_other_embedding_model(self, index_store: IndexStore, embedder: Embedder) -> None:
        index_store.build_and_persist(CHUNKS, embedder, "kb")
        other = Embedder(KeywordEmbeddings(), model_name="different-model")
        with pytest.raises(EmbeddingMismatchError):
            SemanticRetriever(index_store, other).search("invoices", handle="kb")


# ── Embedder tests ─────────────────────────────────────────────────────


class TestEmbedder:
    def test_vectors_in_input_order(self, embedder: Embedder) -> None:
        texts = [f"text number {i}" for i in range(10)]
        fake = KeywordEmbeddings()
        assert embedder.embed_texts(texts) == [fake.embed_query(t) for t in texts]

    def test_wrong_vector_count_is_error(self) -> None:
        class Short(KeywordEmbeddings):
            def embed_documents(self, texts: list[str]) -> list[list[float]]:
                return super().embed_documents(texts)[:-1]

        with pytest.raises(EmbeddingError):
            Embedder(Short(), model_name="m").embed_texts(["a", "b"])

    def test_query_failure_is_embedding_error(self) -> None:
        class Down(KeywordEmbeddings):
            def embed_query(self, text: str) -> list[float]:
                raise ConnectionError("unreachable")

        with pytest.raises(EmbeddingError) as info:
            Embedder(Down(), model_name="m").embed_query("q")
        assert info.value.retryable is True

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError):
            Embedder(KeywordEmbeddings(), model_name="m", batch_size=0)
