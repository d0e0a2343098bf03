"""Tests for vector records and the FAISS index (fake embeddings, no API calls)."""

from unittest.mock import MagicMock

import pytest

from conftest import make_chunk
from docrag.config import VectorStoreConfig
from docrag.errors import DimensionMismatchError, InputError
from docrag.indexing.chunking import chunk_pages
from docrag.indexing.vectorstore import (
    FaissVectorIndex,
    build_vector_records,
    create_vector_index,
    upsert_embedded_chunks,
)
from docrag.models.document import EmbeddedChunk, Page, Section
from docrag.models.vector import VectorRecord


def embedded(text: str, vector: list[float], **overrides) -> EmbeddedChunk:
    chunk = make_chunk(text, **overrides)
    return EmbeddedChunk(**chunk.model_dump(), embedding_model="m", embedding=vector)


@pytest.fixture
def fake_embeddings():
    from langchain_core.embeddings import FakeEmbeddings

    return FakeEmbeddings(size=3)


class TestBuildVectorRecords:

    def test_one_record_per_chunk(self):
        items = [embedded("a", [1.0, 0.0]), embedded("b", [0.0, 1.0])]
        records = build_vector_records(items)

        assert [r.id for r in records] == [items[0].id, items[1].id]
        assert records[0].values == [1.0, 0.0]

    def test_metadata_has_chunk_fields_but_not_id_or_vector(self):
        [record] = build_vector_records([embedded("a", [1.0, 0.0])])

        assert record.metadata["text"] == "a"
        assert record.metadata["url"] == "https://example.com/page"
        assert record.metadata["headings"] == ["Section One"]
        assert record.metadata["embedding_model"] == "m"
        assert "id" not in record.metadata
        assert "embedding" not in record.metadata

    def test_empty_input_raises(self):
        with pytest.raises(InputError):
            build_vector_records([])

    def test_empty_first_vector_raises(self):
        with pytest.raises(DimensionMismatchError):
            build_vector_records([embedded("a", [])])

    def test_dimension_mismatch_names_offending_id(self):
        bad = embedded("b", [1.0, 2.0, 3.0])
        with pytest.raises(DimensionMismatchError, match=f"id={bad.id}: expected 2, got 3"):
            build_vector_records([embedded("a", [1.0, 0.0]), bad])


class TestUpsertEmbeddedChunks:

    def test_upserts_in_batches(self):
        index = MagicMock()
        items = [embedded(f"t{i}", [float(i), 1.0]) for i in range(5)]

        count = upsert_embedded_chunks(index, items, batch_size=2)

        assert count == 5
        assert [len(c.args[0]) for c in index.upsert.call_args_list] == [2, 2, 1]

    def test_validates_before_writing(self):
        index = MagicMock()
        items = [embedded("a", [1.0, 0.0]), embedded("b", [1.0])]

        with pytest.raises(DimensionMismatchError):
            upsert_embedded_chunks(index, items, batch_size=1)

        index.upsert.assert_not_called()


class TestFaissVectorIndex:

    @pytest.fixture(autouse=True)
    def _require_faiss(self):
        pytest.importorskip("faiss")

    def _records(self):
        return [
            VectorRecord(id="x", values=[1.0, 0.0, 0.0], metadata={"text": "about x"}),
            VectorRecord(id="y", values=[0.0, 1.0, 0.0], metadata={"text": "about y"}),
            VectorRecord(id="z", values=[0.7, 0.7, 0.0], metadata={"text": "about z"}),
        ]

    def test_empty_index_returns_no_matches(self, fake_embeddings):
        index = FaissVectorIndex(fake_embeddings)
        assert index.size == 0
        assert index.query([1.0, 0.0, 0.0]) == []

    def test_query_ranks_by_similarity(self, fake_embeddings):
        index = FaissVectorIndex(fake_embeddings)
        index.upsert(self._records())

        matches = index.query([1.0, 0.0, 0.0], top_k=2)

        assert [m.id for m in matches] == ["x", "z"]
        assert matches[0].score > matches[1].score
        assert matches[0].metadata["text"] == "about x"
        assert "_record_id" not in matches[0].metadata

    def test_query_without_metadata(self, fake_embeddings):
        index = FaissVectorIndex(fake_embeddings)
        index.upsert(self._records())

        [match] = index.query([0.0, 1.0, 0.0], top_k=1, include_metadata=False)

        assert match.id == "y"
        assert match.metadata == {}

    def test_upsert_replaces_same_id(self, fake_embeddings):
        index = FaissVectorIndex(fake_embeddings)
        index.upsert(self._records())
        index.upsert([VectorRecord(id="x", values=[0.0, 0.0, 1.0], metadata={"text": "moved"})])

        assert index.size == 3
        [match] = index.query([0.0, 0.0, 1.0], top_k=1)
        assert match.id == "x"
        assert match.metadata["text"] == "moved"

    def test_repeated_id_in_one_batch_keeps_last(self, fake_embeddings):
        index = FaissVectorIndex(fake_embeddings)
        index.upsert([
            VectorRecord(id="x", values=[1.0, 0.0, 0.0], metadata={"text": "first"}),
            VectorRecord(id="x", values=[0.0, 1.0, 0.0], metadata={"text": "second"}),
        ])
        index.upsert(self._records() + [
            VectorRecord(id="y", values=[0.0, 0.0, 1.0], metadata={"text": "later y"}),
        ])

        assert index.size == 3
        [match] = index.query([0.0, 0.0, 1.0], top_k=1)
        assert match.id == "y"
        assert match.metadata["text"] == "later y"

    def test_identical_sections_upsert_cleanly(self, fake_embeddings):
        page = Page(url="https://example.com", title="Page", sections=[
            Section(heading="Example", text="See above."),
            Section(heading="Example", text="See above."),
        ])
        chunks = chunk_pages([page])
        items = [
            EmbeddedChunk(**c.model_dump(), embedding_model="m", embedding=[1.0, 0.0, 0.0])
            for c in chunks
        ]
        index = FaissVectorIndex(fake_embeddings)

        assert upsert_embedded_chunks(index, items) == 2
        assert index.size == 1

    def test_save_and_load(self, fake_embeddings, tmp_path):
        index = FaissVectorIndex(fake_embeddings)
        index.upsert(self._records())
        index.save(tmp_path / "idx")

        reopened = FaissVectorIndex.load(tmp_path / "idx", fake_embeddings)

        assert reopened.size == 3
        assert reopened.query([0.0, 1.0, 0.0], top_k=1)[0].id == "y"

    def test_save_empty_index_raises(self, fake_embeddings, tmp_path):
        with pytest.raises(InputError):
            FaissVectorIndex(fake_embeddings).save(tmp_path / "idx")

    def test_factory_reopens_persisted_index(self, fake_embeddings, tmp_path):
        persist = tmp_path / "idx"
        index = FaissVectorIndex(fake_embeddings)
        index.upsert(self._records())
        index.save(persist)

        reopened = create_vector_index(
            VectorStoreConfig(persist_directory=str(persist)), fake_embeddings
        )
        fresh = create_vector_index(
            VectorStoreConfig(persist_directory=str(tmp_path / "other")), fake_embeddings
        )

        assert reopened.size == 3
        assert fresh.size == 0
