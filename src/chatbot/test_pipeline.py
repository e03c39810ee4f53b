"""End-to-end tests of RAGPipeline with fake collaborators."""
import pytest

from src.chatbot.errors import EmptyInputError, NoEmbeddingsGeneratedError
from src.chatbot.pipeline import RAGPipeline, get_llm_client, get_vector_store
from src.chatbot.vector_store import SimpleVectorStore
from src.conftest import FakeEmbeddings, FakeLLM

FAQ = (
    "Our store opens at nine every weekday morning.\n\n"
    "Returns are accepted within thirty days of purchase.\n\n"
    "Hi!!!"
)


def test_ingest_then_answer(make_pipeline):
    llm = FakeLLM("We open at nine.")
    pipeline = make_pipeline(llm=llm)

    outcome = pipeline.ingest_document("faq.txt", FAQ)
    result = pipeline.answer("When do you open?")

    assert (outcome.embedded, outcome.total) == (2, 2)
    assert result.context_used is True
    assert len(result.sources) == 2
    assert {s.source for s in result.sources} == {"faq.txt"}
    assert "Our store opens at nine" in llm.calls[0]["messages"][0]["content"]


def test_ingest_document_with_no_viable_paragraphs(make_pipeline, memory_store):
    with pytest.raises(EmptyInputError):
        make_pipeline().ingest_document("tiny.txt", "hi\n\nthere")
    assert memory_store.size() == 0


def test_ingest_texts_keeps_own_labels(make_pipeline):
    pipeline = make_pipeline()
    pipeline.ingest_texts([{"content": "A labelled paragraph of text.", "source": "x.txt (chunk 3)"}])

    assert pipeline.list_documents()[0].source == "x.txt (chunk 3)"


def test_ingest_all_failed(make_pipeline):
    pipeline = make_pipeline(embeddings=FakeEmbeddings(fail_all=True))
    with pytest.raises(NoEmbeddingsGeneratedError):
        pipeline.ingest_document("faq.txt", FAQ)


def test_ingest_file_and_folder(make_pipeline, tmp_path):
    (tmp_path / "faq.txt").write_text(FAQ, encoding="utf-8")
    (tmp_path / "bad.txt").write_text("short", encoding="utf-8")
    pipeline = make_pipeline()

    assert pipeline.ingest_file(str(tmp_path / "faq.txt")).embedded == 2

    results = pipeline.ingest_folder(str(tmp_path))
    assert list(results) == ["faq.txt"]
    assert pipeline.vector_store.size() == 4


def test_list_and_delete(make_pipeline):
    pipeline = make_pipeline()
    outcome = pipeline.ingest_document("faq.txt", FAQ)

    assert len(pipeline.list_documents()) == 2
    assert pipeline.delete_document(outcome.ids[0]) is True
    assert pipeline.delete_document(outcome.ids[0]) is False
    assert len(pipeline.list_documents(limit=10)) == 1


def test_stats_and_health(make_pipeline):
    pipeline = make_pipeline()
    pipeline.ingest_document("faq.txt", FAQ)

    assert pipeline.get_stats()["total_chunks"] == 2
    assert pipeline.get_stats()["config"]["score_threshold"] == 0.3
    health = pipeline.health()
    assert health["status"] == "healthy"
    assert health["chunks"] == 2


def test_llm_is_built_lazily(test_config, memory_store):
    pipeline = RAGPipeline(config=test_config, embeddings=FakeEmbeddings(), vector_store=memory_store)
    pipeline.ingest_document("faq.txt", FAQ)
    assert pipeline._llm is None


def test_factories(test_config):
    assert isinstance(get_vector_store(test_config), SimpleVectorStore)

    test_config.groq_api_key = None
    with pytest.raises(ValueError):
        get_llm_client(test_config)

    test_config.vector_backend = "pinecone"
    with pytest.raises(ValueError):
        get_vector_store(test_config)
