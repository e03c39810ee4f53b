"""
Shared test fixtures: fake embedding gateway, fake LLM, in-memory index.

No network and no model downloads; vectors are 4-dimensional.
"""

import pytest

from src.chatbot.config import RAGConfig
from src.chatbot.errors import EmbeddingError
from src.chatbot.pipeline import RAGPipeline
from src.chatbot.vector_store import SimpleVectorStore

DIM = 4


class FakeEmbeddings:
    """Returns a fixed vector per text; texts in `fail_on` raise EmbeddingError."""

    def __init__(self, vectors=None, default=None, fail_on=(), fail_all=False):
        self.vectors = dict(vectors or {})
        self.default = default if default is not None else [1.0, 0.0, 0.0, 0.0]
        self.fail_on = set(fail_on)
        self.fail_all = fail_all
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.fail_all or text in self.fail_on:
            raise EmbeddingError(f"gateway down for {text[:20]!r}")
        return list(self.vectors.get(text, self.default))


class FakeLLM:
    def __init__(self, reply="Here is your answer.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, messages, max_tokens=512, temperature=0.7):
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def memory_store():
    return SimpleVectorStore(dimension=DIM)


@pytest.fixture
def test_config():
    return RAGConfig(
        embedding_dimension=DIM,
        embedding_workers=1,
        top_k=5,
        score_threshold=0.3,
        history_window=4,
        embedding_backend="sentence-transformers",
        vector_backend="memory",
        groq_api_key="test-key",
        request_timeout=5.0,
    )


@pytest.fixture
def make_pipeline(test_config, memory_store):
    """Build a RAGPipeline around fakes; override any collaborator by keyword."""
    def _make(embeddings=None, llm=None, vector_store=None, config=None):
        return RAGPipeline(
            config=config or test_config,
            embeddings=embeddings or FakeEmbeddings(),
            llm=llm or FakeLLM(),
            vector_store=vector_store if vector_store is not None else memory_store,
        )
    return _make


