"""Tests for the embedding gateway clients."""
import numpy as np
import pytest
import requests

from src.chatbot import embeddings
from src.chatbot.embeddings import (
    OllamaEmbeddingClient,
    as_vector,
    cosine_similarity,
    validate_embedding_input,
)
from src.chatbot.errors import EmbeddingError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


def make_client(**kwargs):
    return OllamaEmbeddingClient(check_connection=False, timeout=2, **kwargs)


def test_cosine_similarity():
    assert abs(cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0, 0.0]) - 1.0) < 0.01
    assert abs(cosine_similarity([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])) < 0.01
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_as_vector():
    assert as_vector(np.array([1, 2.5])) == [1.0, 2.5]
    for bad in (None, [], {"data": [1.0]}, ["a", "b"], [True, False]):
        with pytest.raises(EmbeddingError):
            as_vector(bad)


def test_validate_embedding_input():
    assert validate_embedding_input("hello") == "hello"
    with pytest.raises(EmbeddingError):
        validate_embedding_input("   ")
    with pytest.raises(EmbeddingError):
        validate_embedding_input("x" * 11, max_chars=10)


def test_ollama_embed(monkeypatch):
    captured = {}

    def fake_post(url, json, timeout):
        captured.update(url=url, json=json, timeout=timeout)
        return FakeResponse(payload={"embeddings": [[0.1, 0.2, 0.3]]})

    monkeypatch.setattr(embeddings.requests, "post", fake_post)

    vector = make_client(base_url="http://ollama:11434/").embed("Hello world")

    assert vector == [0.1, 0.2, 0.3]
    assert captured["url"] == "http://ollama:11434/api/embed"
    assert captured["json"] == {"model": "nomic-embed-text", "input": "Hello world"}
    assert captured["timeout"] == 2


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=500, text="boom"),
    FakeResponse(payload={"unexpected": True}),
    FakeResponse(payload={"embeddings": []}),
    FakeResponse(payload=None),
])
def test_ollama_bad_responses(monkeypatch, response):
    monkeypatch.setattr(embeddings.requests, "post", lambda *a, **kw: response)
    with pytest.raises(EmbeddingError):
        make_client().embed("Hello world")


@pytest.mark.parametrize("exc", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("refused"),
])
def test_ollama_transport_failures(monkeypatch, exc):
    def fake_post(*args, **kwargs):
        raise exc

    monkeypatch.setattr(embeddings.requests, "post", fake_post)
    with pytest.raises(EmbeddingError):
        make_client().embed("Hello world")


def test_ollama_rejects_oversized_text_without_calling(monkeypatch):
    def fake_post(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(embeddings.requests, "post", fake_post)
    with pytest.raises(EmbeddingError):
        make_client(max_chars=5).embed("too long for the limit")


def test_ollama_connection_check(monkeypatch):
    def fake_get(*args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(embeddings.requests, "get", fake_get)
    with pytest.raises(ConnectionError):
        OllamaEmbeddingClient()
