"""Tests for the Groq client and prompt helpers."""
from types import SimpleNamespace

import pytest

from src.chatbot.errors import GenerationError
from src.chatbot.llm import (
    GENERAL_SYSTEM_PROMPT,
    GroqLLMClient,
    build_context_string,
    build_system_prompt,
)


class FakeCompletions:
    def __init__(self, content="Hello!", error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(completions):
    client = GroqLLMClient(api_key="test-key", model_name="llama-3.1-8b-instant")
    client.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return client


def test_generate_passes_messages_and_parameters():
    completions = FakeCompletions("We open at nine.")
    messages = [{"role": "system", "content": "be nice"}, {"role": "user", "content": "hi"}]

    answer = make_client(completions).generate(messages, max_tokens=64, temperature=0.2)

    assert answer == "We open at nine."
    assert completions.kwargs == {
        "model": "llama-3.1-8b-instant",
        "messages": messages,
        "max_tokens": 64,
        "temperature": 0.2,
    }


def test_generate_wraps_api_errors():
    with pytest.raises(GenerationError):
        make_client(FakeCompletions(error=RuntimeError("rate limited"))).generate([])


@pytest.mark.parametrize("content", [None, "", "   "])
def test_generate_rejects_empty_completion(content):
    with pytest.raises(GenerationError):
        make_client(FakeCompletions(content)).generate([{"role": "user", "content": "hi"}])


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(ValueError):
        GroqLLMClient(api_key=None)


def test_build_context_string():
    assert build_context_string(["Text 1", "Text 2"]) == "Text 1\n\nText 2"
    assert build_context_string([]) == ""


def test_build_system_prompt():
    grounded = build_system_prompt("Opening hours: 9-17 {weekdays}")
    assert "Context:\nOpening hours: 9-17 {weekdays}" in grounded
    assert build_system_prompt("") == GENERAL_SYSTEM_PROMPT
