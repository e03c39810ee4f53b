"""Tests for relevance-filtered retrieval."""
import pytest

from src.chatbot.errors import VectorIndexError
from src.chatbot.retriever import Retriever
from src.chatbot.vector_store import VectorMatch


class FixedIndex:
    def __init__(self, matches=None, error=None):
        self.matches = matches or []
        self.error = error
        self.queries = []

    def query(self, vector, top_k=5, with_metadata=True):
        self.queries.append({"vector": vector, "top_k": top_k, "with_metadata": with_metadata})
        if self.error:
            raise self.error
        return self.matches[:top_k]


def match(unit_id, score, text=None, source="kb.txt"):
    return VectorMatch(id=unit_id, score=score, metadata={"text": text or unit_id, "source": source})


def test_threshold_is_exclusive():
    index = FixedIndex([match("a", 0.9), match("b", 0.31), match("c", 0.3), match("d", 0.1)])
    results = Retriever(index).retrieve([1.0, 0.0])

    assert [r.text for r in results] == ["a", "b"]
    assert all(r.score > 0.3 for r in results)


def test_defaults_and_metadata_requested():
    index = FixedIndex()
    Retriever(index).retrieve([0.5])

    assert index.queries == [{"vector": [0.5], "top_k": 5, "with_metadata": True}]


def test_overrides():
    index = FixedIndex([match("a", 0.5), match("b", 0.4), match("c", 0.35)])
    results = Retriever(index).retrieve([1.0], top_k=2, score_threshold=0.45)

    assert index.queries[0]["top_k"] == 2
    assert [r.text for r in results] == ["a"]


def test_keeps_ranking_and_tie_order():
    index = FixedIndex([match("a", 0.8), match("b", 0.8), match("c", 0.6)])
    results = Retriever(index).retrieve([1.0])
    assert [r.text for r in results] == ["a", "b", "c"]


def test_empty_result_is_valid():
    results = Retriever(FixedIndex([match("low", 0.25)])).retrieve([1.0])
    assert results == []


def test_missing_metadata():
    index = FixedIndex([VectorMatch(id="x", score=0.9, metadata={})])
    result = Retriever(index).retrieve([1.0])[0]
    assert result.text == ""
    assert result.source is None


def test_index_failure_propagates():
    with pytest.raises(VectorIndexError):
        Retriever(FixedIndex(error=VectorIndexError("down"))).retrieve([1.0])
