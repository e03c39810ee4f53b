"""
Answer Composer
---------------
Purpose: Turn a question plus recent conversation into a grounded answer
with ranked citations.

Workflow:
    1. Validate the question
    2. Embed it (no vector, no answer)
    3. Retrieve relevant chunks above the relevance threshold
    4. Build the system prompt (grounded or general knowledge)
    5. Append the last few history turns and the question
    6. Generate
    7. Cite the top matches
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from .embeddings import as_vector
from .errors import (
    EmbeddingUnavailableError,
    GenerationFailedError,
    InvalidInputError,
    InvalidQueryError,
)
from .llm import build_context_string, build_system_prompt
from .retriever import RetrievedMatch, Retriever

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 4
MAX_CITATIONS = 3
CITATION_PREVIEW_CHARS = 150
ELLIPSIS = "..."
ROLES = ("user", "assistant")


@dataclass
class ConversationTurn:
    role: str
    content: str


@dataclass
class Citation:
    text: str
    score: float
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChatResponse:
    response: str
    sources: List[Citation] = field(default_factory=list)
    context_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: {response, sources, contextUsed}"""
        return {
            "response": self.response,
            "sources": [c.to_dict() for c in self.sources],
            "contextUsed": self.context_used,
        }


TurnInput = Union[ConversationTurn, Dict[str, Any]]


def normalize_history(history: Optional[Sequence[TurnInput]]) -> List[Dict[str, str]]:
    """
    Convert caller history into chat messages.

    Raises:
        InvalidInputError: On a turn without a user/assistant role or
            without string content
    """
    messages = []
    for i, turn in enumerate(history or []):
        if isinstance(turn, ConversationTurn):
            role, content = turn.role, turn.content
        elif isinstance(turn, dict):
            role, content = turn.get("role"), turn.get("content")
        else:
            raise InvalidInputError(f"History entry {i} is not a conversation turn")

        if role not in ROLES:
            raise InvalidInputError(f"History entry {i} has invalid role: {role!r}")
        if not isinstance(content, str):
            raise InvalidInputError(f"History entry {i} has no text content")
        messages.append({"role": role, "content": content})
    return messages


def build_citation(match: RetrievedMatch, preview_chars: int = CITATION_PREVIEW_CHARS) -> Citation:
    return Citation(
        text=match.text[:preview_chars] + ELLIPSIS,
        score=round(match.score, 2),
        source=match.source or "Unknown"
    )


class AnswerComposer:
    """
    Stateless answering service.

    Args:
        embeddings: Object with embed(text) -> List[float]
        retriever: Retriever over the vector store
        llm: Object with generate(messages, max_tokens, temperature) -> str
        dimension: Expected query vector length (None skips the check)
    """

    def __init__(
        self,
        embeddings,
        retriever: Retriever,
        llm,
        dimension: Optional[int] = None,
        history_window: int = HISTORY_WINDOW,
        max_citations: int = MAX_CITATIONS,
        citation_preview_chars: int = CITATION_PREVIEW_CHARS,
        max_tokens: int = 512,
        temperature: float = 0.7
    ):
        self.embeddings = embeddings
        self.retriever = retriever
        self.llm = llm
        self.dimension = dimension
        self.history_window = history_window
        self.max_citations = max_citations
        self.citation_preview_chars = citation_preview_chars
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _embed_query(self, query_text: str) -> List[float]:
        try:
            vector = as_vector(self.embeddings.embed(query_text))
        except Exception as e:
            logger.error(f"Failed to generate embedding for user message: {e}")
            raise EmbeddingUnavailableError(
                f"Failed to generate embedding for user message: {e}"
            ) from e

        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingUnavailableError(
                f"Query embedding has {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector

    def build_messages(
        self,
        query_text: str,
        matches: List[RetrievedMatch],
        history: Optional[Sequence[TurnInput]] = None
    ) -> List[Dict[str, str]]:
        """System prompt + last `history_window` turns + the question."""
        context = build_context_string([m.text for m in matches])
        turns = normalize_history(history)
        kept = turns[-self.history_window:] if self.history_window > 0 else []

        return (
            [{"role": "system", "content": build_system_prompt(context)}]
            + kept
            + [{"role": "user", "content": query_text}]
        )

    def answer(
        self,
        query_text: str,
        history: Optional[Sequence[TurnInput]] = None
    ) -> ChatResponse:
        """
        Answer a question grounded in the indexed documents.

        Args:
            query_text: The user's message
            history: Earlier turns, oldest first; only the last few are sent

        Returns:
            ChatResponse with at most `max_citations` sources, best first

        Raises:
            InvalidQueryError: Empty or whitespace-only question
            InvalidInputError: Malformed history
            EmbeddingUnavailableError: The question could not be embedded
            VectorIndexError: The index query failed
            GenerationFailedError: The model call failed
        """
        if not isinstance(query_text, str) or not query_text.strip():
            raise InvalidQueryError("Message is required and must be non-empty")

        turns = normalize_history(history)
        logger.info(f"Processing chat message: {query_text[:100]}...")

        query_vector = self._embed_query(query_text)
        matches = self.retriever.retrieve(query_vector)
        messages = self.build_messages(query_text, matches, turns)

        try:
            response = self.llm.generate(
                messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except Exception as e:
            logger.error(f"Chat generation failed: {e}")
            raise GenerationFailedError(f"Failed to generate a response: {e}") from e

        sources = [
            build_citation(m, self.citation_preview_chars)
            for m in matches[:self.max_citations]
        ]

        return ChatResponse(
            response=response,
            sources=sources,
            context_used=len(matches) > 0
        )
