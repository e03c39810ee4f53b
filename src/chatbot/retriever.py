"""
Retriever
---------
Purpose: Nearest-neighbour lookup with a fixed relevance gate.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_SCORE_THRESHOLD = 0.3


@dataclass
class RetrievedMatch:
    """A retained match, valid for the duration of one answer."""
    text: str
    source: Optional[str]
    score: float


class Retriever:
    """Wraps a vector store's query() and drops low-similarity hits."""

    def __init__(
        self,
        vector_store,
        top_k: int = DEFAULT_TOP_K,
        score_threshold: float = DEFAULT_SCORE_THRESHOLD
    ):
        self.vector_store = vector_store
        self.top_k = top_k
        self.score_threshold = score_threshold

    def retrieve(
        self,
        query_vector: List[float],
        top_k: Optional[int] = None,
        score_threshold: Optional[float] = None
    ) -> List[RetrievedMatch]:
        """
        Find relevant chunks for a query vector.

        Args:
            query_vector: Embedded query
            top_k: Neighbours requested from the index
            score_threshold: Matches scoring at or below this are noise

        Returns:
            Matches scoring strictly above the threshold, best first.
            An empty list means no grounding context is available.

        Raises:
            VectorIndexError: If the index query fails
        """
        top_k = self.top_k if top_k is None else top_k
        threshold = self.score_threshold if score_threshold is None else score_threshold

        matches = self.vector_store.query(query_vector, top_k=top_k, with_metadata=True)
        logger.info(f"Found {len(matches)} potential matches")

        relevant = [
            RetrievedMatch(
                text=(m.metadata or {}).get("text") or "",
                source=(m.metadata or {}).get("source"),
                score=float(m.score)
            )
            for m in matches
            if m.score is not None and m.score > threshold
        ]
        # Stable: keeps the index's own order between equal scores
        relevant.sort(key=lambda r: r.score, reverse=True)

        logger.info(f"Using {len(relevant)} relevant matches for context")
        return relevant
