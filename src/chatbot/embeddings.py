"""
Embeddings module
----------------
Purpose: Convert text to vector embeddings using local Ollama or Sentence-Transformers

Every client exposes the embedding gateway contract:

    embed(text) -> List[float]        raises EmbeddingError
"""
import numbers
import requests
import numpy as np
from typing import List
import logging

from .errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 8000


def validate_embedding_input(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Reject empty or oversized text before calling a backend."""
    if not isinstance(text, str) or not text.strip():
        raise EmbeddingError("Cannot embed empty text")
    if len(text) > max_chars:
        raise EmbeddingError(
            f"Text too long to embed: {len(text)} chars (max {max_chars})"
        )
    return text


def as_vector(raw) -> List[float]:
    """
    Coerce a backend response into a flat list of floats.

    Raises:
        EmbeddingError: If the response is not a non-empty sequence of numbers
    """
    if isinstance(raw, np.ndarray):
        raw = raw.tolist()
    if not isinstance(raw, (list, tuple)) or not raw:
        raise EmbeddingError(f"Malformed embedding response: {type(raw).__name__}")
    if not all(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in raw):
        raise EmbeddingError("Malformed embedding response: non-numeric values")
    return [float(v) for v in raw]


class OllamaEmbeddingClient:
    """
    Client for Ollama embedding service

    Requires: ollama serve running on localhost:11434
    Model: nomic-embed-text (768 dimensions)
    """
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30,
        max_chars: int = DEFAULT_MAX_CHARS,
        check_connection: bool = True
    ):

        """
        Initialize the Ollama embedding client
        Args:
            base_url: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds
            max_chars: Longest text accepted by embed()
            check_connection: Ping the server on startup
        """

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_chars = max_chars

        if check_connection:
            self._test_connection()

    def _test_connection(self) -> None:
        """Test if Ollama is running."""
        try:
            response = requests.get(
                f"{self.base_url}/api/tags",
                timeout=5
            )
            if response.status_code != 200:
                raise ConnectionError(f"Ollama returned {response.status_code}")

            logger.info(f"✓ Connected to Ollama at {self.base_url}")
        except requests.exceptions.RequestException:
            raise ConnectionError(
                f"Cannot connect to Ollama at {self.base_url}. "
                "Start it with: ollama serve"
            )

    def embed(self, text: str) -> List[float]:
        """
        Get embedding for a single text.
        Args:
            text: Text to embed

        Returns:
            List of floats (768 dimensions for nomic-embed-text)

        Raises:
            EmbeddingError: On empty/oversized text, timeout, connection
                loss, HTTP error or unexpected response format
        """
        validate_embedding_input(text, self.max_chars)
        try:
            response = requests.post(
                f"{self.base_url}/api/embed",
                json={
                    "model": self.model,
                    "input": text
                },
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise EmbeddingError(
                f"Ollama request timed out after {self.timeout}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise EmbeddingError(
                f"Lost connection to Ollama at {self.base_url}: {e}"
            ) from e

        if response.status_code != 200:
            raise EmbeddingError(
                f"Ollama error {response.status_code}: {response.text}"
            )

        try:
            embedding = response.json()["embeddings"][0]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EmbeddingError(f"Unexpected Ollama response format: {e}") from e

        return as_vector(embedding)


class SentenceTransformerEmbeddingClient:
    """
    Client for Sentence-Transformers embeddings (local, free).

    No external service required - runs locally.
    Model: all-mpnet-base-v2 (768 dimensions)
    """

    def __init__(
        self,
        model_name: str = "all-mpnet-base-v2",
        max_chars: int = DEFAULT_MAX_CHARS
    ):
        """
        Initialize Sentence-Transformers embedding client.

        Args:
            model_name: HuggingFace model name
            max_chars: Longest text accepted by embed()

        Note: First initialization downloads the model (~400MB)
        """
        logger.info(f"Initializing Sentence-Transformers (model: {model_name})")
        self.max_chars = max_chars

        from sentence_transformers import SentenceTransformer
        try:
            self.model = SentenceTransformer(model_name)
            logger.info(f"✓ Loaded Sentence-Transformer model: {model_name}")
        except Exception as e:
            logger.error(f"Failed to load Sentence-Transformer model: {e}")
            raise

    def embed(self, text: str) -> List[float]:
        """
        Get embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            List of floats (768 dimensions for all-mpnet-base-v2)
        """
        validate_embedding_input(text, self.max_chars)
        try:
            embedding = self.model.encode(text, convert_to_numpy=True)
        except Exception as e:
            logger.error(f"Failed to embed text: {e}")
            raise EmbeddingError(f"Sentence-Transformers failed: {e}") from e
        return as_vector(embedding)


def cosine_similarity(vec_a: List[float], vec_b: List[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Similarity score from -1 to 1 (1 = identical), 0.0 if either is all zeros

    Example:
        >>> cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0, 0.0])
        1.0
    """
    a = np.asarray(vec_a, dtype=float)
    b = np.asarray(vec_b, dtype=float)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))
