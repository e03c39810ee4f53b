"""
Config module
-------------
Purpose: Pipeline settings with environment overrides.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Contract dimension of bge-base / all-mpnet-base-v2 / nomic-embed-text
DEFAULT_EMBEDDING_DIMENSION = 768


def load_env() -> Optional[str]:
    """Load environment variables from project root .env file."""
    env_paths = [
        os.path.join(os.path.dirname(__file__), '../..', '.env'),
        os.path.join(os.path.dirname(__file__), '.env'),
    ]

    for env_path in env_paths:
        if os.path.exists(env_path):
            load_dotenv(env_path)
            logger.debug(f"Loaded .env from: {env_path}")
            return env_path

    logger.debug("No .env file found")
    return None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass
class RAGConfig:
    """Configuration for RAG pipeline.

    Fields left as None are filled from the environment in __post_init__.
    """
    # Chunking / ingestion
    min_chunk_length: int = 20
    min_content_length: int = 10
    embedding_dimension: Optional[int] = None
    embedding_workers: Optional[int] = None

    # Retrieval / answering
    top_k: Optional[int] = None
    score_threshold: Optional[float] = None
    history_window: Optional[int] = None
    max_citations: int = 3
    citation_preview_chars: int = 150
    max_tokens: int = 512
    temperature: float = 0.7

    # Registry
    list_limit: int = 100
    listing_preview_chars: int = 200

    # Collaborators
    embedding_backend: Optional[str] = None
    embedding_model: Optional[str] = None
    ollama_base_url: Optional[str] = None
    max_embedding_chars: int = 8000
    vector_backend: Optional[str] = None
    chroma_persist_directory: Optional[str] = None
    collection_name: Optional[str] = None
    groq_api_key: Optional[str] = None
    groq_model: Optional[str] = None
    request_timeout: Optional[float] = None

    # Uploads
    max_upload_bytes: int = 5 * 1024 * 1024

    def __post_init__(self):
        """Fill unset fields from environment variables."""
        if self.embedding_dimension is None:
            self.embedding_dimension = _env_int(
                "EMBEDDING_DIMENSION", DEFAULT_EMBEDDING_DIMENSION
            )
        if self.embedding_workers is None:
            self.embedding_workers = _env_int("RAG_EMBEDDING_WORKERS", 1)
        if self.top_k is None:
            self.top_k = _env_int("RAG_TOP_K", 5)
        if self.score_threshold is None:
            self.score_threshold = _env_float("RAG_SCORE_THRESHOLD", 0.3)
        if self.history_window is None:
            self.history_window = _env_int("RAG_HISTORY_WINDOW", 4)
        if self.request_timeout is None:
            self.request_timeout = _env_float("RAG_REQUEST_TIMEOUT", 30.0)

        if self.embedding_backend is None:
            self.embedding_backend = os.getenv(
                "EMBEDDING_BACKEND", "sentence-transformers"
            )
        self.embedding_backend = self.embedding_backend.lower()
        if self.embedding_model is None:
            self.embedding_model = os.getenv("EMBEDDING_MODEL")
        if self.ollama_base_url is None:
            self.ollama_base_url = os.getenv(
                "OLLAMA_BASE_URL", "http://localhost:11434"
            )

        if self.vector_backend is None:
            self.vector_backend = os.getenv("VECTOR_BACKEND", "chroma")
        self.vector_backend = self.vector_backend.lower()
        if self.chroma_persist_directory is None:
            self.chroma_persist_directory = os.getenv(
                "CHROMA_PERSIST_DIR", ".chromadb"
            )
        if self.collection_name is None:
            self.collection_name = os.getenv("CHROMA_COLLECTION", "knowledge_base")

        if self.groq_api_key is None:
            self.groq_api_key = os.getenv("GROQ_API_KEY")
        if self.groq_model is None:
            self.groq_model = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

        if self.embedding_dimension <= 0:
            raise ValueError("embedding_dimension must be positive")
        if self.top_k <= 0:
            raise ValueError("top_k must be positive")
        if self.history_window < 0:
            raise ValueError("history_window must not be negative")
        if self.embedding_workers < 1:
            raise ValueError("embedding_workers must be at least 1")

    def public_dict(self) -> Dict[str, Any]:
        """Settings safe to expose (no secrets)."""
        data = asdict(self)
        data.pop("groq_api_key", None)
        return data
