"""
Chatbot Package
===============

Knowledge-base chatbot: paragraph chunking, embeddings, vector search and
grounded Groq answers with citations
"""

from .chunker import chunk_text, Chunk, chunk_documents
from .embeddings import (
    OllamaEmbeddingClient,
    SentenceTransformerEmbeddingClient,
    cosine_similarity,
)
from .vector_store import ChromaVectorStore, SimpleVectorStore, IndexedUnit, VectorMatch
from .llm import GroqLLMClient, build_context_string
from .ingestion import IngestionPipeline, IngestOutcome, SkipReason
from .retriever import Retriever, RetrievedMatch
from .composer import AnswerComposer, ChatResponse, Citation, ConversationTurn
from .registry import DocumentRegistry, DocumentSummary
from .config import RAGConfig
from .pipeline import RAGPipeline

__all__ = [
    # Chunking
    "chunk_text",
    "Chunk",
    "chunk_documents",
    # Embeddings
    "OllamaEmbeddingClient",
    "SentenceTransformerEmbeddingClient",
    "cosine_similarity",
    # Vector Store
    "ChromaVectorStore",
    "SimpleVectorStore",
    "IndexedUnit",
    "VectorMatch",
    # LLM
    "GroqLLMClient",
    "build_context_string",
    # Core
    "IngestionPipeline",
    "IngestOutcome",
    "SkipReason",
    "Retriever",
    "RetrievedMatch",
    "AnswerComposer",
    "ChatResponse",
    "Citation",
    "ConversationTurn",
    "DocumentRegistry",
    "DocumentSummary",
    # Pipeline
    "RAGPipeline",
    "RAGConfig",
]

__version__ = "1.0.0"
