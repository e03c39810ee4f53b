"""
RAG Pipeline
------------
Purpose: Wire configured collaborators into the chatbot components.

The pipeline holds handles only; the vector index is the sole durable state.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

from .chunker import chunk_text
from .composer import AnswerComposer, ChatResponse, TurnInput
from .config import RAGConfig, load_env
from .errors import ChatbotError
from .ingestion import ChunkInput, IngestionPipeline, IngestOutcome
from .loaders import load_document, load_folder
from .registry import DocumentRegistry, DocumentSummary
from .retriever import Retriever

logger = logging.getLogger(__name__)


def get_embeddings_client(config: RAGConfig):
    """
    Get embeddings client based on config.embedding_backend.

    Backends:
        "ollama": OllamaEmbeddingClient at config.ollama_base_url
        "sentence-transformers" (default): local SentenceTransformer model
    """
    if config.embedding_backend == "ollama":
        logger.info("Using Ollama embeddings")
        from .embeddings import OllamaEmbeddingClient
        return OllamaEmbeddingClient(
            base_url=config.ollama_base_url,
            model=config.embedding_model or "nomic-embed-text",
            timeout=config.request_timeout,
            max_chars=config.max_embedding_chars
        )
    if config.embedding_backend == "sentence-transformers":
        logger.info("Using Sentence-Transformers embeddings (local)")
        from .embeddings import SentenceTransformerEmbeddingClient
        return SentenceTransformerEmbeddingClient(
            model_name=config.embedding_model or "all-mpnet-base-v2",
            max_chars=config.max_embedding_chars
        )
    raise ValueError(f"Unknown EMBEDDING_BACKEND: {config.embedding_backend}")


def get_vector_store(config: RAGConfig):
    """Get vector store based on config.vector_backend ("chroma" or "memory")."""
    from .vector_store import ChromaVectorStore, SimpleVectorStore

    if config.vector_backend == "memory":
        logger.info("Using in-memory vector store")
        return SimpleVectorStore(dimension=config.embedding_dimension)
    if config.vector_backend == "chroma":
        return ChromaVectorStore(
            persist_directory=config.chroma_persist_directory,
            collection_name=config.collection_name,
            dimension=config.embedding_dimension
        )
    raise ValueError(f"Unknown VECTOR_BACKEND: {config.vector_backend}")


def get_llm_client(config: RAGConfig):
    """Get the Groq client; needs GROQ_API_KEY."""
    from .llm import GroqLLMClient

    if not config.groq_api_key:
        raise ValueError(
            "GROQ_API_KEY not provided. Pass it in RAGConfig or set GROQ_API_KEY environment variable."
        )
    return GroqLLMClient(
        api_key=config.groq_api_key,
        model_name=config.groq_model,
        timeout=config.request_timeout
    )


class RAGPipeline:
    """
    End-to-end RAG pipeline.

    Workflow:
        1. Initialize: Create components
        2. Ingest: Chunk and embed documents
        3. Answer: Retrieve, ground and generate
    """
    def __init__(
        self,
        config: RAGConfig = None,
        embeddings=None,
        llm=None,
        vector_store=None
    ):
        """
        Initialize RAG pipeline with all components.

        Args:
            config: RAGConfig object with settings
            embeddings: Optional embeddings client (for dependency injection)
            llm: Optional LLM client; built on first answer() if omitted
            vector_store: Optional vector store (for dependency injection)
        """
        if config is None:
            load_env()
            config = RAGConfig()
        self.config = config
        logger.info("Initializing RAG Pipeline...")

        if embeddings:
            self.embeddings = embeddings
            logger.info("✓ Using provided embeddings client")
        else:
            try:
                self.embeddings = get_embeddings_client(self.config)
                logger.info("✓ Embeddings client ready")
            except Exception as e:
                logger.error(f"Failed to initialize embeddings: {e}")
                raise

        self._llm = llm
        if llm:
            logger.info("✓ Using provided LLM client")

        self.vector_store = vector_store if vector_store is not None else get_vector_store(self.config)
        logger.info("✓ Vector store ready")

        self.ingestion = IngestionPipeline(
            self.embeddings,
            self.vector_store,
            dimension=self.config.embedding_dimension,
            min_content_length=self.config.min_content_length,
            max_workers=self.config.embedding_workers
        )
        self.retriever = Retriever(
            self.vector_store,
            top_k=self.config.top_k,
            score_threshold=self.config.score_threshold
        )
        self.registry = DocumentRegistry(
            self.vector_store,
            preview_chars=self.config.listing_preview_chars
        )
        self._composer: Optional[AnswerComposer] = None

        logger.info("✓ RAG Pipeline initialized")

    @property
    def llm(self):
        if self._llm is None:
            try:
                self._llm = get_llm_client(self.config)
                logger.info("✓ LLM client ready")
            except Exception as e:
                logger.error(f"Failed to initialize LLM: {e}")
                raise
        return self._llm

    @property
    def composer(self) -> AnswerComposer:
        if self._composer is None:
            self._composer = AnswerComposer(
                self.embeddings,
                self.retriever,
                self.llm,
                dimension=self.config.embedding_dimension,
                history_window=self.config.history_window,
                max_citations=self.config.max_citations,
                citation_preview_chars=self.config.citation_preview_chars,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature
            )
        return self._composer

    # ==================== Ingestion ====================

    def ingest_document(self, name: str, text: str) -> IngestOutcome:
        """
        Chunk a document on blank lines and ingest every chunk.

        Example:
            >>> outcome = pipeline.ingest_document("faq.txt", open("faq.txt").read())
            >>> print(f"Embedded {outcome.embedded}/{outcome.total} chunks")
        """
        logger.info(f"Ingesting document: {name}")
        chunks = chunk_text(text, name, self.config.min_chunk_length)
        logger.info(f"✓ Split {name} into {len(chunks)} chunks")
        return self.ingestion.ingest(chunks, name)

    def ingest_texts(
        self,
        texts: Sequence[ChunkInput],
        filename: Optional[str] = None
    ) -> IngestOutcome:
        """Ingest pre-split texts (strings or {content, source} dicts)."""
        return self.ingestion.ingest(list(texts), filename)

    def ingest_file(self, path: str) -> IngestOutcome:
        """Load a .txt / .md / .pdf file and ingest it."""
        name, text = load_document(path, self.config.max_upload_bytes)
        return self.ingest_document(name, text)

    def ingest_folder(self, folder_path: str) -> Dict[str, IngestOutcome]:
        """
        Ingest every text document in a folder.

        A document that fails is logged and left out of the result; the
        remaining documents are still ingested.
        """
        documents = load_folder(folder_path, max_bytes=self.config.max_upload_bytes)

        results = {}
        for name, text in documents.items():
            try:
                results[name] = self.ingest_document(name, text)
            except ChatbotError as e:
                logger.error(f"Failed to ingest {name}: {e}")
        return results

    # ==================== Answering ====================

    def answer(
        self,
        query: str,
        history: Optional[Sequence[TurnInput]] = None
    ) -> ChatResponse:
        """Answer a question with citations (see AnswerComposer.answer)."""
        return self.composer.answer(query, history)

    # ==================== Registry ====================

    def list_documents(self, limit: Optional[int] = None) -> List[DocumentSummary]:
        return self.registry.list_documents(limit or self.config.list_limit)

    def delete_document(self, unit_id: str) -> bool:
        return self.registry.delete_document(unit_id)

    # ==================== Status ====================

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        return {
            "total_chunks": self.vector_store.size(),
            "config": {
                "top_k": self.config.top_k,
                "score_threshold": self.config.score_threshold,
                "history_window": self.config.history_window,
                "min_chunk_length": self.config.min_chunk_length,
                "embedding_dimension": self.config.embedding_dimension,
                "embedding_backend": self.config.embedding_backend,
                "vector_backend": self.config.vector_backend,
            }
        }

    def health(self) -> Dict[str, Any]:
        """Check each collaborator without calling the models."""
        try:
            chunks = self.vector_store.size()
            index_ok = True
        except ChatbotError as e:
            logger.error(f"Vector store health check failed: {e}")
            chunks = None
            index_ok = False

        llm_ok = self._llm is not None or bool(self.config.groq_api_key)

        return {
            "status": "healthy" if index_ok and llm_ok else "degraded",
            "embedding_backend": self.config.embedding_backend,
            "vector_backend": self.config.vector_backend,
            "llm": "✓" if llm_ok else "✗",
            "chunks": chunks,
        }
