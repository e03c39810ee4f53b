from fastapi import FastAPI, File, UploadFile, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import logging
import os
from typing import List, Optional, Union
from datetime import datetime, timezone

from src.chatbot import RAGPipeline, RAGConfig
from src.chatbot.config import load_env
from src.chatbot.errors import (
    ChatbotError,
    DependencyFailure,
    InvalidInputError,
    NoEmbeddingsGeneratedError,
    NoViableContentError,
)
from src.chatbot.loaders import decode_upload

# ==================== Setup ====================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Knowledge Base Chatbot",
    description="Grounded chat over uploaded documents",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(","),
    allow_methods=["POST", "GET", "OPTIONS", "DELETE"],
    allow_headers=["Content-Type"],
)

# Global pipeline instance
pipeline: Optional[RAGPipeline] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_pipeline() -> RAGPipeline:
    if not pipeline:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return pipeline


# ==================== Pydantic Models ====================

class TextItem(BaseModel):
    """A pre-split chunk with its own source label."""
    content: str
    source: Optional[str] = None


class EmbedRequest(BaseModel):
    """Request body for embed endpoint."""
    texts: List[Union[str, TextItem]]
    filename: Optional[str] = None


class Turn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Request body for chat endpoint."""
    message: str
    context: List[Turn] = []


# ==================== Startup/Shutdown ====================

@app.on_event("startup")
async def startup_event():
    """Initialize pipeline on startup."""
    global pipeline

    logger.info("=" * 60)
    logger.info("Starting Knowledge Base Chatbot API")
    logger.info("=" * 60)

    try:
        load_env()
        config = RAGConfig()
        pipeline = RAGPipeline(config=config)

        logger.info("✓ Pipeline initialized successfully")
        logger.info(f"✓ Embedding backend: {config.embedding_backend}")
        logger.info(f"✓ Vector backend: {config.vector_backend}")
    except Exception as e:
        logger.error(f"Failed to initialize pipeline: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Knowledge Base Chatbot API")


# ==================== Health & Status ====================

@app.get("/")
def root():
    """Service banner."""
    return {
        "message": "Chatbot AI service is running!",
        "timestamp": _now(),
        "version": VERSION
    }


@app.get("/health")
def health_check():
    """Check system health."""
    status = get_pipeline().health()
    status["timestamp"] = _now()
    return status


@app.get("/stats")
def get_stats():
    """Get pipeline statistics."""
    stats = get_pipeline().get_stats()
    return {
        "total_chunks": stats["total_chunks"],
        "config": stats["config"],
        "timestamp": _now()
    }


# ==================== Ingestion Endpoints ====================

def _ingest_response(outcome, filename: Optional[str]) -> dict:
    body = outcome.to_dict()
    body["success"] = True
    body["message"] = (
        f"Successfully embedded {outcome.embedded} out of {outcome.total} "
        f"documents from {filename or 'uploaded file'}"
    )
    return body


@app.post("/embed")
def embed(request: EmbedRequest):
    """
    Embed pre-split texts and store them.

    Example:
        curl -X POST "http://localhost:8000/embed" \
          -H "Content-Type: application/json" \
          -d '{"texts": ["First paragraph...", "Second paragraph..."], "filename": "faq.txt"}'
    """
    texts = [t if isinstance(t, str) else t.model_dump() for t in request.texts]
    outcome = get_pipeline().ingest_texts(texts, request.filename)
    return _ingest_response(outcome, request.filename)


@app.post("/upload")
async def upload(file: UploadFile = File(...)):
    """
    Upload a .txt, .md or .pdf file, split it into paragraphs and embed them.

    Example:
        curl -X POST "http://localhost:8000/upload" -F "file=@faq.txt"
    """
    rag = get_pipeline()
    data = await file.read()
    text = decode_upload(file.filename, data, rag.config.max_upload_bytes)

    logger.info(f"Processing upload: {file.filename}")
    outcome = await run_in_threadpool(rag.ingest_document, file.filename, text)
    return _ingest_response(outcome, file.filename)


# ==================== Chat Endpoint ====================

@app.post("/chat")
def chat(request: ChatRequest):
    """
    Answer a message using the knowledge base and recent conversation.

    Example:
        curl -X POST "http://localhost:8000/chat" \
          -H "Content-Type: application/json" \
          -d '{"message": "What are your opening hours?", "context": []}'
    """
    history = [turn.model_dump() for turn in request.context]
    result = get_pipeline().answer(request.message, history)
    return result.to_dict()


# ==================== Document Management ====================

@app.get("/documents")
def list_documents(limit: int = Query(100, ge=1, le=1000)):
    """List a snapshot of indexed chunks (at most `limit`)."""
    documents = [d.to_dict() for d in get_pipeline().list_documents(limit)]
    return {
        "success": True,
        "documents": documents,
        "total": len(documents)
    }


@app.delete("/documents/{doc_id}")
def delete_document(doc_id: str):
    """Delete one indexed chunk; deleting an unknown id is a no-op."""
    deleted = get_pipeline().delete_document(doc_id)
    message = (
        f"Document {doc_id} deleted successfully" if deleted
        else f"Document {doc_id} not found, nothing deleted"
    )
    return {
        "success": True,
        "deleted": deleted,
        "message": message
    }


# ==================== Error Handlers ====================

def _error_response(status_code: int, error: str, details: Optional[str] = None, **extra):
    content = {
        "error": error,
        "status": "error",
        "timestamp": _now()
    }
    if details:
        content["details"] = details
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions."""
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(NoEmbeddingsGeneratedError)
async def no_embeddings_handler(request, exc):
    outcome = exc.outcome.to_dict() if exc.outcome else {}
    return _error_response(
        400,
        "No valid embeddings were generated",
        processed=0,
        total=outcome.get("total", 0),
        skipped=outcome.get("skipped", {})
    )


@app.exception_handler(ChatbotError)
async def chatbot_exception_handler(request, exc):
    """Map core failures to HTTP status codes."""
    if isinstance(exc, (InvalidInputError, NoViableContentError)):
        return _error_response(400, str(exc))
    if isinstance(exc, DependencyFailure):
        logger.error(f"Dependency failure: {exc}")
        return _error_response(502, "Upstream service failed", str(exc))
    logger.error(f"Core failure: {exc}")
    return _error_response(500, "Request failed", str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    return _error_response(500, "Internal server error")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
