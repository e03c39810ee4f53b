"""
Ingestion Pipeline
------------------
Purpose: Embed chunks and store the survivors in one batch.

Per-chunk failures are recorded and skipped; only an ingestion where nothing
survives is an error.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging
import secrets
import string
import time

from .chunker import Chunk
from .embeddings import as_vector
from .errors import (
    EmptyInputError,
    NoEmbeddingsGeneratedError,
)
from .vector_store import IndexedUnit

logger = logging.getLogger(__name__)

MIN_CONTENT_LEN = 10

_ID_ALPHABET = string.ascii_lowercase + string.digits

ChunkInput = Union[Chunk, str, Dict[str, Any]]


class SkipReason(str, Enum):
    TOO_SHORT = "TooShort"
    EMBEDDING_FAILED = "EmbeddingFailed"
    DIMENSION_MISMATCH = "DimensionMismatch"


@dataclass
class IngestOutcome:
    """Result of one ingestion."""
    embedded: int
    total: int
    skipped_reasons: Dict[int, SkipReason] = field(default_factory=dict)
    ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "embedded": self.embedded,
            "total": self.total,
            "skipped": {
                str(index): reason.value
                for index, reason in sorted(self.skipped_reasons.items())
            },
        }


def generate_unit_id(sequence: int) -> str:
    """doc-<epoch millis>-<sequence>-<6 random chars>"""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"doc-{millis}-{sequence}-{suffix}"


def _unpack(item: ChunkInput) -> Tuple[str, Optional[str]]:
    """Return (content, own source label) for any accepted chunk shape."""
    if isinstance(item, Chunk):
        return item.content, item.source_label
    if isinstance(item, str):
        return item, None
    if isinstance(item, dict):
        content = item.get("content")
        return (content if isinstance(content, str) else ""), item.get("source")
    return "", None


class IngestionPipeline:
    """
    Drives embedding gateway -> vector index for a batch of chunks.

    Args:
        embeddings: Object with embed(text) -> List[float]
        vector_store: Object with upsert(units)
        dimension: Vector length every stored unit must have
        min_content_length: Trimmed texts shorter than this are skipped
        max_workers: Concurrent embedding calls (1 = sequential)
    """

    def __init__(
        self,
        embeddings,
        vector_store,
        dimension: int,
        min_content_length: int = MIN_CONTENT_LEN,
        max_workers: int = 1
    ):
        self.embeddings = embeddings
        self.vector_store = vector_store
        self.dimension = dimension
        self.min_content_length = min_content_length
        self.max_workers = max(1, max_workers)

    def _embed_one(
        self,
        index: int,
        content: str
    ) -> Tuple[Optional[List[float]], Optional[SkipReason]]:
        try:
            vector = as_vector(self.embeddings.embed(content))
        except Exception as e:
            # EmbeddingError or any gateway crash counts against this chunk only
            logger.error(f"Error embedding chunk {index}: {e}")
            return None, SkipReason.EMBEDDING_FAILED

        if len(vector) != self.dimension:
            logger.error(
                f"Wrong embedding dimensions for chunk {index}: "
                f"expected {self.dimension}, got {len(vector)}"
            )
            return None, SkipReason.DIMENSION_MISMATCH

        return vector, None

    def _embed_all(self, jobs: List[Tuple[int, str]]) -> List[Tuple]:
        """Embed jobs, results in job order regardless of completion order."""
        if self.max_workers == 1 or len(jobs) <= 1:
            return [self._embed_one(index, content) for index, content in jobs]

        workers = min(self.max_workers, len(jobs))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._embed_one, index, content)
                for index, content in jobs
            ]
            return [future.result() for future in futures]

    def ingest(
        self,
        chunks: Sequence[ChunkInput],
        document_name: Optional[str] = None
    ) -> IngestOutcome:
        """
        Embed every chunk and upsert the survivors in a single batch.

        Args:
            chunks: Chunk objects, plain strings or {content, source} dicts
            document_name: Source recorded on every unit; falls back to each
                chunk's own label, then "unknown"

        Returns:
            IngestOutcome with embedded <= total and one skip reason per
            dropped chunk

        Raises:
            EmptyInputError: If no chunks were given
            NoEmbeddingsGeneratedError: If every chunk was skipped
            VectorIndexError: If the batch upsert fails
        """
        total = len(chunks)
        if total == 0:
            raise EmptyInputError("Invalid input. Expected at least one text.")

        label = document_name or "unknown file"
        logger.info(f"Processing {total} chunks from {label}...")

        skipped: Dict[int, SkipReason] = {}
        jobs: List[Tuple[int, str]] = []
        sources: Dict[int, str] = {}

        for index, item in enumerate(chunks):
            content, own_source = _unpack(item)
            content = content.strip()
            if len(content) < self.min_content_length:
                logger.info(f"Skipping chunk {index}: too short")
                skipped[index] = SkipReason.TOO_SHORT
                continue
            jobs.append((index, content))
            sources[index] = document_name or own_source or "unknown"

        units: List[IndexedUnit] = []
        for (index, content), (vector, reason) in zip(jobs, self._embed_all(jobs)):
            if reason is not None:
                skipped[index] = reason
                continue
            units.append(IndexedUnit(
                id=generate_unit_id(index),
                vector=vector,
                metadata={
                    "text": content,
                    "source": sources[index],
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "length": len(content),
                }
            ))

        outcome = IngestOutcome(
            embedded=len(units),
            total=total,
            skipped_reasons=skipped,
            ids=[u.id for u in units]
        )

        if not units:
            logger.warning(f"No valid embeddings were generated for {label}")
            raise NoEmbeddingsGeneratedError(
                "No valid embeddings were generated", outcome
            )

        logger.info(f"Storing {len(units)} vectors...")
        self.vector_store.upsert(units)

        logger.info(f"✓ Embedded {outcome.embedded}/{outcome.total} chunks from {label}")
        return outcome
