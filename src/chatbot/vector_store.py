"""
Vector Store Module
===================

Purpose: Store embeddings and retrieve similar ones

Two interchangeable stores implement the vector index contract:

  • ChromaVectorStore  - persistent, on-disk (production)
  • SimpleVectorStore  - in-memory numpy cosine search (tests, local dev)

Contract:
  • upsert(units)                          one batch per call
  • query(vector, top_k, with_metadata)    ranked matches, best first
  • delete(unit_id) -> bool                idempotent
  • list_units(limit)                      bounded, non-selective listing
  • size() / clear()

Every failure of the backing store is raised as VectorIndexError.
"""

from typing import List, Dict, Any, Optional, Sequence
from dataclasses import dataclass, field
import logging
import os
import threading

import chromadb

from .embeddings import cosine_similarity
from .errors import DimensionMismatchError, VectorIndexError

logger = logging.getLogger(__name__)


@dataclass
class IndexedUnit:
    """A persisted retrievable record."""
    id: str
    vector: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    """A single hit returned by the index."""
    id: str
    score: Optional[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


def check_dimensions(units: Sequence[IndexedUnit], dimension: Optional[int]) -> None:
    """Refuse the whole batch if any vector has the wrong length."""
    if dimension is None:
        return
    for unit in units:
        if len(unit.vector) != dimension:
            raise DimensionMismatchError(dimension, len(unit.vector))


class ChromaVectorStore:
    """
    Vector store using Chroma (persistent, free, production-ready).

    Units are stored with their metadata only; the chunk text lives in
    metadata["text"] so a listing never needs the documents column.
    """

    def __init__(
        self,
        persist_directory: str = ".chromadb",
        collection_name: str = "knowledge_base",
        dimension: Optional[int] = None,
        client=None
    ):
        """
        Initialize Chroma vector store.

        Args:
            persist_directory: Where to store vectors on disk
            collection_name: Name of the collection (namespace)
            dimension: Expected vector length, enforced on upsert
            client: Pre-built Chroma client (e.g. chromadb.EphemeralClient())

        Example:
            >>> store = ChromaVectorStore(persist_directory="./data/vectors")
        """
        self.persist_directory = persist_directory
        self.collection_name = collection_name
        self.dimension = dimension

        try:
            if client is None:
                os.makedirs(persist_directory, exist_ok=True)
                client = chromadb.PersistentClient(path=persist_directory)
            self.client = client

            self.collection = self.client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"}
            )

            logger.info(
                f"✓ Initialized Chroma vector store at {persist_directory} "
                f"(collection: {collection_name})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Chroma: {e}")
            raise VectorIndexError(f"Failed to initialize Chroma: {e}") from e

    def upsert(self, units: Sequence[IndexedUnit]) -> None:
        """
        Write a batch of units in a single Chroma call.

        Raises:
            DimensionMismatchError: If any vector has the wrong length
            VectorIndexError: If Chroma rejects the batch
        """
        if not units:
            return
        check_dimensions(units, self.dimension)

        try:
            self.collection.upsert(
                ids=[u.id for u in units],
                embeddings=[list(u.vector) for u in units],
                metadatas=[dict(u.metadata) for u in units]
            )
            logger.debug(f"Upserted {len(units)} units")
        except Exception as e:
            logger.error(f"Failed to upsert {len(units)} units: {e}")
            raise VectorIndexError(f"Upsert failed: {e}") from e

    def query(
        self,
        vector: List[float],
        top_k: int = 5,
        with_metadata: bool = True
    ) -> List[VectorMatch]:
        """
        Find most similar units to a vector.

        Returns:
            List of VectorMatch, sorted by similarity (highest first).
            Chroma returns cosine distances; score is 1 - distance.
        """
        try:
            count = self.collection.count()
            if count == 0:
                logger.warning("Vector store is empty")
                return []

            include = ["distances", "metadatas"] if with_metadata else ["distances"]
            results = self.collection.query(
                query_embeddings=[list(vector)],
                n_results=min(top_k, count),
                include=include
            )
        except Exception as e:
            logger.error(f"Query failed: {e}")
            raise VectorIndexError(f"Query failed: {e}") from e

        if not results["ids"] or not results["ids"][0]:
            logger.debug("No results found for query")
            return []

        metadatas = (results.get("metadatas") or [[]])[0] or []
        matches = []
        for i, unit_id in enumerate(results["ids"][0]):
            distance = results["distances"][0][i]
            metadata = metadatas[i] if with_metadata and i < len(metadatas) else {}
            matches.append(VectorMatch(
                id=unit_id,
                score=1 - distance,
                metadata=dict(metadata or {})
            ))

        logger.debug(f"Retrieved {len(matches)} matches")
        return matches

    def list_units(self, limit: int = 100) -> List[VectorMatch]:
        """Return up to `limit` stored units (no ordering guarantee)."""
        try:
            data = self.collection.get(limit=limit, include=["metadatas"])
        except Exception as e:
            logger.error(f"Listing failed: {e}")
            raise VectorIndexError(f"Listing failed: {e}") from e

        metadatas = data.get("metadatas") or []
        return [
            VectorMatch(
                id=unit_id,
                score=None,
                metadata=dict(metadatas[i] or {}) if i < len(metadatas) else {}
            )
            for i, unit_id in enumerate(data["ids"])
        ]

    def delete(self, unit_id: str) -> bool:
        """
        Delete a unit from the store.

        Returns:
            True if deleted, False if it did not exist
        """
        try:
            existing = self.collection.get(ids=[unit_id], include=["metadatas"])
            if not existing["ids"]:
                logger.debug(f"Delete no-op, unknown unit {unit_id}")
                return False
            self.collection.delete(ids=[unit_id])
            logger.debug(f"Deleted unit {unit_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete unit {unit_id}: {e}")
            raise VectorIndexError(f"Delete failed: {e}") from e

    def size(self) -> int:
        """Return number of units in store."""
        try:
            return self.collection.count()
        except Exception as e:
            logger.error(f"Failed to get store size: {e}")
            raise VectorIndexError(f"Count failed: {e}") from e

    def clear(self) -> None:
        """Clear all vectors from store."""
        try:
            all_data = self.collection.get(include=["metadatas"])
            if all_data["ids"]:
                self.collection.delete(ids=all_data["ids"])
            logger.info("Cleared vector store")
        except Exception as e:
            logger.error(f"Failed to clear store: {e}")
            raise VectorIndexError(f"Clear failed: {e}") from e


class SimpleVectorStore:
    """
    In-memory vector store with brute-force cosine search.

    Nothing survives the process; meant for tests and local experiments.
    """

    def __init__(self, dimension: Optional[int] = None):
        self.dimension = dimension
        self._units: Dict[str, IndexedUnit] = {}
        self._lock = threading.Lock()

    def upsert(self, units: Sequence[IndexedUnit]) -> None:
        if not units:
            return
        check_dimensions(units, self.dimension)
        with self._lock:
            for unit in units:
                self._units[unit.id] = IndexedUnit(
                    id=unit.id,
                    vector=list(unit.vector),
                    metadata=dict(unit.metadata)
                )

    def query(
        self,
        vector: List[float],
        top_k: int = 5,
        with_metadata: bool = True
    ) -> List[VectorMatch]:
        with self._lock:
            units = list(self._units.values())

        scored = [(cosine_similarity(vector, u.vector), u) for u in units]
        # sorted() is stable: equal scores keep insertion order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)[:top_k]

        return [
            VectorMatch(
                id=u.id,
                score=score,
                metadata=dict(u.metadata) if with_metadata else {}
            )
            for score, u in scored
        ]

    def list_units(self, limit: int = 100) -> List[VectorMatch]:
        with self._lock:
            units = list(self._units.values())[:limit]
        return [VectorMatch(id=u.id, score=None, metadata=dict(u.metadata)) for u in units]

    def delete(self, unit_id: str) -> bool:
        with self._lock:
            return self._units.pop(unit_id, None) is not None

    def size(self) -> int:
        return len(self._units)

    def clear(self) -> None:
        with self._lock:
            self._units.clear()
        logger.info("Cleared vector store")
