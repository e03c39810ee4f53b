"""
Document Registry
-----------------
Purpose: Read/delete view over the indexed units.

There is no separate document store: summaries are projected straight from
the vector index. Listing is a bounded snapshot (at most `limit` units), not
a complete enumeration.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

LIST_LIMIT = 100
PREVIEW_CHARS = 200


@dataclass
class DocumentSummary:
    id: str
    source: Optional[str]
    text: str
    timestamp: Optional[str]
    length: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DocumentRegistry:

    def __init__(self, vector_store, preview_chars: int = PREVIEW_CHARS):
        self.vector_store = vector_store
        self.preview_chars = preview_chars

    def list_documents(self, limit: int = LIST_LIMIT) -> List[DocumentSummary]:
        """Summaries of up to `limit` stored units."""
        units = self.vector_store.list_units(limit)
        documents = []
        for unit in units:
            metadata = unit.metadata or {}
            documents.append(DocumentSummary(
                id=unit.id,
                source=metadata.get("source"),
                text=(metadata.get("text") or "")[:self.preview_chars] + "...",
                timestamp=metadata.get("timestamp"),
                length=metadata.get("length")
            ))
        logger.debug(f"Listed {len(documents)} documents")
        return documents

    def delete_document(self, unit_id: str) -> bool:
        """
        Delete one indexed unit.

        Returns:
            True if a unit was removed, False if the id was unknown.
            Deleting twice is never an error.
        """
        removed = self.vector_store.delete(unit_id)
        if removed:
            logger.info(f"Document {unit_id} deleted successfully")
        else:
            logger.info(f"Document {unit_id} not found, nothing deleted")
        return removed
