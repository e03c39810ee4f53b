"""
Chunker module
--------------
Purpose: Split document text into paragraph chunks.
"""

from typing import List, Dict
from dataclasses import dataclass
import re

from .errors import EmptyInputError

MIN_CHUNK_LEN = 20

# A blank line (optionally holding only whitespace) separates paragraphs
_PARAGRAPH_BREAK = re.compile(r"\r?\n[ \t]*\r?\n")


@dataclass
class Chunk:
    content: str
    source_label: str


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines and trim every candidate."""
    return [part.strip() for part in _PARAGRAPH_BREAK.split(text or "")]


def chunk_text(
    text: str,
    document_name: str,
    min_length: int = MIN_CHUNK_LEN
) -> List[Chunk]:
    """
    Split text into paragraph chunks.

    Args:
        text (str): Raw document text.
        document_name (str): Name used in every chunk's source label.
        min_length (int): Trimmed paragraphs shorter than this are dropped.

    Returns:
        List[Chunk]: Chunks in order of appearance, labelled
        "<document_name> (chunk <n>)" with n counting surviving chunks.

    Raises:
        EmptyInputError: If no paragraph survives filtering.
    """
    paragraphs = [p for p in split_paragraphs(text) if len(p) >= min_length]

    if not paragraphs:
        raise EmptyInputError(f"No valid content found in {document_name}")

    return [
        Chunk(content=paragraph, source_label=f"{document_name} (chunk {n})")
        for n, paragraph in enumerate(paragraphs, 1)
    ]


def chunk_documents(
    documents: Dict[str, str],
    min_length: int = MIN_CHUNK_LEN
) -> Dict[str, List[Chunk]]:
    """
    Chunk multiple documents.

    Args:
        documents: Dict of {document_name: text}
        min_length: Minimum paragraph length

    Returns:
        Dict of {document_name: [chunks]}

    Example:
        >>> docs = {"faq.txt": "A paragraph that is long enough to keep."}
        >>> chunked = chunk_documents(docs)
        >>> chunked["faq.txt"][0].source_label
        'faq.txt (chunk 1)'
    """
    return {
        name: chunk_text(text, name, min_length)
        for name, text in documents.items()
    }
