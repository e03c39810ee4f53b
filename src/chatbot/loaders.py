"""
Document Loaders
----------------
Purpose: Turn text / markdown / PDF files into raw document text.

PDF pages are joined with a blank line so that every page starts a new
paragraph for the chunker.
"""

import io
import os
from pathlib import Path
from typing import Dict, Iterable, Tuple
import logging

import PyPDF2

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".md")
PDF_SUFFIX = ".pdf"
SUPPORTED_SUFFIXES = TEXT_SUFFIXES + (PDF_SUFFIX,)
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def extract_pdf_text(stream) -> str:
    """
    Extract text from a PDF using PyPDF2.

    Note: Works for text-based PDFs. Scanned PDFs yield empty pages.
    """
    reader = PyPDF2.PdfReader(stream)
    pages = []
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            pages.append(page_text)
    return "\n\n".join(pages)


def decode_upload(
    filename: str,
    data: bytes,
    max_bytes: int = MAX_UPLOAD_BYTES
) -> str:
    """
    Decode an uploaded file's bytes into text.

    Raises:
        InvalidInputError: Missing name, unsupported type, empty or too large
    """
    if not filename:
        raise InvalidInputError("No file uploaded")
    if len(data) > max_bytes:
        raise InvalidInputError(
            f"File too large. Please upload files under {max_bytes // (1024 * 1024)}MB."
        )
    if not data:
        raise InvalidInputError(f"Empty file: {filename}")

    suffix = Path(filename).suffix.lower()
    if suffix == PDF_SUFFIX:
        try:
            return extract_pdf_text(io.BytesIO(data))
        except Exception as e:
            logger.error(f"Failed to extract text from {filename}: {e}")
            raise InvalidInputError(f"Could not read PDF {filename}: {e}") from e
    if suffix in TEXT_SUFFIXES:
        return data.decode("utf-8", errors="replace")

    raise InvalidInputError(
        f"Unsupported file type {suffix or '(none)'}; "
        f"expected one of {', '.join(SUPPORTED_SUFFIXES)}"
    )


def load_document(path: str, max_bytes: int = MAX_UPLOAD_BYTES) -> Tuple[str, str]:
    """
    Read a document from disk.

    Returns:
        (file name, text)

    Raises:
        FileNotFoundError: If the path does not exist
        InvalidInputError: See decode_upload
    """
    path = str(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Document not found: {path}")

    name = os.path.basename(path)
    with open(path, "rb") as f:
        data = f.read()

    text = decode_upload(name, data, max_bytes)
    logger.info(f"Reading {name}: {len(text)} characters")
    return name, text


def load_folder(
    folder_path: str,
    suffixes: Iterable[str] = TEXT_SUFFIXES,
    max_bytes: int = MAX_UPLOAD_BYTES
) -> Dict[str, str]:
    """
    Read every matching document in a folder (not recursive).

    Unreadable files are logged and skipped.

    Returns:
        Dict of {file name: text}, sorted by file name
    """
    folder = Path(folder_path)
    if not folder.exists():
        raise FileNotFoundError(f"Folder not found: {folder}")

    suffixes = tuple(s.lower() for s in suffixes)
    files = sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in suffixes)
    logger.info(f"Found {len(files)} files in {folder}")

    documents = {}
    for file_path in files:
        try:
            name, text = load_document(str(file_path), max_bytes)
            documents[name] = text
        except (OSError, InvalidInputError) as e:
            logger.error(f"Failed to read {file_path.name}: {e}")

    return documents
