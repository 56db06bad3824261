"""PDF page extraction and chunking with RecursiveCharacterTextSplitter.

Each uploaded PDF is split per page first so every chunk keeps the page it
came from, then each page is cut into fixed-size overlapping chunks.
"""
import logging
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import pdfplumber
from langchain_text_splitters import RecursiveCharacterTextSplitter

from docqa_rag.config import CHUNK_OVERLAP, CHUNK_SIZE
from docqa_rag.models import Chunk, ChunkMetadata

if TYPE_CHECKING:
    from langchain_chroma import Chroma
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def load_pdf_pages(pdf_path: Path) -> list[tuple[int, str]]:
    """Return ``(page_number, text)`` for every page with text; page numbers are 1-based."""
    pages: list[tuple[int, str]] = []
    with pdfplumber.open(pdf_path) as pdf:
        for number, page in enumerate(pdf.pages, start=1):
            text = (page.extract_text() or "").strip()
            if text:
                pages.append((number, text))
    if not pages:
        logger.warning("No extractable text in %s", pdf_path)
    return pages


def chunk_pages(
    pages: list[tuple[int | None, str]],
    *,
    filename: str,
    doc_id: str,
    chunk_size: int = CHUNK_SIZE,
    chunk_overlap: int = CHUNK_OVERLAP,
) -> list[Chunk]:
    """Split page texts into chunks tagged with *doc_id*, *filename* and page number."""
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=["\n\n", "\n", ". ", " ", ""],
    )
    chunks: list[Chunk] = []
    for page_number, text in pages:
        meta = ChunkMetadata(doc_id=doc_id, filename=filename, page_number=page_number)
        for piece in splitter.split_text(text):
            chunks.append(Chunk(content=piece, metadata=meta))
    return chunks


def ingest_pdf(
    pdf_path: Path,
    *,
    filename: str | None = None,
    doc_id: str | None = None,
    store: "Chroma | None" = None,
    embeddings: "Embeddings | None" = None,
) -> str:
    """Extract, chunk and index one PDF. Returns the document's ``doc_id``.

    A fresh ``doc_id`` is generated when none is given. Pass an existing one
    to add the PDF to that document collection; ingesting a file with the
    same name again re-indexes it (unchanged chunks are skipped, chunks the
    new version no longer has are removed).
    """
    from docqa_rag.index import get_embeddings, get_or_create_chroma, upsert_chunks

    pdf_path = Path(pdf_path)
    doc_id = doc_id or uuid.uuid4().hex
    filename = filename or pdf_path.name

    pages = load_pdf_pages(pdf_path)
    chunks = chunk_pages(pages, filename=filename, doc_id=doc_id)
    logger.info("Chunked %s: %d pages, %d chunks", filename, len(pages), len(chunks))

    if embeddings is None:
        embeddings = get_embeddings()
    if store is None:
        store = get_or_create_chroma(embeddings)
    n_upserted, n_skipped = upsert_chunks(store, chunks, embeddings)
    logger.info("Indexed %s as %s: %d new/updated, %d unchanged", filename, doc_id, n_upserted, n_skipped)
    return doc_id
