"""PDF ingestion: page extraction, chunking and indexing."""
from docqa_rag.ingest.chunk import chunk_pages, ingest_pdf, load_pdf_pages

__all__ = ["chunk_pages", "ingest_pdf", "load_pdf_pages"]
