#!/usr/bin/env python3
"""CLI entry point for ingesting one PDF: extract pages, chunk, embed and store.

Prints the document id to pass to scripts/query.py.

Usage:
  python scripts/ingest_pdf.py contract.pdf
  python scripts/ingest_pdf.py contract.pdf --doc-id 3f2a... --filename "Lease.pdf"
"""
import argparse
import logging
import sys
from pathlib import Path

from docqa_rag.ingest import ingest_pdf

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Ingest a PDF into the document Q&A index.")
    parser.add_argument("pdf", type=Path, help="Path to the PDF file")
    parser.add_argument(
        "--doc-id",
        type=str,
        help="Document id to index under (default: a new random id)",
    )
    parser.add_argument(
        "--filename",
        type=str,
        help="Display filename used in citations (default: the file's name)",
    )
    args = parser.parse_args()

    if not args.pdf.is_file():
        print(f"Error: {args.pdf} is not a file.", file=sys.stderr)
        return 1

    try:
        doc_id = ingest_pdf(args.pdf, filename=args.filename, doc_id=args.doc_id)
    except Exception as e:
        logger.exception("Ingest failed: %s", e)
        return 1
    print(doc_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
