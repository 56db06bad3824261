#!/usr/bin/env python3
"""Interactive REPL for document Q&A. Asks questions about one ingested document
and prints grounded answers with sorted page citations.

Usage:
  python scripts/query.py <doc_id>
  python scripts/query.py <doc_id> --snippets
"""

import argparse
import logging
import sys
from pathlib import Path

from docqa_rag.config import CHROMA_DIR
from docqa_rag.query.chain import build_qa_chain

try:
    import readline

    _HISTORY_PATH = Path.home() / ".docqa_rag_query_history"
    _READLINE_AVAILABLE = True
except ImportError:
    _READLINE_AVAILABLE = False
    _HISTORY_PATH = None

logger = logging.getLogger(__name__)


def _format_sources(sources: list[dict]) -> str:
    return ", ".join(f"{s['filename']} p.{s['page']}" for s in sources)


def main() -> int:
    parser = argparse.ArgumentParser(description="Document Q&A query REPL")
    parser.add_argument("doc_id", type=str, help="Document id printed by scripts/ingest_pdf.py")
    parser.add_argument(
        "--snippets", action="store_true", help="Also print the supporting excerpts"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if not CHROMA_DIR.exists():
        print(
            f"Error: Chroma index not found at {CHROMA_DIR}. Ingest a PDF first (scripts/ingest_pdf.py).",
            file=sys.stderr,
        )
        return 1

    if _READLINE_AVAILABLE and _HISTORY_PATH is not None:
        try:
            readline.read_history_file(_HISTORY_PATH)
        except OSError:
            pass
        try:
            readline.set_history_length(500)
        except (AttributeError, TypeError):
            pass

    print(f"Document Q&A on {args.doc_id} (blank line to quit)")
    print("---")

    # Build the chain once so the model and index are loaded a single time
    chain = build_qa_chain()

    try:
        _repl_loop(chain, args.doc_id, show_snippets=args.snippets)
    finally:
        if _READLINE_AVAILABLE and _HISTORY_PATH is not None:
            try:
                readline.write_history_file(_HISTORY_PATH)
            except OSError:
                pass

    print("Bye.")
    return 0


def _repl_loop(chain, doc_id: str, *, show_snippets: bool = False) -> None:
    while True:
        try:
            question = input("Question (blank to quit): ").strip()
        except EOFError:
            break
        if not question:
            break
        try:
            result = chain({"question": question, "doc_id": doc_id})
        except Exception as e:
            logger.debug("Question failed", exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            continue
        print()
        print(result["answer"])
        print()
        if result["sources"]:
            print(f"Sources: {_format_sources(result['sources'])}")
        if show_snippets:
            for snip in result["snippets"]:
                print(f"  [{snip['filename']} p.{snip['page']}] {snip['text']}")
        print("---")


if __name__ == "__main__":
    sys.exit(main())
