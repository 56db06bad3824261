"""Render an evidence set into prompt context, citation sources and snippets."""
from docqa_rag.config import MAX_SNIPPETS, SNIPPET_MAX_CHARS
from docqa_rag.models import Chunk, Snippet, Source

TRUNCATION_MARKER = "…"


def _page(chunk: Chunk) -> int:
    return chunk.page_number or 0


def format_context(chunks: list[Chunk]) -> str:
    """One ``(filename p.N) content`` entry per chunk, blank line between entries."""
    return "\n\n".join(
        f"({c.filename} p.{c.page_number if c.page_number is not None else '?'}) {c.content}"
        for c in chunks
    )


def build_sources(chunks: list[Chunk]) -> list[Source]:
    """Unique (filename, page) citations sorted by filename, then page.

    A chunk without a page number is cited as page 0.
    """
    seen: set[tuple[str, int]] = set()
    sources: list[Source] = []
    for chunk in chunks:
        pair = (chunk.filename, _page(chunk))
        if pair in seen:
            continue
        seen.add(pair)
        sources.append(Source(*pair))
    sources.sort(key=lambda s: (s.filename, s.page))
    return sources


def truncate(text: str, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def build_snippets(
    chunks: list[Chunk],
    limit: int = MAX_SNIPPETS,
    max_chars: int = SNIPPET_MAX_CHARS,
) -> list[Snippet]:
    """Excerpts of the first *limit* chunks in evidence order."""
    return [
        Snippet(c.filename, _page(c), truncate(c.content, max_chars))
        for c in chunks[:limit]
    ]
