"""Evidence retrieval for one document.

Two independent retrieval strategies feed the evidence set:

1. **Compression retrieval** — top-k chunks for the question itself, each
   trimmed by the extractor to the spans relevant to the question.
2. **Expanded-query retrieval** — top-k scored chunks for the hypothetical
   answer, keeping only those above a relevance threshold.

:func:`merge_evidence` unions both lists, compressed chunks first.
"""
import logging

from docqa_rag.config import (
    DEDUP_PREFIX_CHARS,
    MAX_EVIDENCE,
    PRIMARY_K,
    SCORE_THRESHOLD,
    SECONDARY_K,
)
from docqa_rag.models import Chunk
from docqa_rag.query.interfaces import Extractor, VectorStore

logger = logging.getLogger(__name__)


def doc_filter(doc_id: str) -> dict:
    """Metadata filter restricting a search to one uploaded document."""
    return {"doc_id": doc_id}


def retrieve_compressed(
    question: str,
    doc_id: str,
    store: VectorStore,
    extractor: Extractor,
    k: int = PRIMARY_K,
) -> list[Chunk]:
    """Top-*k* chunks for *question*, trimmed to their question-relevant spans.

    Order follows the store's similarity rank. Chunks the extractor finds
    nothing relevant in are dropped.
    """
    candidates = store.similarity_search(question, k=k, filter=doc_filter(doc_id))
    compressed: list[Chunk] = []
    for chunk in candidates:
        trimmed = extractor.extract_relevant(chunk, question)
        if trimmed is not None:
            compressed.append(trimmed)
    logger.debug("Compression retrieval: %d/%d chunks kept", len(compressed), len(candidates))
    return compressed


def retrieve_expanded(
    expanded_query: str,
    doc_id: str,
    store: VectorStore,
    k: int = SECONDARY_K,
    threshold: float = SCORE_THRESHOLD,
) -> list[Chunk]:
    """Top-*k* chunks for the expanded query whose score is strictly above *threshold*."""
    scored = store.similarity_search_with_score(expanded_query, k=k, filter=doc_filter(doc_id))
    strong = [sc.chunk for sc in scored if sc.score > threshold]
    logger.debug("Expanded retrieval: %d/%d chunks above %.2f", len(strong), len(scored), threshold)
    return strong


def chunk_key(chunk: Chunk, prefix_chars: int = DEDUP_PREFIX_CHARS) -> str:
    """Identity of a chunk for deduplication: ``filename|page|content prefix``."""
    return f"{chunk.filename}|{chunk.page_number}|{chunk.content[:prefix_chars]}"


def merge_evidence(
    primary: list[Chunk],
    secondary: list[Chunk],
    max_k: int = MAX_EVIDENCE,
) -> list[Chunk]:
    """Merge two result lists into one deduplicated evidence set of at most *max_k* chunks.

    Every primary chunk goes in before any secondary chunk; a chunk whose key
    was already seen is skipped, so the first occurrence wins.
    """
    seen: set[str] = set()
    merged: list[Chunk] = []
    for chunk in [*primary, *secondary]:
        key = chunk_key(chunk)
        if key in seen:
            continue
        seen.add(key)
        merged.append(chunk)
    return merged[:max_k]
