"""Collaborator interfaces consumed by the query pipeline.

The pipeline only talks to these protocols, so tests can drive it with
in-memory fakes and production code plugs in the Chroma and Hugging Face
adapters from :mod:`docqa_rag.index.store` and :mod:`docqa_rag.query.llm`.
"""
from typing import Protocol

from docqa_rag.models import Chunk, ScoredChunk


class VectorStore(Protocol):
    def similarity_search(self, query: str, k: int, filter: dict) -> list[Chunk]:
        """Top-*k* chunks matching *filter*, most similar first."""
        ...

    def similarity_search_with_score(
        self, query: str, k: int, filter: dict
    ) -> list[ScoredChunk]:
        """Top-*k* chunks with relevance scores (higher is more relevant)."""
        ...


class LanguageModel(Protocol):
    def invoke(self, prompt: str, temperature: float = 0.0) -> str: ...


class Extractor(Protocol):
    def extract_relevant(self, chunk: Chunk, query: str) -> Chunk | None:
        """Trim *chunk* to the spans relevant to *query*; None when nothing is relevant."""
        ...
