"""Pytest fixtures shared across tests: in-memory collaborators for the pipeline."""

import pytest

from docqa_rag.models import Chunk, ChunkMetadata, ScoredChunk


def make_chunk(
    content: str,
    filename: str = "x.pdf",
    page: int | None = 1,
    doc_id: str = "doc-1",
) -> Chunk:
    return Chunk(content=content, metadata=ChunkMetadata(doc_id, filename, page))


class FakeStore:
    """VectorStore returning canned results and recording every call."""

    def __init__(self, chunks=None, scored=None, error: Exception | None = None) -> None:
        self.chunks = list(chunks or [])
        self.scored = list(scored or [])
        self.error = error
        self.calls: list[tuple] = []

    def similarity_search(self, query, k, filter):
        self.calls.append(("similarity_search", query, k, filter))
        if self.error is not None:
            raise self.error
        return self.chunks[:k]

    def similarity_search_with_score(self, query, k, filter):
        self.calls.append(("similarity_search_with_score", query, k, filter))
        if self.error is not None:
            raise self.error
        return [ScoredChunk(c, s) for c, s in self.scored[:k]]


class FakeLLM:
    """LanguageModel answering expansion and synthesis prompts with fixed text."""

    def __init__(
        self,
        expansion: str = "A hypothetical answer.",
        answer: str = "Grounded answer.",
        error: Exception | None = None,
    ) -> None:
        self.expansion = expansion
        self.answer = answer
        self.error = error
        self.prompts: list[tuple[str, float]] = []

    def invoke(self, prompt, temperature=0.0):
        self.prompts.append((prompt, temperature))
        if self.error is not None:
            raise self.error
        if "hypothetical answer" in prompt:
            return self.expansion
        return self.answer


class PassthroughExtractor:
    def __init__(self) -> None:
        self.seen: list[tuple[Chunk, str]] = []

    def extract_relevant(self, chunk, query):
        self.seen.append((chunk, query))
        return chunk


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def extractor() -> PassthroughExtractor:
    return PassthroughExtractor()
