"""Evidence and answer types shared by ingestion, the index and the query pipeline.

Chunks are stored in the vector index as LangChain ``Document`` objects with a
flat metadata dict; these dataclasses give that dict a fixed shape at the
boundary so the pipeline never reads untyped metadata.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from langchain_core.documents import Document

DEFAULT_FILENAME = "document.pdf"


def _coerce_page(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ChunkMetadata:
    doc_id: str
    filename: str = DEFAULT_FILENAME
    page_number: int | None = None

    @classmethod
    def from_mapping(cls, meta: Mapping[str, Any]) -> "ChunkMetadata":
        """Coerce a raw metadata mapping from the store.

        ``doc_id`` is required; a missing ``filename`` falls back to
        ``document.pdf`` and a non-integer ``page_number`` becomes None.
        Unknown keys are ignored.
        """
        doc_id = meta.get("doc_id")
        if not doc_id:
            raise ValueError(f"chunk metadata has no doc_id: {dict(meta)!r}")
        return cls(
            doc_id=str(doc_id),
            filename=str(meta.get("filename") or DEFAULT_FILENAME),
            page_number=_coerce_page(meta.get("page_number")),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "filename": self.filename,
            "page_number": self.page_number,
        }


@dataclass(frozen=True)
class Chunk:
    """A unit of evidence: chunk text plus where it came from."""

    content: str
    metadata: ChunkMetadata

    @property
    def filename(self) -> str:
        return self.metadata.filename

    @property
    def page_number(self) -> int | None:
        return self.metadata.page_number

    def with_content(self, content: str) -> "Chunk":
        """Return a copy with *content* replaced and metadata unchanged."""
        return replace(self, content=content)

    @classmethod
    def from_document(cls, doc: Document) -> "Chunk":
        return cls(content=doc.page_content, metadata=ChunkMetadata.from_mapping(doc.metadata))

    def to_document(self) -> Document:
        return Document(page_content=self.content, metadata=self.metadata.to_mapping())


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    score: float


@dataclass(frozen=True)
class Source:
    filename: str
    page: int

    def to_dict(self) -> dict[str, Any]:
        return {"filename": self.filename, "page": self.page}


@dataclass(frozen=True)
class Snippet:
    filename: str
    page: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"filename": self.filename, "page": self.page, "text": self.text}


@dataclass
class AnswerResult:
    answer: str
    sources: list[Source] = field(default_factory=list)
    snippets: list[Snippet] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "snippets": [s.to_dict() for s in self.snippets],
        }
