"""Embedding and vector store."""
from docqa_rag.index.embed import get_embeddings
from docqa_rag.index.store import (
    ChromaVectorStore,
    get_or_create_chroma,
    get_vector_store,
    upsert_chunks,
)

__all__ = [
    "ChromaVectorStore",
    "get_embeddings",
    "get_or_create_chroma",
    "get_vector_store",
    "upsert_chunks",
]
