"""ChromaDB vector store operations.

Chunks of every uploaded file live in one Chroma collection. The ``doc_id``
metadata key scopes a document collection, which may hold several files.
Upserts are incremental by content hash so re-ingesting an unchanged file
does not re-embed it.
"""
import hashlib
import logging
from typing import TYPE_CHECKING, Any, Sequence

from langchain_core.embeddings import Embeddings

from docqa_rag.config import CHROMA_DIR, CHROMA_UPSERT_BATCH_SIZE, COLLECTION_NAME
from docqa_rag.models import Chunk, ScoredChunk

if TYPE_CHECKING:
    from langchain_chroma import Chroma

logger = logging.getLogger(__name__)


def get_raw_collection(store: "Chroma"):
    """Access the underlying ChromaDB collection from a LangChain Chroma wrapper.
    Raises RuntimeError if the private API has changed.
    """
    coll = getattr(store, "_collection", None)
    if coll is None:
        raise RuntimeError(
            "langchain-chroma API changed: _collection not found. "
            f"Pin langchain-chroma or update {__name__}."
        )
    return coll


def _sanitize_metadata(meta: dict) -> dict:
    """Coerce metadata values to ChromaDB-compatible types (str/int/float/bool), dropping None."""
    out = {}
    for k, v in meta.items():
        if v is None:
            continue
        if isinstance(v, (str, int, float, bool)):
            out[k] = v
        else:
            out[k] = str(v)
    return out


def _file_key(filename: str) -> str:
    return hashlib.sha256(filename.encode("utf-8")).hexdigest()[:12]


def _chunk_id(chunk: Chunk, index: int) -> str:
    """Stable identifier for the *index*-th chunk of one file in a collection:
    ``{doc_id}_{filename hash}_{index}``.
    """
    meta = chunk.metadata
    return f"{meta.doc_id}_{_file_key(meta.filename)}_{index}"


def _content_hash(chunk: Chunk, index: int) -> str:
    """SHA-256 of content, filename, page and position for change detection."""
    meta = chunk.metadata
    payload = f"{chunk.content}\x00{meta.filename}\x00{meta.page_number}\x00{index}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def get_or_create_chroma(embeddings: Embeddings) -> "Chroma":
    """Return a LangChain Chroma instance (persist_directory, collection_name, embedding_function)."""
    from langchain_chroma import Chroma

    CHROMA_DIR.mkdir(parents=True, exist_ok=True)
    return Chroma(
        collection_name=COLLECTION_NAME,
        embedding_function=embeddings,
        persist_directory=str(CHROMA_DIR),
    )


def _file_where(doc_id: str, filename: str) -> dict[str, Any]:
    return {"$and": [{"doc_id": doc_id}, {"filename": filename}]}


def upsert_chunks(
    store: "Chroma",
    chunks: Sequence[Chunk],
    embeddings: Embeddings,
) -> tuple[int, int]:
    """Upsert the chunks of one or more files into the Chroma store.

    A collection (``doc_id``) may hold several files; chunks are identified
    by position within their ``(doc_id, filename)`` file, so adding a file
    never touches the chunks of another. Only new or changed chunks (by
    content_hash) are embedded and upserted. Chunks a re-indexed file no
    longer produces are deleted.
    Returns (new_or_updated_count, skipped_count).
    """
    if not chunks:
        return 0, 0

    collection = get_raw_collection(store)

    by_file: dict[tuple[str, str], list[Chunk]] = {}
    for chunk in chunks:
        by_file.setdefault((chunk.metadata.doc_id, chunk.metadata.filename), []).append(chunk)

    to_upsert: list[tuple[str, str, Chunk]] = []
    stale: list[str] = []
    for (doc_id, filename), file_chunks in by_file.items():
        existing = collection.get(where=_file_where(doc_id, filename), include=["metadatas"])
        id_to_hash: dict[str, str] = {}
        metadatas_list = existing.get("metadatas") or []
        for i, id_ in enumerate(existing.get("ids") or []):
            meta = (metadatas_list[i] if i < len(metadatas_list) else None) or {}
            id_to_hash[id_] = meta.get("content_hash", "")

        new_ids: set[str] = set()
        for index, chunk in enumerate(file_chunks):
            cid = _chunk_id(chunk, index)
            new_ids.add(cid)
            new_hash = _content_hash(chunk, index)
            if id_to_hash.get(cid) == new_hash:
                continue
            to_upsert.append((cid, new_hash, chunk))
        stale.extend(id_ for id_ in id_to_hash if id_ not in new_ids)

    if stale:
        collection.delete(ids=stale)
        logger.debug("Deleted %d stale chunks", len(stale))

    skipped = len(chunks) - len(to_upsert)
    if not to_upsert:
        return 0, skipped

    texts = [c.content for _, _, c in to_upsert]
    vectors = embeddings.embed_documents(texts)
    ids = [cid for cid, _, _ in to_upsert]
    metadatas = []
    for _, content_hash, chunk in to_upsert:
        meta = chunk.metadata.to_mapping()
        meta["content_hash"] = content_hash
        metadatas.append(_sanitize_metadata(meta))

    for i in range(0, len(to_upsert), CHROMA_UPSERT_BATCH_SIZE):
        end = i + CHROMA_UPSERT_BATCH_SIZE
        collection.upsert(
            ids=ids[i:end],
            embeddings=vectors[i:end],
            metadatas=metadatas[i:end],
            documents=texts[i:end],
        )
    logger.debug("Upserted %d chunks (%d unchanged) for %s", len(to_upsert), skipped, sorted(by_file))
    return len(to_upsert), skipped


class ChromaVectorStore:
    """:class:`~docqa_rag.query.interfaces.VectorStore` over a LangChain Chroma store.

    Scores come from Chroma's normalised relevance scores (higher is more
    relevant), not raw distances, so a fixed relevance threshold keeps its
    meaning across distance functions.
    """

    def __init__(self, store: "Chroma") -> None:
        self.store = store

    def similarity_search(self, query: str, k: int, filter: dict) -> list[Chunk]:
        docs = self.store.similarity_search(query, k=k, filter=filter)
        return [Chunk.from_document(d) for d in docs]

    def similarity_search_with_score(
        self, query: str, k: int, filter: dict
    ) -> list[ScoredChunk]:
        pairs = self.store.similarity_search_with_relevance_scores(query, k=k, filter=filter)
        return [ScoredChunk(Chunk.from_document(d), float(score)) for d, score in pairs]


def get_vector_store(embeddings: Embeddings | None = None) -> ChromaVectorStore:
    """Open the persistent Chroma collection wrapped for the query pipeline."""
    if embeddings is None:
        from docqa_rag.index.embed import get_embeddings

        embeddings = get_embeddings()
    return ChromaVectorStore(get_or_create_chroma(embeddings))
