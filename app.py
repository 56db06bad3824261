"""Streamlit app for grounded Q&A over an uploaded PDF.

Supports:
  - Uploading a PDF (extracted, chunked and indexed under a fresh doc id)
  - Adding more PDFs to the same collection; questions then span all of them
  - Chatting with the document; answers cite sorted page sources
  - A sources drawer with excerpts of the supporting chunks

Launch:
    streamlit run app.py
"""

from __future__ import annotations

import html
import logging
import tempfile
import time
from pathlib import Path

import streamlit as st

from docqa_rag.config import COLLECTION_NAME, EMBEDDING_MODEL, LOCAL_LLM_MODEL
from docqa_rag.index.embed import get_embeddings
from docqa_rag.index.store import ChromaVectorStore, get_or_create_chroma
from docqa_rag.ingest import ingest_pdf
from docqa_rag.query.chain import build_qa_chain

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Document Q&A",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ---------------------------------------------------------------------------
# Cached resources
# ---------------------------------------------------------------------------


@st.cache_resource(show_spinner="Loading embedding model...")
def _load_embeddings():
    return get_embeddings()


@st.cache_resource(show_spinner="Connecting to ChromaDB...")
def _load_store():
    emb = _load_embeddings()
    return get_or_create_chroma(emb)


@st.cache_resource(show_spinner="Loading language model...")
def _load_chain():
    return build_qa_chain(store=ChromaVectorStore(_load_store()))


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

_CUSTOM_CSS = """
<style>
.main .block-container {
    padding-top: 2rem;
    padding-bottom: 3rem;
    max-width: 1000px;
}

div.snippet-card {
    border: 1px solid #e2e8f0;
    border-radius: 0.5rem;
    padding: 0.9rem 1.2rem;
    margin-bottom: 0.75rem;
    background: #f8fafc;
}

div.snippet-card .snippet-title {
    font-weight: 600;
    font-size: 0.85rem;
    margin-bottom: 0.4rem;
}

div.snippet-card .snippet-text {
    font-size: 0.88rem;
    line-height: 1.55;
    white-space: pre-wrap;
    word-break: break-word;
}
</style>
"""

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _escape(text: str) -> str:
    """HTML entity escaping for safe display in markdown."""
    return html.escape(text, quote=True)


def _save_upload(data: bytes, name: str, upload_dir: Path) -> Path:
    """Write uploaded bytes under *upload_dir*, keeping only the base name."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / (Path(name).name or "upload.pdf")
    path.write_bytes(data)
    return path


def _format_sources(sources: list[dict]) -> str:
    """Render sources as ``file p.N`` citations, in their given order."""
    return " · ".join(f"{s['filename']} p.{s['page']}" for s in sources)


def _render_snippet_card(snippet: dict) -> None:
    card_html = f"""
    <div class="snippet-card">
        <div class="snippet-title">{_escape(snippet['filename'])} &mdash; p.{snippet['page']}</div>
        <div class="snippet-text">{_escape(snippet['text'])}</div>
    </div>
    """
    st.markdown(card_html, unsafe_allow_html=True)


def _render_answer(result: dict) -> None:
    st.markdown(result["answer"])
    if result["sources"]:
        st.caption(f"**Sources:** {_format_sources(result['sources'])}")
    if result["snippets"]:
        with st.expander(f"Supporting excerpts ({len(result['snippets'])})"):
            for snippet in result["snippets"]:
                _render_snippet_card(snippet)


def _collection_label(filenames: list[str]) -> str:
    """Sidebar label for the files in the current collection."""
    if len(filenames) == 1:
        return filenames[0]
    return f"{len(filenames)} files: " + ", ".join(filenames)


def _add_filename(filenames: list[str], name: str) -> list[str]:
    """Record *name* in the collection; re-indexing a file does not list it twice."""
    return filenames if name in filenames else [*filenames, name]


def _ingest_upload(uploaded, doc_id: str | None = None) -> str:
    with tempfile.TemporaryDirectory() as tmp:
        path = _save_upload(uploaded.getvalue(), uploaded.name, Path(tmp))
        return ingest_pdf(
            path,
            filename=uploaded.name,
            doc_id=doc_id,
            store=_load_store(),
            embeddings=_load_embeddings(),
        )


# ---------------------------------------------------------------------------
# Main app
# ---------------------------------------------------------------------------


def main() -> None:
    st.markdown(_CUSTOM_CSS, unsafe_allow_html=True)

    if "doc" not in st.session_state:
        st.session_state.doc = None  # (doc_id, [filenames]) or None
    if "messages" not in st.session_state:
        st.session_state.messages = []

    # ---- Sidebar ----
    with st.sidebar:
        st.header("📄 Document")
        st.caption(f"**Collection:** `{COLLECTION_NAME}`")
        st.caption(f"**Embeddings:** `{EMBEDDING_MODEL}`")
        st.caption(f"**LLM:** `{LOCAL_LLM_MODEL}`")
        st.divider()

        uploaded = st.file_uploader("Upload a PDF", type=["pdf"])
        if uploaded is not None and st.button("Index document", type="primary"):
            try:
                with st.spinner(f"Indexing {uploaded.name}..."):
                    doc_id = _ingest_upload(uploaded)
                st.session_state.doc = (doc_id, [uploaded.name])
                st.session_state.messages = []
            except Exception as e:
                logger.exception("Upload failed")
                st.error(f"Upload failed: {e}")

        if st.session_state.doc is not None:
            doc_id, filenames = st.session_state.doc
            st.success(f"Chatting with **{_escape(_collection_label(filenames))}**")
            st.caption(f"doc id: `{doc_id}`")

            extra = st.file_uploader("Add another PDF to this collection", type=["pdf"], key="add_pdf")
            if extra is not None and st.button("Add to collection"):
                try:
                    with st.spinner(f"Indexing {extra.name}..."):
                        _ingest_upload(extra, doc_id=doc_id)
                    st.session_state.doc = (doc_id, _add_filename(filenames, extra.name))
                    st.success(f"Added {_escape(extra.name)} to this collection")
                except Exception as e:
                    logger.exception("Adding to collection failed")
                    st.error(f"Adding to collection failed: {e}")

    # ---- Main area ----
    st.title("Document Q&A")
    st.markdown(
        "Ask questions about the uploaded document. Answers are grounded in "
        "retrieved passages and cite the pages they come from."
    )

    if st.session_state.doc is None:
        st.info("Upload and index a PDF in the sidebar to start.")
        return

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            if message["role"] == "assistant":
                _render_answer(message["result"])
            else:
                st.markdown(message["content"])

    question = st.chat_input("Ask about the document...")
    if not question:
        return

    st.session_state.messages.append({"role": "user", "content": question})
    with st.chat_message("user"):
        st.markdown(question)

    doc_id, _ = st.session_state.doc
    with st.chat_message("assistant"):
        try:
            with st.spinner("Retrieving evidence and generating answer..."):
                t0 = time.perf_counter()
                result = _load_chain()({"question": question, "doc_id": doc_id})
                elapsed = time.perf_counter() - t0
        except Exception as e:
            logger.exception("Chat failed")
            st.error(f"Chat failed: {e}")
            return
        _render_answer(result)
        st.caption(f"Generated in **{elapsed:.2f}s**")
    st.session_state.messages.append({"role": "assistant", "result": result})


if __name__ == "__main__":
    main()
