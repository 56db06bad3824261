"""Grounded answer chain: expansion, dual retrieval, merge, synthesis."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from langchain_core.prompts import PromptTemplate

from docqa_rag.config import PARALLEL_RETRIEVAL
from docqa_rag.models import AnswerResult, Chunk
from docqa_rag.query.context import build_snippets, build_sources, format_context
from docqa_rag.query.expand import expand_query
from docqa_rag.query.interfaces import Extractor, LanguageModel, VectorStore
from docqa_rag.query.retriever import merge_evidence, retrieve_compressed, retrieve_expanded

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful legal assistant.
Answer ONLY using the provided context. If the answer is not in the context, say "I don't know".
Be concise. Do NOT invent page numbers or facts."""

ANSWER_PROMPT = PromptTemplate.from_template(
    """{system}

Question: {question}

Context:
{context}

Write a precise answer in 3–6 sentences."""
)

NO_EVIDENCE_ANSWER = "I don't know. I couldn't find evidence in the document."


def synthesize_answer(question: str, evidence: list[Chunk], llm: LanguageModel) -> AnswerResult:
    """Answer *question* from *evidence* with one model call.

    With no evidence, returns the fixed no-evidence answer without calling
    the model.
    """
    if not evidence:
        logger.info("No evidence retrieved; returning fallback answer")
        return AnswerResult(answer=NO_EVIDENCE_ANSWER, sources=[], snippets=[])
    prompt = ANSWER_PROMPT.format(
        system=SYSTEM_PROMPT, question=question, context=format_context(evidence)
    )
    answer = llm.invoke(prompt, temperature=0.0)
    return AnswerResult(
        answer=answer,
        sources=build_sources(evidence),
        snippets=build_snippets(evidence),
    )


def _retrieve_evidence(
    question: str,
    doc_id: str,
    store: VectorStore,
    llm: LanguageModel,
    extractor: Extractor,
    parallel: bool,
) -> list[Chunk]:
    if not parallel:
        expanded = expand_query(question, llm)
        primary = retrieve_compressed(question, doc_id, store, extractor)
        secondary = retrieve_expanded(expanded, doc_id, store)
        return merge_evidence(primary, secondary)

    # Compression retrieval does not need the expansion, so it runs alongside it.
    with ThreadPoolExecutor(max_workers=1) as pool:
        primary_future = pool.submit(retrieve_compressed, question, doc_id, store, extractor)
        expanded = expand_query(question, llm)
        secondary = retrieve_expanded(expanded, doc_id, store)
        primary = primary_future.result()
    return merge_evidence(primary, secondary)


def answer_question(
    question: str,
    doc_id: str,
    *,
    store: VectorStore | None = None,
    llm: LanguageModel | None = None,
    extractor: Extractor | None = None,
    parallel: bool | None = None,
) -> AnswerResult:
    """Answer *question* about the document *doc_id* with cited sources.

    Collaborators default to the local Chroma index and Hugging Face model.
    Any collaborator error propagates unchanged; nothing is retried.
    """
    if not question or not question.strip():
        raise ValueError("question must be non-empty")
    if not doc_id:
        raise ValueError("doc_id must be non-empty")

    if store is None:
        from docqa_rag.index.store import get_vector_store

        store = get_vector_store()
    if llm is None:
        from docqa_rag.query.llm import get_language_model

        llm = get_language_model()
    if extractor is None:
        from docqa_rag.query.llm import LLMChunkExtractor

        extractor = LLMChunkExtractor(llm)
    if parallel is None:
        parallel = PARALLEL_RETRIEVAL

    evidence = _retrieve_evidence(question, doc_id, store, llm, extractor, parallel)
    logger.info("Question on %s: %d evidence chunks", doc_id, len(evidence))
    return synthesize_answer(question, evidence, llm)


def build_qa_chain(
    store: VectorStore | None = None,
    llm: LanguageModel | None = None,
    extractor: Extractor | None = None,
) -> Callable[[dict], dict]:
    """Build the Q&A runnable once. Takes ``{"question": str, "doc_id": str}`` and
    returns ``{"answer": str, "sources": [...], "snippets": [...]}``.
    """
    if store is None:
        from docqa_rag.index.store import get_vector_store

        store = get_vector_store()
    if llm is None:
        from docqa_rag.query.llm import get_language_model

        llm = get_language_model()
    if extractor is None:
        from docqa_rag.query.llm import LLMChunkExtractor

        extractor = LLMChunkExtractor(llm)

    def runnable_invoke(input_dict: dict) -> dict:
        result = answer_question(
            input_dict.get("question", ""),
            input_dict.get("doc_id", ""),
            store=store,
            llm=llm,
            extractor=extractor,
        )
        return result.to_dict()

    return runnable_invoke
