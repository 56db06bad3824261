"""Retrieval and answer pipeline.

Submodules:
    interfaces — VectorStore / LanguageModel / Extractor protocols.
    llm        — Local Hugging Face chat model and LLM chunk extractor.
    expand     — Hypothetical-answer query expansion.
    retriever  — Compression and expanded-query retrieval, evidence merge.
    context    — Prompt context, sorted sources and snippets.
    chain      — Answer synthesis and the end-to-end orchestrator.
"""

from docqa_rag.query.chain import answer_question, build_qa_chain

__all__ = ["answer_question", "build_qa_chain"]
