"""Hypothetical-answer (HyDE) query expansion.

The generated text is never shown to the user; it is only used as a second
retrieval query, since answer-shaped text tends to sit closer to relevant
passages in embedding space than the bare question.
"""
import logging

from langchain_core.prompts import PromptTemplate

from docqa_rag.query.interfaces import LanguageModel

logger = logging.getLogger(__name__)

EXPAND_PROMPT = PromptTemplate.from_template(
    'Write a concise 2–3 sentence hypothetical answer (no fluff) to this question:\n"{question}".'
)


def expand_query(question: str, llm: LanguageModel) -> str:
    """Return a short hypothetical answer to *question* (temperature 0).

    Model errors propagate; there is no fallback to the bare question.
    """
    expanded = llm.invoke(EXPAND_PROMPT.format(question=question), temperature=0.0)
    logger.debug("Expanded query: %r", expanded)
    return expanded
