"""Local Hugging Face chat model and the LLM-backed chunk extractor."""
import logging
import threading
from typing import Any

from langchain_core.prompts import PromptTemplate

from docqa_rag.config import (
    LOCAL_LLM_DEVICE,
    LOCAL_LLM_MAX_NEW_TOKENS,
    LOCAL_LLM_MODEL,
    LOCAL_LLM_REPETITION_PENALTY,
)
from docqa_rag.models import Chunk
from docqa_rag.query.interfaces import LanguageModel

logger = logging.getLogger(__name__)

NO_OUTPUT = "NO_OUTPUT"

EXTRACT_PROMPT = PromptTemplate.from_template(
    """Given the following question and context, extract any part of the context *AS IS* that is relevant to answer the question. If none of the context is relevant return {no_output}.

Remember, *DO NOT* edit the extracted parts of the context.

> Question: {question}
> Context:
>>>
{context}
>>>
Extracted relevant parts:"""
)


def _response_text(response: Any) -> str:
    content = getattr(response, "content", None)
    return content if isinstance(content, str) else str(content if content is not None else response)


def _create_llm(temperature: float) -> Any:
    """Create local chat model using Hugging Face pipeline (no API key).

    Temperature 0 means greedy decoding; anything higher enables sampling.
    """
    from langchain_huggingface import ChatHuggingFace, HuggingFacePipeline

    pipeline_kwargs: dict[str, Any] = dict(
        max_new_tokens=LOCAL_LLM_MAX_NEW_TOKENS,
        do_sample=temperature > 0,
        repetition_penalty=LOCAL_LLM_REPETITION_PENALTY,
    )
    if temperature > 0:
        pipeline_kwargs["temperature"] = temperature
    llm = HuggingFacePipeline.from_model_id(
        model_id=LOCAL_LLM_MODEL,
        task="text-generation",
        device_map=LOCAL_LLM_DEVICE,
        pipeline_kwargs=pipeline_kwargs,
    )
    return ChatHuggingFace(llm=llm)


class HuggingFaceLanguageModel:
    """:class:`~docqa_rag.query.interfaces.LanguageModel` over a local chat model.

    The underlying pipeline is loaded on first use and cached per temperature.
    """

    def __init__(self) -> None:
        self._models: dict[float, Any] = {}
        self._lock = threading.Lock()

    def _model(self, temperature: float) -> Any:
        model = self._models.get(temperature)
        if model is not None:
            return model
        with self._lock:
            if temperature not in self._models:
                logger.info("Loading %s (temperature=%s)", LOCAL_LLM_MODEL, temperature)
                self._models[temperature] = _create_llm(temperature)
            return self._models[temperature]

    def invoke(self, prompt: str, temperature: float = 0.0) -> str:
        return _response_text(self._model(temperature).invoke(prompt))


_default_llm: HuggingFaceLanguageModel | None = None
_default_llm_lock = threading.Lock()


def get_language_model() -> HuggingFaceLanguageModel:
    """Return the process-wide local model so the pipeline is loaded once."""
    global _default_llm
    if _default_llm is None:
        with _default_llm_lock:
            if _default_llm is None:
                _default_llm = HuggingFaceLanguageModel()
    return _default_llm


class LLMChunkExtractor:
    """Contextual compression: ask the model to copy out the spans of a chunk
    that answer the question. A ``NO_OUTPUT`` (or empty) reply drops the chunk.
    """

    def __init__(self, llm: LanguageModel) -> None:
        self.llm = llm

    def extract_relevant(self, chunk: Chunk, query: str) -> Chunk | None:
        prompt = EXTRACT_PROMPT.format(
            no_output=NO_OUTPUT, question=query, context=chunk.content
        )
        extracted = self.llm.invoke(prompt, temperature=0.0).strip()
        if not extracted or extracted == NO_OUTPUT:
            return None
        return chunk.with_content(extracted)
