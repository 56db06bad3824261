"""Tests for the local chat model wrapper and the LLM chunk extractor."""
import threading
import time
from unittest.mock import MagicMock, patch

from conftest import FakeLLM, make_chunk

from docqa_rag.query import llm as llm_module
from docqa_rag.query.llm import (
    NO_OUTPUT,
    HuggingFaceLanguageModel,
    LLMChunkExtractor,
    _response_text,
)


class TestLLMChunkExtractor:

    def test_returns_trimmed_chunk_with_same_metadata(self):
        chunk = make_chunk("Noise. The deposit is $1,000. More noise.", filename="lease.pdf", page=3)
        extractor = LLMChunkExtractor(FakeLLM(answer="The deposit is $1,000."))
        result = extractor.extract_relevant(chunk, "How much is the deposit?")
        assert result.content == "The deposit is $1,000."
        assert result.metadata == chunk.metadata

    def test_no_output_drops_chunk(self):
        extractor = LLMChunkExtractor(FakeLLM(answer=f" {NO_OUTPUT}\n"))
        assert extractor.extract_relevant(make_chunk("irrelevant"), "q") is None

    def test_empty_reply_drops_chunk(self):
        extractor = LLMChunkExtractor(FakeLLM(answer="   "))
        assert extractor.extract_relevant(make_chunk("irrelevant"), "q") is None

    def test_prompt_includes_question_and_chunk_at_temperature_zero(self):
        llm = FakeLLM()
        LLMChunkExtractor(llm).extract_relevant(make_chunk("chunk body"), "the question")
        prompt, temperature = llm.prompts[0]
        assert "> Question: the question" in prompt
        assert "chunk body" in prompt
        assert NO_OUTPUT in prompt
        assert temperature == 0.0


class TestResponseText:

    def test_message_content(self):
        class Msg:
            content = "hello"

        assert _response_text(Msg()) == "hello"

    def test_plain_string(self):
        assert _response_text("raw") == "raw"

    def test_non_string_content(self):
        class Msg:
            content = ["part"]

        assert _response_text(Msg()) == "['part']"


class TestHuggingFaceLanguageModel:

    def test_model_created_lazily_and_cached_per_temperature(self):
        chat = MagicMock()
        chat.invoke.return_value = MagicMock(content="answer")
        with patch.object(llm_module, "_create_llm", return_value=chat) as mock_create:
            model = HuggingFaceLanguageModel()
            mock_create.assert_not_called()
            assert model.invoke("p1") == "answer"
            assert model.invoke("p2", temperature=0.0) == "answer"
            model.invoke("p3", temperature=0.7)
        assert [c.args for c in mock_create.call_args_list] == [(0.0,), (0.7,)]
        chat.invoke.assert_any_call("p1")

    def test_get_language_model_is_shared(self):
        with patch.object(llm_module, "_default_llm", None):
            assert llm_module.get_language_model() is llm_module.get_language_model()

    def test_concurrent_first_use_loads_one_pipeline(self):
        created = []

        def slow_create(temperature):
            created.append(temperature)
            time.sleep(0.05)
            chat = MagicMock()
            chat.invoke.return_value = MagicMock(content="ok")
            return chat

        model = HuggingFaceLanguageModel()
        replies = []
        with patch.object(llm_module, "_create_llm", side_effect=slow_create):
            threads = [threading.Thread(target=lambda: replies.append(model.invoke("p"))) for _ in range(2)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        assert created == [0.0]
        assert replies == ["ok", "ok"]

    def test_get_language_model_shared_across_threads(self):
        seen = []
        with patch.object(llm_module, "_default_llm", None):
            threads = [threading.Thread(target=lambda: seen.append(llm_module.get_language_model())) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        assert len(seen) == 4
        assert all(m is seen[0] for m in seen)
