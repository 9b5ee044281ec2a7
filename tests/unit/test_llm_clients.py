import httpx
import ollama
import pytest

from tdm.llm import OllamaAnalyzer, OpenAIAnalyzer
from tdm.llm.openai_client import OPENAI_DEFAULT_BASE_URL, resolve_base_url
from tdm.llm_client import (
    ANALYSIS_INSTRUCTIONS,
    AnalysisGenerationError,
    build_prompt,
    extract_response_text,
)


class _FakeOllamaClient:
    def __init__(self, response: object = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.kwargs: dict[str, object] = {}

    def generate(self, **kwargs: object) -> object:
        self.kwargs = kwargs
        if self._error is not None:
            raise self._error
        return self._response


class _FakeResponses:
    def __init__(self, response: object) -> None:
        self._response = response
        self.kwargs: dict[str, object] = {}

    def create(self, **kwargs: object) -> object:
        self.kwargs = kwargs
        return self._response


class _FakeOpenAIClient:
    def __init__(self, response: object) -> None:
        self.responses = _FakeResponses(response)


def _ollama(fake: _FakeOllamaClient) -> OllamaAnalyzer:
    analyzer = OllamaAnalyzer(provider_url="http://localhost:11434", model="qwen", timeout_seconds=5)
    analyzer._client = fake  # type: ignore[assignment]
    return analyzer


def test_llm_001_prompt_names_file_and_language() -> None:
    prompt = build_prompt("src/app.py", "x = 1", "py")

    assert prompt.startswith("File: src/app.py")
    assert "```py\nx = 1\n```" in prompt
    assert "```text" in build_prompt("Makefile", "all:", "")


def test_llm_002_ollama_returns_stripped_text_and_sends_instructions() -> None:
    fake = _FakeOllamaClient(response={"response": "  <debts></debts>\n"})

    assert _ollama(fake).analyze("a.py", "x", "py") == "<debts></debts>"
    assert fake.kwargs["system"] == ANALYSIS_INSTRUCTIONS
    assert fake.kwargs["model"] == "qwen"


@pytest.mark.parametrize(
    "error",
    [
        ollama.ResponseError("model not found"),
        httpx.ReadTimeout("timed out"),
        OSError("connection refused"),
    ],
)
def test_llm_003_ollama_failures_become_generation_errors(error: Exception) -> None:
    with pytest.raises(AnalysisGenerationError):
        _ollama(_FakeOllamaClient(error=error)).analyze("a.py", "x", "py")


def test_llm_004_ollama_empty_response_is_an_error() -> None:
    with pytest.raises(AnalysisGenerationError, match="does not contain"):
        _ollama(_FakeOllamaClient(response={"response": "   "})).analyze("a.py", "x", "py")


def test_llm_005_openai_uses_responses_api() -> None:
    fake = _FakeOpenAIClient(response={"output_text": "analysis"})
    analyzer = OpenAIAnalyzer(provider_url="https://api.openai.com/v1", model="gpt-4o")
    analyzer._client = fake  # type: ignore[assignment]

    assert analyzer.analyze("a.py", "x", "py") == "analysis"
    assert fake.responses.kwargs["instructions"] == ANALYSIS_INSTRUCTIONS
    assert fake.responses.kwargs["model"] == "gpt-4o"


def test_llm_006_openai_provider_url_normalization() -> None:
    assert resolve_base_url("openai") == OPENAI_DEFAULT_BASE_URL
    assert resolve_base_url("localhost:8080/v1/") == "https://localhost:8080/v1"
    with pytest.raises(ValueError):
        resolve_base_url("  ")
    assert resolve_base_url("https://api.openai.com/v1") == OPENAI_DEFAULT_BASE_URL


class _AttributeResponse:
    def __init__(self, output_text: object) -> None:
        self.output_text = output_text


def test_llm_007_response_text_is_read_from_mappings_and_attributes() -> None:
    assert extract_response_text({"response": " text "}, "response") == "text"
    assert extract_response_text(_AttributeResponse(" out "), "output_text") == "out"
    assert extract_response_text(_AttributeResponse(None), "output_text") == ""
    assert extract_response_text({"response": 3}, "response") == ""
