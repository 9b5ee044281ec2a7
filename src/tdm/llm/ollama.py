# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer client Ollama implementation."""

import logging

import httpx
import ollama

from tdm.llm_client import (
    ANALYSIS_INSTRUCTIONS,
    AnalysisGenerationError,
    build_prompt,
    extract_response_text,
)

logger = logging.getLogger(__name__)


class OllamaAnalyzer:
    """Analyze files for technical debt through an Ollama endpoint."""

    def __init__(
        self, provider_url: str, model: str, timeout_seconds: float | None = None
    ) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Ollama endpoint base URL.
            model: Model identifier passed to Ollama.
            timeout_seconds: Per-request timeout; ``None`` waits indefinitely.
        """
        self._provider_url = provider_url
        self._model = model
        self._client = ollama.Client(host=provider_url, timeout=timeout_seconds)

    def analyze(self, file_path: str, content: str, file_extension: str) -> str:
        """Request a technical debt review of one file.

        Args:
            file_path: Repository-relative path of the file.
            content: File content.
            file_extension: Extension without the leading dot.

        Returns:
            Raw response text.

        Raises:
            AnalysisGenerationError: If the request fails, times out, or the
                response has no content.
        """
        try:
            response = self._client.generate(
                model=self._model,
                system=ANALYSIS_INSTRUCTIONS,
                prompt=build_prompt(file_path, content, file_extension),
                stream=False,
            )
        except (
            ollama.RequestError,
            ollama.ResponseError,
            httpx.TimeoutException,
            httpx.HTTPError,
            OSError,
            ValueError,
        ) as exc:
            logger.warning(
                f"Ollama request failed (provider_url={self._provider_url} "
                f"model={self._model} file_path={file_path} error={exc})"
            )
            raise AnalysisGenerationError(str(exc)) from exc

        text = extract_response_text(response, "response")
        if not text:
            logger.warning(
                f"Ollama response did not contain analysis content "
                f"(provider_url={self._provider_url} model={self._model} file_path={file_path})"
            )
            raise AnalysisGenerationError(
                "Ollama response does not contain generation content."
            )
        return text
