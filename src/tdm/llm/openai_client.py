# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer client OpenAI implementation."""

import logging
from urllib.parse import urlparse

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    OpenAI,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
)

from tdm.llm_client import (
    ANALYSIS_INSTRUCTIONS,
    AnalysisGenerationError,
    build_prompt,
    extract_response_text,
)

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_MODEL: str = "gpt-4o"
OPENAI_DEFAULT_BASE_URL: str = "https://api.openai.com/v1"
_OPENAI_HOSTS = frozenset({"openai", "openai.com", "www.openai.com", "api.openai.com"})


class OpenAIAnalyzer:
    """Analyze files for technical debt using OpenAI's Responses API."""

    def __init__(
        self,
        provider_url: str,
        model: str = OPENAI_DEFAULT_MODEL,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize client configuration.

        Args:
            provider_url: OpenAI-compatible endpoint base URL.
            model: Model identifier used for generation.
            timeout_seconds: Per-request timeout handed to the SDK.
        """
        self._provider_url = provider_url
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._client: OpenAI | None = None

    def analyze(self, file_path: str, content: str, file_extension: str) -> str:
        """Request a technical debt review of one file.

        Args:
            file_path: Repository-relative path of the file.
            content: File content.
            file_extension: Extension without the leading dot.

        Returns:
            Raw response text.

        Raises:
            AnalysisGenerationError: If request fails, times out, or the
                response has no content.
        """
        client = self._get_client()
        try:
            response = client.responses.create(
                model=self._model,
                instructions=ANALYSIS_INSTRUCTIONS,
                input=build_prompt(file_path, content, file_extension),
            )
        except (
            APIConnectionError,
            APIError,
            APITimeoutError,
            AuthenticationError,
            BadRequestError,
            InternalServerError,
            NotFoundError,
            PermissionDeniedError,
            RateLimitError,
            AttributeError,
            OSError,
            ValueError,
        ) as exc:
            logger.warning(
                f"OpenAI request failed (provider_url={self._provider_url} "
                f"model={self._model} file_path={file_path} error={exc})"
            )
            raise AnalysisGenerationError(str(exc)) from exc

        text = extract_response_text(response, "output_text")
        if not text:
            logger.warning(
                f"OpenAI response did not contain analysis content "
                f"(provider_url={self._provider_url} model={self._model} file_path={file_path})"
            )
            raise AnalysisGenerationError(
                "OpenAI response does not contain generation content."
            )
        return text

    def _get_client(self) -> OpenAI:
        """Get or initialize OpenAI SDK client.

        Returns:
            Initialized OpenAI SDK client.

        Raises:
            AnalysisGenerationError: If client initialization fails.
        """
        if self._client is not None:
            return self._client
        try:
            self._client = OpenAI(
                base_url=resolve_base_url(self._provider_url),
                timeout=self._timeout_seconds,
            )
        except (OpenAIError, OSError, ValueError) as exc:
            logger.warning(
                f"OpenAI client initialization failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise AnalysisGenerationError(str(exc)) from exc
        return self._client


def resolve_base_url(provider_url: str) -> str:
    """Turn a configured provider URL into an SDK base URL.

    Bare OpenAI host names map to the public API; other hosts without a
    scheme are assumed to be HTTPS.

    Raises:
        ValueError: If the value is empty or has no host.
    """
    raw = provider_url.strip().rstrip("/")
    if not raw:
        raise ValueError("Invalid OpenAI provider URL: value is empty.")
    candidate = raw if "://" in raw else f"https://{raw}"
    host = urlparse(candidate).netloc.lower()
    if not host:
        raise ValueError(f"Invalid OpenAI provider URL: no host in '{provider_url}'.")
    if raw.lower() in _OPENAI_HOSTS or host in _OPENAI_HOSTS:
        return OPENAI_DEFAULT_BASE_URL
    return candidate
