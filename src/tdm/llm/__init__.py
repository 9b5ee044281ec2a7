# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer client implementations."""

from tdm.llm.ollama import OllamaAnalyzer
from tdm.llm.openai_client import OPENAI_DEFAULT_MODEL, OpenAIAnalyzer

__all__ = ["OllamaAnalyzer", "OpenAIAnalyzer", "OPENAI_DEFAULT_MODEL"]
