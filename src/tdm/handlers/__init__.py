# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis handlers run once per changed file."""

from tdm.handlers.base import AnalysisHandler, FileAnalysisContext
from tdm.handlers.preview import PreviewHandler
from tdm.handlers.tech_debt import TechDebtAnalysisHandler

__all__ = [
    "AnalysisHandler",
    "FileAnalysisContext",
    "PreviewHandler",
    "TechDebtAnalysisHandler",
]
