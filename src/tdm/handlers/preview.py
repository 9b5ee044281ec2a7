# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Short single-line preview of file content."""

from tdm.handlers.base import FileAnalysisContext
from tdm.results import PREVIEW_KEY

PREVIEW_LENGTH = 100


class PreviewHandler:
    """Store the first characters of a file on one line."""

    result_key = PREVIEW_KEY

    def process(self, context: FileAnalysisContext) -> str:
        content = context.content
        if not content:
            return ""
        preview = content[:PREVIEW_LENGTH] + "..." if len(content) > PREVIEW_LENGTH else content
        return preview.replace("\n", " ").replace("\r", " ")
