# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Incremental technical debt analysis with content-addressed artifacts."""
