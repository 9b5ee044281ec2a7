# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Span tracing collaborators injected into long-running operations."""

import logging
import time
from contextlib import AbstractContextManager, contextmanager
from typing import Iterator, Protocol

logger = logging.getLogger(__name__)


class Tracer(Protocol):
    """Open named spans around units of work."""

    def span(self, name: str, **attributes: object) -> AbstractContextManager[None]:
        """Return a context manager covering one unit of work."""


class NullTracer:
    """Tracer that records nothing."""

    @contextmanager
    def span(self, name: str, **attributes: object) -> Iterator[None]:
        yield


class LoggingTracer:
    """Emit one DEBUG log line per finished span with its duration."""

    def __init__(self, level: int = logging.DEBUG) -> None:
        self._level = level

    @contextmanager
    def span(self, name: str, **attributes: object) -> Iterator[None]:
        started_at = time.monotonic()
        status = "ok"
        try:
            yield
        except BaseException:
            status = "error"
            raise
        finally:
            elapsed_ms = int((time.monotonic() - started_at) * 1000)
            details = " ".join(f"{key}={value}" for key, value in attributes.items())
            logger.log(
                self._level,
                "span_finished name=%s status=%s duration_ms=%s %s",
                name,
                status,
                elapsed_ms,
                details,
            )
