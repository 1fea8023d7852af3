"""
Timing helper for logging how long a build step took.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager


@contextmanager
def timer(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("object_info normalization", logger):
            registry = InputRegistry.build(raw)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if logger is not None:
            logger.debug("%s took %.1fms", label, elapsed_ms)
