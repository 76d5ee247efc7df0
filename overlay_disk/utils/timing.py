"""Timing instrumentation for backend I/O on disks."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from contextlib import contextmanager
from typing import Any
from typing import AsyncGenerator
from typing import Generator


logger = logging.getLogger(__name__)


def _format_extra(extra: dict[str, Any] | None) -> str:
    return " ".join(f"{k}={v}" for k, v in (extra or {}).items())


@contextmanager
def timing_context(
    operation: str, *, log_threshold_ms: float = 0.0, extra: dict[str, Any] | None = None
) -> Generator[dict[str, Any], None, None]:
    """Time a synchronous block.

    Args:
        operation: Name of the operation being timed
        log_threshold_ms: Only log if duration exceeds this threshold (ms). 0 = always log.
        extra: Additional context to include in log

    Yields:
        Timing dict with 'start' field, will have 'duration_ms' on exit

    Example:
        with timing_context("block_map", extra={"block_size": 4096}):
            build_ranges(...)
        # Logs: "TIMING block_map duration_ms=1.52 block_size=4096"
    """
    ctx: dict[str, Any] = {"start": time.perf_counter()}
    if extra:
        ctx.update(extra)

    try:
        yield ctx
    finally:
        duration_ms = (time.perf_counter() - ctx["start"]) * 1000.0
        ctx["duration_ms"] = duration_ms

        if duration_ms >= log_threshold_ms:
            logger.info(f"TIMING {operation} duration_ms={duration_ms:.2f} {_format_extra(extra)}".strip())


@asynccontextmanager
async def async_timing_context(
    operation: str, *, log_threshold_ms: float = 0.0, extra: dict[str, Any] | None = None
) -> AsyncGenerator[dict[str, Any], None]:
    """Time an awaited backend call.

    Same contract as ``timing_context``. Used around every raw backend read so
    slow ranges show up in the logs with their offset and length.

    Example:
        async with async_timing_context("backend_read", log_threshold_ms=250, extra={"offset": 0}):
            await disk._read(buffer, 0, 4096, 0)
    """
    ctx: dict[str, Any] = {"start": time.perf_counter()}
    if extra:
        ctx.update(extra)

    try:
        yield ctx
    finally:
        duration_ms = (time.perf_counter() - ctx["start"]) * 1000.0
        ctx["duration_ms"] = duration_ms

        if duration_ms >= log_threshold_ms:
            logger.info(f"TIMING {operation} duration_ms={duration_ms:.2f} {_format_extra(extra)}".strip())


def log_timing(operation: str, duration_ms: float, *, extra: dict[str, Any] | None = None) -> None:
    """Direct timing log helper for manual timing."""
    logger.info(f"TIMING {operation} duration_ms={duration_ms:.2f} {_format_extra(extra)}".strip())
