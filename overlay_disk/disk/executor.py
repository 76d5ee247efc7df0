from __future__ import annotations

import logging
from typing import Awaitable
from typing import Callable
from typing import Iterable
from typing import Optional
from typing import Union

from overlay_disk.disk.chunk import DiskChunk
from overlay_disk.disk.types import RawRange
from overlay_disk.disk.types import ReadPlanItem
from overlay_disk.utils import async_timing_context


logger = logging.getLogger(__name__)

WritableBuffer = Union[bytearray, memoryview]
ReadHook = Callable[[WritableBuffer, int, int, int], Awaitable[int]]
BackendReadCallback = Callable[[RawRange, bytes], None]


async def execute_read_plan(
    buffer: WritableBuffer,
    buffer_offset: int,
    plan: Iterable[ReadPlanItem],
    read_hook: ReadHook,
    *,
    on_backend_read: Optional[BackendReadCallback] = None,
    slow_read_threshold_ms: float = 0.0,
) -> int:
    """Fill ``buffer`` from ``buffer_offset`` following ``plan``, one entry at a time.

    Chunk entries are copied from memory; raw entries are awaited through
    ``read_hook(buffer, position, length, disk_offset)`` before the next entry
    starts. ``on_backend_read`` receives each fetched range with a copy of its
    bytes. The first backend error aborts the plan and is re-raised as is.

    Returns:
        Number of bytes placed in ``buffer``.
    """
    position = buffer_offset
    for entry in plan:
        if isinstance(entry, DiskChunk):
            data = entry.data()
            length = min(len(data), len(buffer) - position)
            buffer[position : position + length] = data[:length]
            position += length
            continue

        length = entry.length
        try:
            async with async_timing_context(
                "backend_read",
                log_threshold_ms=slow_read_threshold_ms,
                extra={"offset": entry.start, "length": length},
            ):
                await read_hook(buffer, position, length, entry.start)
        except Exception as e:
            logger.warning(f"READ: backend read failed offset={entry.start} length={length}: {e}")
            raise
        if on_backend_read is not None:
            on_backend_read(entry, bytes(buffer[position : position + length]))
        position += length

    return position - buffer_offset
