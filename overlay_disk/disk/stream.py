from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import AsyncIterator


if TYPE_CHECKING:
    from overlay_disk.disk.base import Disk


logger = logging.getLogger(__name__)

MIN_HIGH_WATER_MARK = 16
DEFAULT_HIGH_WATER_MARK = 16384


class DiskStream:
    """Sequential pull-based reader over ``[position, end)`` of a disk.

    Each pull issues one ``disk.read`` of ``min(high_water_mark, remaining)``
    bytes at the cursor. A failed read is raised from ``__anext__`` and ends
    the stream.
    """

    def __init__(
        self,
        disk: "Disk",
        end: int,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
        position: int = 0,
        *,
        min_high_water_mark: int = MIN_HIGH_WATER_MARK,
    ) -> None:
        self.disk = disk
        self.end = end
        self.position = position
        self.high_water_mark = max(high_water_mark, min_high_water_mark)
        self._closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        length = min(self.high_water_mark, self.end - self.position)
        if length <= 0:
            self._closed = True
            raise StopAsyncIteration

        buffer = bytearray(length)
        try:
            await self.disk.read(buffer, 0, length, self.position)
        except Exception as e:
            self._closed = True
            logger.error(f"STREAM: read failed position={self.position} length={length}: {e}")
            raise
        self.position += length
        return bytes(buffer)

    @property
    def remaining(self) -> int:
        return max(0, self.end - self.position)

    async def read_all(self) -> bytes:
        return b"".join([piece async for piece in self])
