from __future__ import annotations

from typing import Optional

from overlay_disk.disk.base import Disk
from overlay_disk.disk.stream import DiskStream


class DiskWrapper:
    """Read-only view of a disk exposing only its size and a stream of its bytes."""

    def __init__(self, disk: Disk) -> None:
        self.disk = disk

    async def get_capacity(self) -> int:
        return await self.disk.get_capacity()

    async def get_stream(
        self,
        position: Optional[int] = None,
        length: Optional[int] = None,
        high_water_mark: Optional[int] = None,
    ) -> DiskStream:
        return await self.disk.get_stream(position, length, high_water_mark)
