"""Disk coordinator: a backend with an in-memory overlay of known chunks.

Subclasses implement the backend hooks:

* ``_get_capacity()`` -> size in bytes
* ``_read(buffer, buffer_offset, length, file_offset)`` -> bytes read
* ``_write(buffer, buffer_offset, length, file_offset)`` -> bytes written (writable disks only)
* ``_flush()`` (writable disks only)

Callers use ``read``, ``write``, ``flush``, ``discard``, ``get_capacity``,
``get_stream``, ``get_block_map`` and ``get_discarded_chunks``.

A Disk is not safe for concurrent mutating calls. Writes, discards and
reads on a disk recording reads must be serialized by the caller; the chunk
store has no lock and interleaved inserts would break its ordering.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from overlay_disk.blockmap import get_block_map
from overlay_disk.config import Config
from overlay_disk.config import get_config
from overlay_disk.disk.chunk import BytesLike
from overlay_disk.disk.chunk import DiskChunk
from overlay_disk.disk.executor import WritableBuffer
from overlay_disk.disk.executor import execute_read_plan
from overlay_disk.disk.planner import build_read_plan
from overlay_disk.disk.store import ChunkStore
from overlay_disk.disk.stream import DiskStream
from overlay_disk.disk.types import RawRange
from overlay_disk.disk.types import ReadPlanItem
from overlay_disk.errors import CapacityUnavailable
from overlay_disk.tracing import trace_disk_operation


logger = logging.getLogger(__name__)

BlockMapBuilder = Callable[["Disk", int, int, bool], Awaitable[Any]]


def _check_range(offset: int, length: int) -> None:
    if offset < 0 or length < 0:
        raise ValueError(f"Invalid range offset={offset} length={length}")


class Disk:
    def __init__(
        self,
        read_only: bool = False,
        record_writes: bool = False,
        record_reads: bool = False,
        discard_is_zero: Optional[bool] = None,
        *,
        device_id: Optional[str] = None,
        block_map_builder: Optional[BlockMapBuilder] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.config = config or get_config()
        self.read_only = read_only
        self.record_writes = record_writes
        self.record_reads = record_reads
        self.discard_is_zero = self.config.discard_is_zero if discard_is_zero is None else discard_is_zero
        self.device_id = device_id
        self.known_chunks = ChunkStore()
        self.capacity: Optional[int] = None
        self._block_map_builder: BlockMapBuilder = block_map_builder or get_block_map

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(device_id={self.device_id!r}, read_only={self.read_only}, "
            f"record_writes={self.record_writes}, record_reads={self.record_reads}, "
            f"discard_is_zero={self.discard_is_zero}, chunks={len(self.known_chunks)})"
        )

    # Backend hooks

    async def _get_capacity(self) -> int:
        raise NotImplementedError

    async def _read(self, buffer: WritableBuffer, buffer_offset: int, length: int, file_offset: int) -> int:
        raise NotImplementedError

    async def _write(self, buffer: BytesLike, buffer_offset: int, length: int, file_offset: int) -> int:
        raise NotImplementedError(f"{type(self).__name__} is not writable")

    async def _flush(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} is not writable")

    # Public operations

    def plan_read(self, offset: int, length: int) -> List[ReadPlanItem]:
        return build_read_plan(self.known_chunks, offset, length, discard_is_zero=self.discard_is_zero)

    @trace_disk_operation("read")
    async def read(
        self, buffer: WritableBuffer, buffer_offset: int, length: int, file_offset: int
    ) -> Tuple[int, WritableBuffer]:
        _check_range(file_offset, length)
        plan = self.plan_read(file_offset, length)
        on_backend_read = self._record_read if self.record_reads else None
        bytes_read = await execute_read_plan(
            buffer,
            buffer_offset,
            plan,
            self._read,
            on_backend_read=on_backend_read,
            slow_read_threshold_ms=self.config.slow_read_threshold_ms,
        )
        return bytes_read, buffer

    @trace_disk_operation("write")
    async def write(
        self, buffer: BytesLike, buffer_offset: int, length: int, file_offset: int
    ) -> Tuple[int, BytesLike]:
        _check_range(file_offset, length)
        if length == 0:
            return 0, buffer

        if self.record_writes:
            chunk = DiskChunk.from_buffer(memoryview(buffer)[buffer_offset : buffer_offset + length], file_offset)
            self.known_chunks.insert(chunk)
        else:
            # Writes are not recorded but a discard may cover these bytes:
            # clip with a probe of the same extent without storing it.
            self.known_chunks.insert(DiskChunk.discarded(file_offset, length), materialize=False)

        if self.read_only:
            return length, buffer
        bytes_written = await self._write(buffer, buffer_offset, length, file_offset)
        return bytes_written, buffer

    @trace_disk_operation("flush")
    async def flush(self) -> None:
        if self.read_only:
            return
        await self._flush()

    @trace_disk_operation("discard")
    async def discard(self, offset: int, length: int) -> None:
        _check_range(offset, length)
        if length == 0:
            return
        self.known_chunks.insert(DiskChunk.discarded(offset, length))

    @trace_disk_operation("get_capacity")
    async def get_capacity(self) -> int:
        if self.capacity is not None:
            return self.capacity
        try:
            capacity = await self._get_capacity()
        except CapacityUnavailable:
            raise
        except Exception as e:
            logger.error(f"CAPACITY: probe failed backend={type(self).__name__}: {e}")
            raise CapacityUnavailable(f"Could not get capacity of {type(self).__name__}: {e}") from e
        self.capacity = int(capacity)
        logger.debug(f"CAPACITY: {self.capacity} bytes")
        return self.capacity

    async def get_stream(
        self,
        position: Optional[int] = None,
        length: Optional[int] = None,
        high_water_mark: Optional[int] = None,
    ) -> DiskStream:
        """Readable stream over the disk.

        Args:
            position: Start reading from this offset (defaults to zero)
            length: Read that many bytes (defaults to capacity - position)
            high_water_mark: Size of each read (default and floor from config)
        """
        position = position if isinstance(position, int) else 0
        if not isinstance(high_water_mark, int):
            high_water_mark = self.config.stream_high_water_mark
        end = await self.get_capacity()
        if isinstance(length, int):
            end = min(position + length, end)
        return DiskStream(
            self,
            end,
            high_water_mark,
            position,
            min_high_water_mark=self.config.stream_min_high_water_mark,
        )

    def get_discarded_chunks(self) -> List[DiskChunk]:
        return self.known_chunks.discarded()

    async def get_block_map(self, block_size: int, calculate_checksums: bool) -> Any:
        capacity = await self.get_capacity()
        return await self._block_map_builder(self, block_size, capacity, calculate_checksums)

    def _record_read(self, raw: RawRange, data: Union[bytes, bytearray]) -> None:
        self.known_chunks.insert(DiskChunk.from_buffer(data, raw.start, copy=False))
