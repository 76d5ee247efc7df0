"""Disk backed by an open file descriptor (regular file or block device)."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import stat
from typing import Any
from typing import AsyncIterator
from typing import Optional

from overlay_disk.disk.base import Disk
from overlay_disk.disk.chunk import BytesLike
from overlay_disk.disk.executor import WritableBuffer
from overlay_disk.errors import BackendIOError


logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def open_file(path: str, flags: int = os.O_RDONLY, mode: int = 0o666) -> AsyncIterator[int]:
    """Open ``path`` and close the descriptor when the block exits.

    Example:
        async with open_file("/tmp/disk.img", os.O_RDWR) as fd:
            disk = FileDisk(fd)
    """
    fd = await asyncio.to_thread(os.open, path, flags, mode)
    logger.debug(f"FS: opened path={path} fd={fd}")
    try:
        yield fd
    finally:
        await asyncio.to_thread(os.close, fd)
        logger.debug(f"FS: closed path={path} fd={fd}")


class FileDisk(Disk):
    """Positional I/O on a file descriptor; blocking calls run off the event loop."""

    def __init__(
        self,
        fd: int,
        read_only: bool = False,
        record_writes: bool = False,
        record_reads: bool = False,
        discard_is_zero: Optional[bool] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(read_only, record_writes, record_reads, discard_is_zero, **kwargs)
        self.fd = fd

    async def _get_capacity(self) -> int:
        def _size() -> int:
            info = os.fstat(self.fd)
            if stat.S_ISBLK(info.st_mode):
                # Block devices report st_size 0; seek to the end instead
                return os.lseek(self.fd, 0, os.SEEK_END)
            return info.st_size

        try:
            return await asyncio.to_thread(_size)
        except OSError as e:
            raise BackendIOError(f"fstat failed on fd={self.fd}: {e}", operation="capacity") from e

    async def _read(self, buffer: WritableBuffer, buffer_offset: int, length: int, file_offset: int) -> int:
        try:
            data = await asyncio.to_thread(os.pread, self.fd, length, file_offset)
        except OSError as e:
            raise BackendIOError(
                f"pread failed fd={self.fd} offset={file_offset} length={length}: {e}",
                operation="read",
                offset=file_offset,
                length=length,
            ) from e
        buffer[buffer_offset : buffer_offset + len(data)] = data
        if len(data) < length:
            logger.debug(f"FS: short read fd={self.fd} offset={file_offset} wanted={length} got={len(data)}")
        return len(data)

    async def _write(self, buffer: BytesLike, buffer_offset: int, length: int, file_offset: int) -> int:
        data = bytes(memoryview(buffer)[buffer_offset : buffer_offset + length])

        def _write_all() -> int:
            written = 0
            while written < len(data):
                written += os.pwrite(self.fd, data[written:], file_offset + written)
            return written

        try:
            return await asyncio.to_thread(_write_all)
        except OSError as e:
            raise BackendIOError(
                f"pwrite failed fd={self.fd} offset={file_offset} length={length}: {e}",
                operation="write",
                offset=file_offset,
                length=length,
            ) from e

    async def _flush(self) -> None:
        sync = getattr(os, "fdatasync", os.fsync)
        try:
            await asyncio.to_thread(sync, self.fd)
        except OSError as e:
            raise BackendIOError(f"fdatasync failed fd={self.fd}: {e}", operation="flush") from e
