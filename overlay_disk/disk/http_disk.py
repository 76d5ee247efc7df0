"""Read-only disk over any HTTP server honouring ``Range`` requests."""

from __future__ import annotations

import logging
from typing import Any
from typing import Optional

import httpx

from overlay_disk.config import Config
from overlay_disk.config import get_config
from overlay_disk.disk.base import Disk
from overlay_disk.disk.executor import WritableBuffer
from overlay_disk.errors import BackendIOError
from overlay_disk.utils import byte_range_header


logger = logging.getLogger(__name__)


def make_http_client(config: Optional[Config] = None, **kwargs: Any) -> httpx.AsyncClient:
    config = config or get_config()
    return httpx.AsyncClient(timeout=config.http_timeout, follow_redirects=True, **kwargs)


class HttpDisk(Disk):
    """Disk over a URL: capacity from ``HEAD``, reads from ranged ``GET``.

    Like ``S3Disk`` it is read-only and records writes in memory. The client
    is owned by the caller, who closes it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        record_reads: bool = False,
        discard_is_zero: Optional[bool] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(True, True, record_reads, discard_is_zero, **kwargs)
        self.client = client
        self.url = url

    async def _get_capacity(self) -> int:
        try:
            response = await self.client.head(self.url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BackendIOError(f"HEAD {self.url} failed: {e}", operation="capacity") from e

        content_length = response.headers.get("content-length")
        if content_length is None:
            raise BackendIOError(f"HEAD {self.url} returned no Content-Length", operation="capacity")
        return int(content_length)

    async def _read(self, buffer: WritableBuffer, buffer_offset: int, length: int, file_offset: int) -> int:
        range_header = byte_range_header(file_offset, file_offset + length - 1)
        try:
            response = await self.client.get(self.url, headers={"Range": range_header})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BackendIOError(
                f"GET {self.url} range={range_header} failed: {e}",
                operation="read",
                offset=file_offset,
                length=length,
            ) from e

        if response.status_code != 206:
            raise BackendIOError(
                f"GET {self.url} range={range_header} returned {response.status_code}, expected 206",
                operation="read",
                offset=file_offset,
                length=length,
            )
        data = response.content
        if len(data) != length:
            raise BackendIOError(
                f"Short range read from {self.url}: wanted {length} bytes, got {len(data)}",
                operation="read",
                offset=file_offset,
                length=length,
            )
        buffer[buffer_offset : buffer_offset + length] = data
        logger.debug(f"HTTP: read url={self.url} range={range_header}")
        return length
