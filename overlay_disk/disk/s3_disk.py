"""Read-only disk over an S3 object; writes only live in the overlay."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from typing import Dict
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from overlay_disk.config import Config
from overlay_disk.config import get_config
from overlay_disk.disk.base import Disk
from overlay_disk.disk.executor import WritableBuffer
from overlay_disk.errors import BackendIOError
from overlay_disk.utils import byte_range_header


logger = logging.getLogger(__name__)


def make_s3_client(config: Optional[Config] = None) -> Any:
    """Create a boto3 S3 client from the configured credentials and endpoint."""
    config = config or get_config()
    session = boto3.Session(
        aws_access_key_id=config.s3_access_key or None,
        aws_secret_access_key=config.s3_secret_key or None,
        region_name=config.s3_region,
    )

    client_kwargs = {}
    if config.s3_endpoint_url:
        client_kwargs["endpoint_url"] = config.s3_endpoint_url

    return session.client("s3", **client_kwargs)


class S3Disk(Disk):
    """Disk over ``s3://bucket/key`` using ranged ``GetObject`` calls.

    Always read-only and always recording writes, so written bytes are kept in
    memory and read back from the overlay. boto3 is synchronous; every call
    runs in a worker thread.
    """

    def __init__(
        self,
        s3_client: Any,
        bucket: str,
        key: str,
        record_reads: bool = False,
        discard_is_zero: Optional[bool] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(True, True, record_reads, discard_is_zero, **kwargs)
        self.s3 = s3_client
        self.bucket = bucket
        self.key = key

    def _get_s3_params(self) -> Dict[str, Any]:
        return {"Bucket": self.bucket, "Key": self.key}

    async def _get_capacity(self) -> int:
        try:
            response = await asyncio.to_thread(self.s3.head_object, **self._get_s3_params())
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"S3: head_object failed bucket={self.bucket} key={self.key}: {e}")
            raise BackendIOError(
                f"head_object failed for s3://{self.bucket}/{self.key}: {e}", operation="capacity"
            ) from e
        return int(response["ContentLength"])

    async def _read(self, buffer: WritableBuffer, buffer_offset: int, length: int, file_offset: int) -> int:
        params = self._get_s3_params()
        params["Range"] = byte_range_header(file_offset, file_offset + length - 1)

        def _get_range() -> bytes:
            response = self.s3.get_object(**params)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()

        try:
            data = await asyncio.to_thread(_get_range)
        except (ClientError, BotoCoreError) as e:
            raise BackendIOError(
                f"get_object failed for s3://{self.bucket}/{self.key} range={params['Range']}: {e}",
                operation="read",
                offset=file_offset,
                length=length,
            ) from e

        if len(data) != length:
            raise BackendIOError(
                f"Short range read for s3://{self.bucket}/{self.key}: wanted {length} bytes, got {len(data)}",
                operation="read",
                offset=file_offset,
                length=length,
            )
        buffer[buffer_offset : buffer_offset + length] = data
        logger.debug(f"S3: read bucket={self.bucket} key={self.key} range={params['Range']}")
        return length
