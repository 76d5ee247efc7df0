import io
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from overlay_disk.disk import S3Disk
from overlay_disk.errors import BackendIOError
from overlay_disk.errors import CapacityUnavailable


CONTENT = bytes(range(100))


def _range_get_object(**params):
    start, end = params["Range"].removeprefix("bytes=").split("-")
    return {"Body": io.BytesIO(CONTENT[int(start) : int(end) + 1]), "ContentLength": int(end) - int(start) + 1}


@pytest.fixture
def s3_client():
    client = Mock()
    client.head_object.return_value = {"ContentLength": len(CONTENT)}
    client.get_object.side_effect = _range_get_object
    return client


def test_s3_disk_is_read_only_and_records_writes(s3_client):
    disk = S3Disk(s3_client, "bucket", "images/disk.img")

    assert disk.read_only is True
    assert disk.record_writes is True
    assert disk.record_reads is False


@pytest.mark.asyncio
async def test_capacity_uses_head_object_once(s3_client):
    disk = S3Disk(s3_client, "bucket", "images/disk.img")

    assert await disk.get_capacity() == 100
    assert await disk.get_capacity() == 100
    s3_client.head_object.assert_called_once_with(Bucket="bucket", Key="images/disk.img")


@pytest.mark.asyncio
async def test_read_issues_inclusive_range_request(s3_client):
    disk = S3Disk(s3_client, "bucket", "images/disk.img")
    buffer = bytearray(10)

    bytes_read, _ = await disk.read(buffer, 0, 10, 20)

    assert bytes_read == 10
    assert bytes(buffer) == CONTENT[20:30]
    s3_client.get_object.assert_called_once_with(Bucket="bucket", Key="images/disk.img", Range="bytes=20-29")


@pytest.mark.asyncio
async def test_writes_stay_in_memory_and_split_backend_reads(s3_client):
    disk = S3Disk(s3_client, "bucket", "images/disk.img")

    bytes_written, _ = await disk.write(b"WW", 0, 2, 5)
    buffer = bytearray(10)
    await disk.read(buffer, 0, 10, 0)

    assert bytes_written == 2
    assert bytes(buffer) == CONTENT[:5] + b"WW" + CONTENT[7:10]
    ranges = [call.kwargs["Range"] for call in s3_client.get_object.call_args_list]
    assert ranges == ["bytes=0-4", "bytes=7-9"]


@pytest.mark.asyncio
async def test_record_reads_avoids_second_request(s3_client):
    disk = S3Disk(s3_client, "bucket", "images/disk.img", record_reads=True)

    await disk.read(bytearray(10), 0, 10, 0)
    await disk.read(bytearray(10), 0, 10, 0)

    assert s3_client.get_object.call_count == 1


@pytest.mark.asyncio
async def test_client_error_becomes_backend_error(s3_client):
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject")
    s3_client.get_object.side_effect = error
    disk = S3Disk(s3_client, "bucket", "images/disk.img")

    with pytest.raises(BackendIOError) as exc_info:
        await disk.read(bytearray(4), 0, 4, 0)

    assert exc_info.value.__cause__ is error
    assert exc_info.value.operation == "read"
    assert exc_info.value.offset == 0


@pytest.mark.asyncio
async def test_missing_object_capacity_is_unavailable_and_not_cached(s3_client):
    s3_client.head_object.side_effect = [
        ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"),
        {"ContentLength": 7},
    ]
    disk = S3Disk(s3_client, "bucket", "missing")

    with pytest.raises(CapacityUnavailable):
        await disk.get_capacity()
    assert await disk.get_capacity() == 7


@pytest.mark.asyncio
async def test_short_body_is_an_error(s3_client):
    s3_client.get_object.side_effect = lambda **params: {"Body": io.BytesIO(b"ab")}
    disk = S3Disk(s3_client, "bucket", "images/disk.img")

    with pytest.raises(BackendIOError):
        await disk.read(bytearray(4), 0, 4, 0)
