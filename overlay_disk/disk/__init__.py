from .base import Disk
from .chunk import DiskChunk
from .file_disk import FileDisk
from .file_disk import open_file
from .http_disk import HttpDisk
from .planner import build_read_plan
from .s3_disk import S3Disk
from .store import ChunkStore
from .stream import DiskStream
from .types import RawRange
from .wrapper import DiskWrapper


__all__ = [
    "Disk",
    "DiskChunk",
    "ChunkStore",
    "RawRange",
    "build_read_plan",
    "DiskStream",
    "DiskWrapper",
    "FileDisk",
    "open_file",
    "S3Disk",
    "HttpDisk",
]
