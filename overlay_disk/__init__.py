"""Random-access disks over files, S3 objects and HTTP URLs with an in-memory overlay."""

from overlay_disk.disk import ChunkStore
from overlay_disk.disk import Disk
from overlay_disk.disk import DiskChunk
from overlay_disk.disk import DiskStream
from overlay_disk.disk import DiskWrapper
from overlay_disk.disk import FileDisk
from overlay_disk.disk import HttpDisk
from overlay_disk.disk import S3Disk
from overlay_disk.disk import open_file
from overlay_disk.errors import BackendIOError
from overlay_disk.errors import CapacityUnavailable
from overlay_disk.errors import ContractViolation
from overlay_disk.errors import DiskError


__all__ = [
    "Disk",
    "DiskChunk",
    "ChunkStore",
    "DiskStream",
    "DiskWrapper",
    "FileDisk",
    "S3Disk",
    "HttpDisk",
    "open_file",
    "DiskError",
    "BackendIOError",
    "CapacityUnavailable",
    "ContractViolation",
]
