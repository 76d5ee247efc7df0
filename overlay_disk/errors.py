"""Error hierarchy for disks and their backends."""

from __future__ import annotations

from typing import Optional


class DiskError(Exception):
    """Base class for every error raised by overlay_disk."""

    pass


class ContractViolation(DiskError):
    """A programming error: an operation was called outside its contract."""

    pass


class BackendIOError(DiskError):
    """A backend read, write, flush or capacity probe failed.

    The native error (``OSError``, botocore ``ClientError``, ``httpx.HTTPError`` ...)
    is kept as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        offset: Optional[int] = None,
        length: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.offset = offset
        self.length = length


class CapacityUnavailable(BackendIOError):
    """The backend could not report its size. Never cached."""

    def __init__(self, message: str) -> None:
        super().__init__(message, operation="capacity")
