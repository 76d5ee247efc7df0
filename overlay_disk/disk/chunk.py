"""Known byte ranges of a disk.

A ``DiskChunk`` is a part of a ``Disk`` whose contents are already known:
bytes we wrote, bytes we already read from the backend, or a discarded range.

Two kinds exist:

* ``data``: backed by a buffer whose length is exactly ``end - start + 1``.
* ``discard``: implied zeros. Nothing is stored; ``data()`` allocates them.

``start`` and ``end`` are absolute disk offsets and both are included.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import List
from typing import Literal
from typing import Optional
from typing import Tuple
from typing import Union

from overlay_disk.errors import ContractViolation


ChunkKind = Literal["data", "discard"]
BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class DiskChunk:
    start: int
    end: int
    kind: ChunkKind = "data"
    buffer: Optional[Union[bytes, memoryview]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ContractViolation(f"Invalid chunk interval [{self.start}, {self.end}]")
        if self.kind == "data":
            if self.buffer is None or len(self.buffer) != self.length:
                size = None if self.buffer is None else len(self.buffer)
                raise ContractViolation(
                    f"Data chunk [{self.start}, {self.end}] needs {self.length} bytes, got {size}"
                )
        elif self.buffer is not None:
            raise ContractViolation("Discard chunks do not carry a buffer")

    @classmethod
    def from_buffer(cls, buffer: BytesLike, offset: int, copy: bool = True) -> "DiskChunk":
        """Build a data chunk starting at ``offset``.

        With ``copy`` (the default) the bytes are copied so that a caller
        reusing its buffer does not change what was recorded. Without it the
        chunk keeps a view on ``buffer``.
        """
        if len(buffer) == 0:
            raise ContractViolation(f"Cannot build an empty data chunk at offset {offset}")
        data: Union[bytes, memoryview] = bytes(buffer) if copy else memoryview(buffer)
        return cls(offset, offset + len(buffer) - 1, "data", data)

    @classmethod
    def discarded(cls, offset: int, length: int) -> "DiskChunk":
        if length <= 0:
            raise ContractViolation(f"Cannot discard {length} bytes at offset {offset}")
        return cls(offset, offset + length - 1, "discard")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def is_discard(self) -> bool:
        return self.kind == "discard"

    def interval(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def intersection(self, other: "DiskChunk") -> Optional[Tuple[int, int]]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return (start, end)

    def intersects(self, other: "DiskChunk") -> bool:
        return self.intersection(other) is not None

    def included_in(self, other: "DiskChunk") -> bool:
        return self.start >= other.start and self.end <= other.end

    def cut(self, other: "DiskChunk") -> List["DiskChunk"]:
        """Return the 0, 1 or 2 parts of this chunk lying outside ``other``.

        ``other`` must overlap this chunk.
        """
        overlap = self.intersection(other)
        if overlap is None:
            raise ContractViolation(
                f"Cannot cut [{other.start}, {other.end}] out of non-overlapping [{self.start}, {self.end}]"
            )
        result: List[DiskChunk] = []
        if overlap[0] > self.start:
            result.append(self.slice(self.start, overlap[0] - 1))
        if self.end > overlap[1]:
            result.append(self.slice(overlap[1] + 1, self.end))
        return result

    def slice(self, start: int, end: int) -> "DiskChunk":
        """New chunk of the same kind covering ``[start, end]`` (absolute disk offsets)."""
        if start < self.start or end > self.end or start > end:
            raise ContractViolation(
                f"Slice [{start}, {end}] is outside chunk [{self.start}, {self.end}]"
            )
        if self.kind == "discard":
            return DiskChunk(start, end, "discard")
        assert self.buffer is not None
        relative = start - self.start
        view = memoryview(self.buffer)[relative : relative + end - start + 1]
        return DiskChunk(start, end, "data", view)

    def data(self) -> Union[bytes, memoryview]:
        """Contents of the chunk; discard chunks synthesize zeros on every call."""
        if self.kind == "discard":
            return bytes(self.length)
        assert self.buffer is not None
        return self.buffer
