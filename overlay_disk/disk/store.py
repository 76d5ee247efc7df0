from __future__ import annotations

import logging
from typing import Iterator
from typing import List
from typing import Tuple

from overlay_disk.disk.chunk import DiskChunk


logger = logging.getLogger(__name__)


class ChunkStore:
    """Sorted list of non-overlapping ``DiskChunk`` entries known for one disk.

    Only ``insert`` mutates the list. It is in-memory bookkeeping for the life
    of the owning disk and is not safe for concurrent inserts: callers
    serialize writes, discards and recorded reads per disk.
    """

    def __init__(self) -> None:
        self._chunks: List[DiskChunk] = []

    def __iter__(self) -> Iterator[DiskChunk]:
        return iter(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __repr__(self) -> str:
        return f"ChunkStore({[(c.kind, c.start, c.end) for c in self._chunks]})"

    @property
    def chunks(self) -> Tuple[DiskChunk, ...]:
        return tuple(self._chunks)

    def discarded(self) -> List[DiskChunk]:
        return [chunk for chunk in self._chunks if chunk.is_discard]

    def clear(self) -> None:
        self._chunks.clear()

    def insert(self, chunk: DiskChunk, materialize: bool = True) -> None:
        """Insert ``chunk``, clipping every entry it overlaps.

        Entries fully covered by ``chunk`` are dropped, partially covered ones
        are replaced by the parts left outside it. With ``materialize=False``
        only the clipping happens, ``chunk`` itself is not stored.
        """
        chunks = self._chunks
        insert_at = 0
        i = 0
        while i < len(chunks):
            other = chunks[i]
            if other.start > chunk.end:
                break
            insert_at = i + 1 if other.start < chunk.start else i
            if not chunk.intersects(other):
                i += 1
                continue
            if other.included_in(chunk):
                del chunks[i]
                continue
            remainders = other.cut(chunk)
            chunks[i : i + 1] = remainders
            i += len(remainders)

        if materialize:
            chunks.insert(insert_at, chunk)
        logger.debug(
            f"CHUNKS: insert kind={chunk.kind} [{chunk.start}, {chunk.end}] "
            f"materialize={materialize} at={insert_at} total={len(chunks)}"
        )
