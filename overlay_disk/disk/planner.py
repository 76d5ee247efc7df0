"""Pure planning logic for disk reads.

No IO; deterministic merge of a requested interval with the known chunks.
"""

from __future__ import annotations

from typing import Iterable
from typing import List

from overlay_disk.disk.chunk import DiskChunk
from overlay_disk.disk.types import RawRange
from overlay_disk.disk.types import ReadPlanItem


def build_read_plan(
    chunks: Iterable[DiskChunk],
    offset: int,
    length: int,
    *,
    discard_is_zero: bool = True,
) -> List[ReadPlanItem]:
    """Compute the steps needed to read ``length`` bytes at ``offset``.

    Args:
        chunks: Known chunks, sorted by start and non-overlapping.
        offset: First byte of the request (0-based, absolute on the disk).
        length: Number of bytes requested.
        discard_is_zero: When False, discard chunks are ignored so the
            discarded bytes are read from the backend.

    Returns:
        Ordered, contiguous list of ``RawRange`` (backend reads) and
        ``DiskChunk`` slices (overlay copies) covering exactly the request.
    """
    if length <= 0:
        return []
    end = offset + length - 1
    request = RawRange(offset, end)

    intersections: List[DiskChunk] = []
    for chunk in chunks:
        if chunk.start > end:
            break
        if chunk.is_discard and not discard_is_zero:
            continue
        overlap_start = max(chunk.start, offset)
        overlap_end = min(chunk.end, end)
        if overlap_start <= overlap_end:
            intersections.append(chunk.slice(overlap_start, overlap_end))

    if not intersections:
        return [request]

    plan: List[ReadPlanItem] = []
    cursor = offset
    for piece in intersections:
        if cursor < piece.start:
            plan.append(RawRange(cursor, piece.start - 1))
        plan.append(piece)
        cursor = piece.end + 1
    if cursor <= end:
        plan.append(RawRange(cursor, end))
    return plan


def plan_length(plan: Iterable[ReadPlanItem]) -> int:
    return sum(item.length for item in plan)
