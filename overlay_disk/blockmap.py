"""Block maps: which blocks of a disk carry data, with optional checksums.

A block is unmapped when discard chunks cover every byte of it. Contiguous
mapped blocks are merged into ranges of block indices (inclusive).
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

from pydantic import BaseModel
from pydantic import Field

from overlay_disk.utils import timing_context


if TYPE_CHECKING:
    from overlay_disk.disk.base import Disk
    from overlay_disk.disk.chunk import DiskChunk


logger = logging.getLogger(__name__)

CHECKSUM_TYPE = "sha256"


class BlockRange(BaseModel):
    start: int
    end: int
    checksum: Optional[str] = None

    @property
    def blocks(self) -> int:
        return self.end - self.start + 1


class BlockMap(BaseModel):
    image_size: int
    block_size: int
    blocks_count: int
    mapped_blocks_count: int
    checksum_type: Optional[str] = None
    ranges: List[BlockRange] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)


def _unmapped_blocks(discards: Iterable["DiskChunk"], block_size: int, capacity: int) -> set[int]:
    """Indices of blocks entirely covered by discard chunks."""
    unmapped: set[int] = set()
    # Adjacent discards can cover one block together; merge them first
    merged: List[Tuple[int, int]] = []
    for chunk in discards:
        if merged and chunk.start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], chunk.end))
        else:
            merged.append((chunk.start, chunk.end))

    for start, end in merged:
        first = (start + block_size - 1) // block_size
        for index in range(first, capacity // block_size + 1):
            block_start = index * block_size
            block_end = min(block_start + block_size, capacity) - 1
            if block_start >= capacity or block_end > end:
                break
            unmapped.add(index)
    return unmapped


def plan_block_ranges(
    discards: Iterable["DiskChunk"], block_size: int, capacity: int
) -> Tuple[int, List[BlockRange]]:
    """Pure part of the block map: blocks count and merged mapped ranges."""
    if block_size <= 0:
        raise ValueError(f"Invalid block_size={block_size}")
    blocks_count = (capacity + block_size - 1) // block_size
    unmapped = _unmapped_blocks(discards, block_size, capacity)

    ranges: List[BlockRange] = []
    for index in range(blocks_count):
        if index in unmapped:
            continue
        if ranges and ranges[-1].end == index - 1:
            ranges[-1].end = index
        else:
            ranges.append(BlockRange(start=index, end=index))
    return blocks_count, ranges


async def _range_checksum(disk: "Disk", block_range: BlockRange, block_size: int, capacity: int) -> str:
    digest = hashlib.sha256()
    start = block_range.start * block_size
    end = min((block_range.end + 1) * block_size, capacity)
    stream = await disk.get_stream(start, end - start, block_size)
    async for piece in stream:
        digest.update(piece)
    return digest.hexdigest()


async def get_block_map(disk: "Disk", block_size: int, capacity: int, calculate_checksums: bool) -> BlockMap:
    with timing_context("block_map_plan", log_threshold_ms=100.0, extra={"block_size": block_size}):
        blocks_count, ranges = plan_block_ranges(disk.get_discarded_chunks(), block_size, capacity)

    if calculate_checksums:
        for block_range in ranges:
            block_range.checksum = await _range_checksum(disk, block_range, block_size, capacity)

    mapped = sum(r.blocks for r in ranges)
    logger.info(
        f"BLOCKMAP: image_size={capacity} block_size={block_size} blocks={blocks_count} "
        f"mapped={mapped} ranges={len(ranges)} checksums={calculate_checksums}"
    )
    return BlockMap(
        image_size=capacity,
        block_size=block_size,
        blocks_count=blocks_count,
        mapped_blocks_count=mapped,
        checksum_type=CHECKSUM_TYPE if calculate_checksums else None,
        ranges=ranges,
    )
