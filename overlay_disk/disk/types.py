from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from overlay_disk.disk.chunk import DiskChunk


@dataclass(frozen=True)
class RawRange:
    """Inclusive interval that has to be fetched from the backend."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


ReadPlanItem = Union[RawRange, DiskChunk]
