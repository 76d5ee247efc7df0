"""Utility modules and functions for overlay_disk.

This package combines utility functions from utils_core.py with timing utilities.
"""

# Explicit imports only - no star imports to avoid namespace pollution
from overlay_disk.utils.timing import async_timing_context  # noqa: F401
from overlay_disk.utils.timing import log_timing  # noqa: F401
from overlay_disk.utils.timing import timing_context  # noqa: F401
from overlay_disk.utils_core import as_bool  # noqa: F401
from overlay_disk.utils_core import byte_range_header  # noqa: F401
from overlay_disk.utils_core import env  # noqa: F401


__all__ = [
    # From utils_core.py
    "as_bool",
    "byte_range_header",
    "env",
    # From timing.py
    "async_timing_context",
    "log_timing",
    "timing_context",
]
