import contextlib
import contextvars
import uuid
from typing import Iterator


device_id_context: contextvars.ContextVar[str] = contextvars.ContextVar("device_id", default="no-device-id")


def generate_device_id() -> str:
    """Generate a 12-character hex device ID from UUID4.

    Returns:
        A 12-character lowercase hex string (first 48 bits of UUID4).
        Example: "a1b2c3d4e5f6"
    """
    return uuid.uuid4().hex[:12]


@contextlib.contextmanager
def bind_device_id(device_id: str) -> Iterator[str]:
    """Set device_id for log records emitted inside the block, restoring the previous value after."""
    token = device_id_context.set(device_id)
    try:
        yield device_id
    finally:
        device_id_context.reset(token)
