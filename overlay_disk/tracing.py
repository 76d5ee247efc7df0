import inspect
from functools import wraps
from typing import Any
from typing import Callable

from opentelemetry import trace
from opentelemetry.trace import Status
from opentelemetry.trace import StatusCode

from overlay_disk.device_context import bind_device_id


tracer = trace.get_tracer(__name__)

_OFFSET_ARGS = ("file_offset", "offset", "position")


def trace_disk_operation(operation_name: str) -> Callable[[Callable], Callable]:
    """
    Decorator to trace Disk coroutine methods.

    Captures:
    - Device context (device_id, backend class, read_only)
    - Range context (offset, length) when the call carries one
    - Error details (exception type, message)

    The disk's device_id is also bound to the logging context for the
    duration of the call, so every log line emitted underneath carries it.

    Args:
        operation_name: Operation name for the span (e.g., "read", "write")

    Example usage:
        @trace_disk_operation("read")
        async def read(self, buffer, buffer_offset, length, file_offset):
            ...
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind_partial(*args, **kwargs)
            disk = bound.arguments.get("self")
            device_id = getattr(disk, "device_id", None) or "no-device-id"

            with bind_device_id(device_id), tracer.start_as_current_span(f"disk.{operation_name}") as span:
                span.set_attribute("disk.operation", operation_name)
                span.set_attribute("disk.device_id", device_id)
                if disk is not None:
                    span.set_attribute("disk.backend", type(disk).__name__)
                    span.set_attribute("disk.read_only", bool(getattr(disk, "read_only", False)))

                for name in _OFFSET_ARGS:
                    value = bound.arguments.get(name)
                    if isinstance(value, int):
                        span.set_attribute("disk.offset", value)
                        break
                length = bound.arguments.get("length")
                if isinstance(length, int):
                    span.set_attribute("disk.length", length)

                try:
                    result = await func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    span.set_attribute("error.message", str(e))
                    raise

        return wrapper

    return decorator
