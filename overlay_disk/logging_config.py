import logging
import os
import sys
from typing import Protocol

from loki_logger_handler.loki_logger_handler import LokiLoggerHandler

from overlay_disk.device_context import device_id_context


class LoggingConfig(Protocol):
    log_level: str
    loki_enabled: bool
    loki_url: str
    environment: str


class DeviceIDFilter(logging.Filter):
    """Logging filter that ensures device_id is always present in log records.

    Reads device_id from the contextvar if not already in the record.
    If no device is bound, defaults to 'no-device-id'.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "device_id"):
            record.device_id = device_id_context.get()
        return True


def setup_loki_logging(config: LoggingConfig, service_name: str, include_device_id: bool = True) -> logging.Logger:
    """
    Configure logging with optional Loki handler and device ID support.

    Args:
        config: Application configuration
        service_name: Name of the service (e.g., "blockmap", "dump")
        include_device_id: Whether to include device_id in log format (default: True)

    Returns:
        Configured logger instance
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if config.loki_enabled and config.loki_url:
        loki_handler = LokiLoggerHandler(
            url=config.loki_url,
            labels={
                "service": service_name,
                "environment": config.environment,
                "host": os.getenv("HOSTNAME", "unknown"),
            },
            timeout=10,
            compressed=True,
        )
        handlers.append(loki_handler)

    if include_device_id:
        device_filter = DeviceIDFilter()
        for handler in handlers:
            handler.addFilter(device_filter)
        log_format = "%(asctime)s - [%(device_id)s] - %(name)s - %(levelname)s - %(message)s"
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
    )

    return logging.getLogger(service_name)
