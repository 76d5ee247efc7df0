import logging
from unittest.mock import Mock
from unittest.mock import patch

import pytest

from overlay_disk.device_context import bind_device_id
from overlay_disk.device_context import device_id_context
from overlay_disk.device_context import generate_device_id
from overlay_disk.logging_config import DeviceIDFilter
from overlay_disk.logging_config import setup_loki_logging


@pytest.fixture
def mock_config():
    config = Mock()
    config.log_level = "INFO"
    config.loki_enabled = False
    config.loki_url = ""
    config.environment = "test"
    return config


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg="Test message",
        args=(),
        exc_info=None,
    )


def test_device_id_filter_adds_default_when_unbound():
    record = _record()

    assert DeviceIDFilter().filter(record) is True
    assert record.device_id == "no-device-id"


def test_device_id_filter_reads_bound_device():
    record = _record()

    with bind_device_id("a1b2c3d4e5f6"):
        DeviceIDFilter().filter(record)

    assert record.device_id == "a1b2c3d4e5f6"
    assert device_id_context.get() == "no-device-id"


def test_device_id_filter_preserves_existing_device_id():
    record = _record()
    record.device_id = "from-extra"

    with bind_device_id("bound"):
        DeviceIDFilter().filter(record)

    assert record.device_id == "from-extra"


def test_generate_device_id_is_short_hex():
    device_id = generate_device_id()

    assert len(device_id) == 12
    int(device_id, 16)


def test_device_id_filter_works_with_logger():
    logger = logging.getLogger("test_device_filter_logger")
    logger.setLevel(logging.INFO)

    log_records = []

    class RecordCapture(logging.Handler):
        def emit(self, record):
            log_records.append(record)

    capture_handler = RecordCapture()
    capture_handler.addFilter(DeviceIDFilter())
    logger.addHandler(capture_handler)

    with bind_device_id("dev123"):
        logger.info("Test message")

    assert len(log_records) == 1
    assert log_records[0].device_id == "dev123"

    logger.handlers.clear()


def test_setup_loki_logging_returns_logger(mock_config):
    logger = setup_loki_logging(mock_config, "test_service")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "test_service"


def test_setup_loki_logging_without_loki(mock_config):
    with patch("overlay_disk.logging_config.LokiLoggerHandler") as loki_handler:
        setup_loki_logging(mock_config, "test_service")

    loki_handler.assert_not_called()


def test_setup_loki_logging_with_loki(mock_config):
    mock_config.loki_enabled = True
    mock_config.loki_url = "http://loki:3100/loki/api/v1/push"

    with patch("overlay_disk.logging_config.LokiLoggerHandler") as loki_handler, patch(
        "overlay_disk.logging_config.logging.basicConfig"
    ) as basic_config:
        loki_handler.return_value = Mock(spec=logging.Handler)
        setup_loki_logging(mock_config, "test_service")

    loki_handler.assert_called_once()
    assert loki_handler.call_args.kwargs["labels"]["service"] == "test_service"
    assert len(basic_config.call_args.kwargs["handlers"]) == 2
