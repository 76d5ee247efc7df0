import httpx
import pytest

from overlay_disk.config import get_config
from overlay_disk.config import load_config


def test_defaults():
    config = load_config()

    assert config.discard_is_zero is True
    assert config.stream_high_water_mark == 16384
    assert config.stream_min_high_water_mark == 16
    assert config.s3_region == "us-east-1"
    assert isinstance(config.http_timeout, httpx.Timeout)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("OVERLAY_DISK_DISCARD_IS_ZERO", "False")
    monkeypatch.setenv("OVERLAY_DISK_STREAM_HIGH_WATER_MARK", "4096")
    monkeypatch.setenv("OVERLAY_DISK_S3_ENDPOINT_URL", "  http://minio:9000 ")

    config = load_config()

    assert config.discard_is_zero is False
    assert config.stream_high_water_mark == 4096
    assert config.s3_endpoint_url == "http://minio:9000"


def test_high_water_mark_below_floor_is_rejected(monkeypatch):
    monkeypatch.setenv("OVERLAY_DISK_STREAM_HIGH_WATER_MARK", "8")

    with pytest.raises(ValueError):
        load_config()


def test_non_positive_floor_is_rejected(monkeypatch):
    monkeypatch.setenv("OVERLAY_DISK_STREAM_MIN_HIGH_WATER_MARK", "0")

    with pytest.raises(ValueError):
        load_config()


def test_get_config_is_cached():
    assert get_config() is get_config()
