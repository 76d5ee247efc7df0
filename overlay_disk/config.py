import dataclasses
import functools

import dotenv
import httpx

from overlay_disk.utils import as_bool
from overlay_disk.utils import env


dotenv.load_dotenv()


@dataclasses.dataclass
class Config:
    """Runtime settings for disks, backends and logging."""

    # Logging
    log_level: str = env("OVERLAY_DISK_LOG_LEVEL:INFO")
    loki_url: str = env("LOKI_URL:", convert=str)
    loki_enabled: bool = env("LOKI_ENABLED:false", convert=as_bool)
    environment: str = env("ENVIRONMENT:development")

    # Disk behaviour
    discard_is_zero: bool = env("OVERLAY_DISK_DISCARD_IS_ZERO:true", convert=as_bool)
    stream_high_water_mark: int = env("OVERLAY_DISK_STREAM_HIGH_WATER_MARK:16384", convert=int)
    stream_min_high_water_mark: int = env("OVERLAY_DISK_STREAM_MIN_HIGH_WATER_MARK:16", convert=int)
    # Backend reads slower than this are logged with their range
    slow_read_threshold_ms: float = env("OVERLAY_DISK_SLOW_READ_THRESHOLD_MS:250", convert=float)

    # S3 backend
    s3_endpoint_url: str = env("OVERLAY_DISK_S3_ENDPOINT_URL:", convert=str)
    s3_region: str = env("OVERLAY_DISK_S3_REGION:us-east-1")
    s3_access_key: str = env("AWS_ACCESS_KEY_ID:", convert=str)
    s3_secret_key: str = env("AWS_SECRET_ACCESS_KEY:", convert=str)

    # HTTP backend
    http_timeout_seconds: float = env("OVERLAY_DISK_HTTP_TIMEOUT_SECONDS:30", convert=float)
    http_connect_timeout_seconds: float = env("OVERLAY_DISK_HTTP_CONNECT_TIMEOUT_SECONDS:10", convert=float)

    @property
    def http_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.http_timeout_seconds, connect=self.http_connect_timeout_seconds)


def load_config() -> Config:
    """Build a fresh configuration from the environment and validate it."""
    cfg = Config()

    if cfg.stream_min_high_water_mark <= 0:
        raise ValueError(
            f"OVERLAY_DISK_STREAM_MIN_HIGH_WATER_MARK must be positive, got {cfg.stream_min_high_water_mark}"
        )
    if cfg.stream_high_water_mark < cfg.stream_min_high_water_mark:
        raise ValueError(
            "OVERLAY_DISK_STREAM_HIGH_WATER_MARK must be >= OVERLAY_DISK_STREAM_MIN_HIGH_WATER_MARK "
            f"({cfg.stream_high_water_mark} < {cfg.stream_min_high_water_mark})"
        )

    # Normalize optional endpoint (empty string means AWS default)
    object.__setattr__(cfg, "s3_endpoint_url", (cfg.s3_endpoint_url or "").strip())

    return cfg


@functools.cache
def get_config() -> Config:
    """Get application configuration."""
    return load_config()
