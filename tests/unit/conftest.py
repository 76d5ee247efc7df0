import os
from pathlib import Path
from typing import Generator

import dotenv
import pytest

from overlay_disk.config import get_config


@pytest.fixture(scope="session", autouse=True)
def _load_test_env() -> Generator[None, None, None]:
    """Load test environment variables from the optional local env file."""
    project_root = Path(__file__).parents[2]
    dotenv.load_dotenv(project_root / ".env.test-local", override=True)
    os.environ["ENVIRONMENT"] = "test"
    os.environ.setdefault("OVERLAY_DISK_LOG_LEVEL", "DEBUG")
    yield


@pytest.fixture(autouse=True)
def _fresh_config() -> Generator[None, None, None]:
    """Config is cached per process; tests changing env vars need a rebuild."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()
