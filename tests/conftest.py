"""Pytest configuration.

The configuration is loaded when ``src.catalog.runtime.context`` is first
imported, so the test environment is set up before any project import.
"""

import os
from pathlib import Path

_ROOT = Path(__file__).resolve().parent.parent

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_CONFIG_FILE", str(_ROOT / "config.yaml"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TOKEN_SIGNING_SECRET", "test-token-signing-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "plain")

from tests.fixtures import *  # noqa: E402,F401,F403
