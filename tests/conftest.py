# tests/conftest.py
"""
Global test bootstrap
- Pins a deterministic environment BEFORE `tubely` is imported (settings are
  read at import time)
- Pulls in shared fixtures (app, auth, fakes)
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set before importing the app so Settings() picks it up)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "pytest-secret-not-for-production")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_BUCKET_NAME", "tubely-test")
os.environ.setdefault("STORAGE_ACCESS_MODE", "signed")
os.environ.pop("LOG_FILE", None)
os.environ.pop("AWS_S3_ENDPOINT_URL", None)
os.environ.pop("CLOUDFRONT_DOMAIN", None)

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Shared fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.fakes import *  # noqa: F401,F403
from tests.fixtures.app import *    # noqa: F401,F403
from tests.fixtures.auth import *   # noqa: F401,F403


@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"
