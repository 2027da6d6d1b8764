from __future__ import annotations

import sys
from typing import Any
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


_CONFIG_ENV_VARS = (
    "PORTAL_BASE_URL",
    "PORTAL_USERNAME",
    "PORTAL_PASSWORD",
    "SERVICE_NAME",
    "HEADLESS",
    "SIMULATE_TIMEOUT",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "EMAIL_RECIPIENTS",
    "REPORT_TIMEZONE",
    "LOG_LEVEL",
    "LOG_FILE",
    "NOISY_LOG_LEVEL",
    "DEBUG_DIR",
)


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "portal: integration smoke tests that require real portal credentials",
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """
    Remove every config env var so tests only see what they set.
    """
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
