"""Pytest configuration for test isolation.

The application reads ``DATABASE_URL``, ``SMS_LEDGER_MODEL`` and
``SMS_LEDGER_LOG_LEVEL`` from the environment and caches one SQLAlchemy engine
per database URL. To keep tests hermetic, each test starts without those
variables, with no cached engines, and with the package logger unconfigured
(the CLI's root callback configures it once per process otherwise).
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace packages are importable without an install
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p for p in [str(_ROOT / "packages"), str(_ROOT / "libs/db/src"), str(_ROOT)] if p not in sys.path
]

from ledger_db.client import dispose_engines  # noqa: E402
from sms_ledger.logging_setup import reset_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for var in ("DATABASE_URL", "SMS_LEDGER_MODEL", "SMS_LEDGER_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield
    dispose_engines()
    reset_logging()
