"""Pytest configuration for ``ledger_sync``.

Settings are built from the environment in the CLI path, so each test runs
with the package's variables cleared to keep results independent of the
developer's shell or a local ``.env``.
"""

from __future__ import annotations

import pytest

from ledger_sync.config import Settings

_ENV_VARS = (
    "YNAB_API_KEY",
    "BUDGET_ID",
    "LEDGER_SYNC_API_BASE_URL",
    "LEDGER_SYNC_AMOUNT_SCALE",
    "LEDGER_SYNC_MATCH_WINDOW_DAYS",
    "LEDGER_SYNC_PAYEE_THRESHOLD",
    "LEDGER_SYNC_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    """Engine settings in cents (scale 100)."""

    return Settings()
