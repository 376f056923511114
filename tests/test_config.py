import io
import logging

import pytest

from ledger_sync import logging_setup
from ledger_sync.config import YNAB_AMOUNT_SCALE, Settings
from ledger_sync.errors import ConfigError


def test_defaults_match_engine_conventions():
    s = Settings()
    assert s.amount_scale == 100
    assert s.match_window_days == 3
    assert s.payee_similarity_threshold == 0.25
    assert s.stale_memo == "Stale! Please review and remove"
    assert "purple" in s.allowed_flags


def test_from_env_reads_credentials_and_tunables(monkeypatch):
    monkeypatch.setenv("YNAB_API_KEY", "tok")
    monkeypatch.setenv("BUDGET_ID", "b-1")
    monkeypatch.setenv("LEDGER_SYNC_MATCH_WINDOW_DAYS", "5")
    monkeypatch.setenv("LEDGER_SYNC_PAYEE_THRESHOLD", "0.4")
    s = Settings.from_env()
    assert s.require_ledger_access() == ("tok", "b-1")
    assert s.amount_scale == YNAB_AMOUNT_SCALE
    assert (s.match_window_days, s.payee_similarity_threshold) == (5, 0.4)


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setenv("BUDGET_ID", "env-budget")
    assert Settings.from_env(budget_id="cli-budget").budget_id == "cli-budget"
    assert Settings.from_env(budget_id=None).budget_id == "env-budget"


def test_from_env_invalid_value_is_config_error(monkeypatch):
    monkeypatch.setenv("LEDGER_SYNC_AMOUNT_SCALE", "0")
    with pytest.raises(ConfigError):
        Settings.from_env()


def test_settings_are_frozen_and_strict():
    with pytest.raises(ValueError):
        Settings(unknown_field=1)
    s = Settings()
    with pytest.raises(ValueError):
        s.amount_scale = 1000


# ---- logging -----------------------------------------------------------------


@pytest.fixture
def pkg_logger():
    logger = logging.getLogger("ledger_sync")
    saved = (list(logger.handlers), logger.level, logger.propagate, logging_setup._handler)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
    logging_setup._handler = saved[3]


@pytest.mark.parametrize(("raw", "expected"), [("debug", 10), ("WARNING", 30), ("15", 15), (20, 20)])
def test_resolve_level(raw, expected):
    assert logging_setup.resolve_level(raw) == expected


def test_resolve_level_from_env(monkeypatch):
    monkeypatch.setenv("LEDGER_SYNC_LOG_LEVEL", "error")
    assert logging_setup.resolve_level(None) == logging.ERROR


def test_resolve_level_rejects_unknown():
    with pytest.raises(ValueError):
        logging_setup.resolve_level("chatty")


def test_configure_logging_replaces_its_handler(pkg_logger):
    first, second = io.StringIO(), io.StringIO()
    logging_setup.configure_logging("INFO", stream=first)
    logging_setup.configure_logging("INFO", fmt="%(message)s", stream=second)
    logging_setup.get_logger("ledger_sync.engine").info("engine:plan create=%d", 1)
    assert first.getvalue() == ""
    assert second.getvalue() == "engine:plan create=1\n"
    assert len(pkg_logger.handlers) == 1
