"""Run configuration for ``ledger_sync``.

All tunables live on one frozen :class:`Settings` object that callers pass to
the engine explicitly. Nothing in the package reads the environment at import
time; :meth:`Settings.from_env` is the only place environment variables are
consulted (the CLI loads ``.env`` via ``python-dotenv`` before calling it).
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError

YNAB_API_BASE_URL = "https://api.ynab.com/v1"
# YNAB stores amounts in milliunits.
YNAB_AMOUNT_SCALE = 1000


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Target-ledger access (unused by the pure engine)
    api_token: str | None = None
    budget_id: str | None = None
    api_base_url: str = YNAB_API_BASE_URL

    # Normalization
    amount_scale: int = Field(default=100, gt=0)
    posted_import_tag: str = "YNAB"
    pending_import_tag: str = "YNAB-pending"
    posted_flag: str | None = "green"
    pending_flag: str | None = "yellow"

    # Matching
    match_window_days: int = Field(default=3, ge=0)
    payee_similarity_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    wallet_prefixes: tuple[str, ...] = ("Aplpay ", "Tst* ")

    # Posted-transaction enrichment
    protected_payee_prefixes: tuple[str, ...] = (
        "Transfer : ",
        "Starting Balance",
        "Manual Balance Adjustment",
        "Reconciliation Balance Adjustment",
    )
    allowed_flags: tuple[str, ...] = ("red", "orange", "yellow", "green", "blue", "purple")

    # Stale handling
    stale_flag: str = "red"
    stale_memo: str = "Stale! Please review and remove"

    @classmethod
    def from_env(cls, **overrides: object) -> Settings:
        """Build settings from ``YNAB_API_KEY``/``BUDGET_ID`` and ``LEDGER_SYNC_*``.

        The amount scale defaults to YNAB milliunits here. Explicit keyword
        ``overrides`` win over the environment.
        """

        values: dict[str, object] = {
            "api_token": os.getenv("YNAB_API_KEY") or None,
            "budget_id": os.getenv("BUDGET_ID") or None,
            "amount_scale": YNAB_AMOUNT_SCALE,
        }
        env_map = {
            "LEDGER_SYNC_API_BASE_URL": "api_base_url",
            "LEDGER_SYNC_AMOUNT_SCALE": "amount_scale",
            "LEDGER_SYNC_MATCH_WINDOW_DAYS": "match_window_days",
            "LEDGER_SYNC_PAYEE_THRESHOLD": "payee_similarity_threshold",
        }
        for env_name, key in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[key] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(values)
        except ValueError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

    def require_ledger_access(self) -> tuple[str, str]:
        """Return ``(api_token, budget_id)`` or raise :class:`ConfigError`."""

        if not self.api_token:
            raise ConfigError("You must provide the YNAB API token (YNAB_API_KEY)")
        if not self.budget_id:
            raise ConfigError("You must provide the YNAB budget ID (BUDGET_ID)")
        return self.api_token, self.budget_id


__all__ = ["Settings", "YNAB_AMOUNT_SCALE", "YNAB_API_BASE_URL"]
