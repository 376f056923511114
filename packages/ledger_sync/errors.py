"""Exception taxonomy for ``ledger_sync``.

Fatal errors abort the run: :class:`InputError`, :class:`EmptyFeed`,
:class:`ConfigError` and plain :class:`LedgerSyncError` raised while reading
either ledger. :class:`NoAccountMatch` and :class:`MutationFailure` are
non-fatal; the engine catches them, logs them and continues.
"""

from __future__ import annotations


class LedgerSyncError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(LedgerSyncError):
    """Required configuration (token, budget) is missing or invalid."""


class InputError(LedgerSyncError, ValueError):
    """A raw feed record carries a malformed amount, date or column set."""

    def __init__(self, message: str, *, raw: object = None) -> None:
        super().__init__(message)
        self.raw = raw


class EmptyFeed(LedgerSyncError):
    """The source feed yielded zero accounts (likely an upstream fetch failure)."""


class NoAccountMatch(LedgerSyncError):
    """A feed account has no same-named ledger account."""

    def __init__(self, account_name: str) -> None:
        super().__init__(
            f'There is no ledger account named "{account_name}". '
            "Rename the appropriate ledger account to link."
        )
        self.account_name = account_name


class MutationFailure(LedgerSyncError):
    """A single create/update/delete call against the target ledger failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        transaction_id: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.transaction_id = transaction_id
        self.status = status


__all__ = [
    "ConfigError",
    "EmptyFeed",
    "InputError",
    "LedgerSyncError",
    "MutationFailure",
    "NoAccountMatch",
]
