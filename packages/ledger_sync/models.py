"""Data models for ``ledger_sync``.

Two families of records flow through the engine:

- Source-feed records (:class:`RawPostedRecord`, :class:`RawPendingRecord`)
  exactly as the issuer exports them, grouped per physical account in a
  :class:`FeedAccount`.
- Target-ledger records: :class:`ExistingTransaction` (validated from the
  ledger's JSON) and :class:`CandidateTransaction` (built by the normalizer
  and submitted back to the ledger).

Amounts are signed integers in minor units (negative = outflow). Dates are
calendar dates without a time component.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ClearedState(StrEnum):
    """Clearance state as stored by the target ledger."""

    CLEARED = "cleared"
    UNCLEARED = "uncleared"
    RECONCILED = "reconciled"


# ---------------------------------------------------------------------------
# Source feed
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawPostedRecord:
    """A settled feed row: raw amount (positive = spend), ``DD/MM/YYYY`` date."""

    amount: str
    date: str
    description: str


@dataclass(frozen=True, slots=True)
class RawPendingRecord:
    """An authorized-but-unsettled feed row; ``charge_date`` is ``YYYY-MM-DD``."""

    amount: str
    charge_date: str
    description: str


@dataclass(frozen=True, slots=True)
class FeedAccount:
    """All records fetched for one physical account, matched to the ledger by name."""

    name: str
    posted: tuple[RawPostedRecord, ...] = ()
    pending: tuple[RawPendingRecord, ...] = ()


# ---------------------------------------------------------------------------
# Target ledger
# ---------------------------------------------------------------------------


class SubTransaction(BaseModel):
    """A category split line of a ledger transaction."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    amount: int
    payee_id: str | None = None
    payee_name: str | None = None
    category_id: str | None = None
    memo: str | None = None
    deleted: bool = False

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"deleted"})


class ExistingTransaction(BaseModel):
    """A transaction already recorded in the target ledger.

    ``amount`` is the ledger's current amount. Ledgers may adjust it after
    matching, so the amount originally imported is recovered from the
    ``import_id`` (see :attr:`original_amount`).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    account_id: str
    account_name: str | None = None
    date: dt.date
    amount: int
    payee_name: str | None = None
    import_payee_name: str | None = None
    import_id: str | None = None
    cleared: ClearedState = ClearedState.UNCLEARED
    approved: bool = False
    deleted: bool = False
    memo: str | None = None
    category_id: str | None = None
    flag_color: str | None = None
    subtransactions: tuple[SubTransaction, ...] = ()

    @field_validator("subtransactions", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def effective_payee_name(self) -> str | None:
        return self.import_payee_name or self.payee_name

    @property
    def original_amount(self) -> int:
        """Amount encoded in ``<tag>:<amount>:<date>:<n>``, else the current amount."""

        if self.import_id:
            parts = self.import_id.split(":")
            if len(parts) > 1:
                try:
                    return int(parts[1])
                except ValueError:
                    pass
        return self.amount

    @property
    def is_pending(self) -> bool:
        return self.cleared == ClearedState.UNCLEARED and not self.deleted

    @property
    def live_subtransactions(self) -> tuple[SubTransaction, ...]:
        return tuple(s for s in self.subtransactions if not s.deleted)


@dataclass(frozen=True, slots=True)
class CandidateTransaction:
    """A normalized feed transaction queued for creation in the target ledger."""

    account_id: str
    amount: int
    date: dt.date
    payee_name: str
    cleared: ClearedState
    import_id: str
    flag_color: str | None = None
    approved: bool = False
    category_id: str | None = None
    memo: str | None = None
    subtransactions: tuple[SubTransaction, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """Render as a ledger ``SaveTransaction`` body."""

        payload: dict[str, Any] = {
            "account_id": self.account_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "payee_name": self.payee_name,
            "cleared": self.cleared.value,
            "approved": self.approved,
            "import_id": self.import_id,
            "flag_color": self.flag_color,
            "category_id": self.category_id,
            "memo": self.memo,
        }
        if self.subtransactions:
            payload["subtransactions"] = [s.to_payload() for s in self.subtransactions]
        return payload


@dataclass(frozen=True, slots=True)
class Account:
    """A target-ledger account and the candidates queued for it during a run."""

    id: str
    name: str
    queued: tuple[CandidateTransaction, ...] = field(default=())

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Account:
        return cls(id=str(data["id"]), name=str(data["name"]))


def format_transaction(
    tx: CandidateTransaction | ExistingTransaction, *, amount_scale: int = 100
) -> str:
    """One-line rendering used in log messages."""

    return f"{tx.account_id}: ${tx.amount / amount_scale:.2f} at {tx.payee_name} on {tx.date}"


__all__ = [
    "Account",
    "CandidateTransaction",
    "ClearedState",
    "ExistingTransaction",
    "FeedAccount",
    "RawPendingRecord",
    "RawPostedRecord",
    "SubTransaction",
    "format_transaction",
]
