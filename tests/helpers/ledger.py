"""Builders and an in-memory ledger fake for ``ledger_sync`` tests.

``FakeLedger`` records every mutation in call order so tests can assert on
the exact sequence the planner issued. ``fail_ids`` makes delete/update calls
for those transaction ids raise :class:`MutationFailure`; ``fail_create``
does the same for the bulk create.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from ledger_sync.errors import MutationFailure
from ledger_sync.models import (
    Account,
    CandidateTransaction,
    ClearedState,
    ExistingTransaction,
    FeedAccount,
    SubTransaction,
)


def existing_tx(
    id: str = "e1",
    *,
    account_id: str = "acc-1",
    account_name: str = "Gold Card",
    on: date = date(2024, 5, 1),
    amount: int = -2000,
    payee_name: str | None = "Amazon",
    import_payee_name: str | None = None,
    import_id: str | None = None,
    cleared: str = "uncleared",
    approved: bool = False,
    deleted: bool = False,
    memo: str | None = None,
    category_id: str | None = None,
    flag_color: str | None = None,
    subtransactions: Sequence[Mapping[str, Any]] = (),
) -> ExistingTransaction:
    return ExistingTransaction.model_validate(
        {
            "id": id,
            "account_id": account_id,
            "account_name": account_name,
            "date": on.isoformat(),
            "amount": amount,
            "payee_name": payee_name,
            "import_payee_name": import_payee_name,
            "import_id": import_id,
            "cleared": cleared,
            "approved": approved,
            "deleted": deleted,
            "memo": memo,
            "category_id": category_id,
            "flag_color": flag_color,
            "subtransactions": list(subtransactions),
        }
    )


def candidate_tx(
    *,
    account_id: str = "acc-1",
    amount: int = -2000,
    on: date = date(2024, 5, 1),
    payee_name: str = "Amazon",
    cleared: ClearedState = ClearedState.CLEARED,
    import_id: str | None = None,
    flag_color: str | None = None,
) -> CandidateTransaction:
    tag = "YNAB" if cleared == ClearedState.CLEARED else "YNAB-pending"
    return CandidateTransaction(
        account_id=account_id,
        amount=amount,
        date=on,
        payee_name=payee_name,
        cleared=cleared,
        import_id=import_id or f"{tag}:{amount}:{on.isoformat()}:1",
        flag_color=flag_color,
    )


def split(amount: int, category_id: str) -> dict[str, Any]:
    return SubTransaction(amount=amount, category_id=category_id).model_dump()


class FakeLedger:
    def __init__(
        self,
        accounts: Sequence[Account] = (),
        transactions: Sequence[ExistingTransaction] = (),
        *,
        fail_ids: Sequence[str] = (),
        fail_create: bool = False,
    ) -> None:
        self.accounts = list(accounts)
        self.transactions = list(transactions)
        self.fail_ids = set(fail_ids)
        self.fail_create = fail_create
        self.calls: list[tuple[str, Any]] = []

    def list_accounts(self) -> list[Account]:
        return list(self.accounts)

    def list_transactions(self) -> list[ExistingTransaction]:
        return list(self.transactions)

    def create_transactions(self, transactions: Sequence[CandidateTransaction]) -> None:
        self.calls.append(("create", list(transactions)))
        if self.fail_create:
            raise MutationFailure("create", "boom", status=500)

    def update_transaction(self, transaction_id: str, fields: Mapping[str, Any]) -> None:
        self.calls.append(("update", (transaction_id, dict(fields))))
        if transaction_id in self.fail_ids:
            raise MutationFailure("update", "boom", transaction_id=transaction_id, status=500)

    def delete_transaction(self, transaction_id: str) -> None:
        self.calls.append(("delete", transaction_id))
        if transaction_id in self.fail_ids:
            raise MutationFailure("delete", "boom", transaction_id=transaction_id, status=404)

    @property
    def created(self) -> list[CandidateTransaction]:
        return [t for op, batch in self.calls if op == "create" for t in batch]


class StaticFeed:
    def __init__(self, accounts: Sequence[FeedAccount]) -> None:
        self.accounts = list(accounts)

    def fetch(self) -> list[FeedAccount]:
        return list(self.accounts)
