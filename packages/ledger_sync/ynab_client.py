"""Target-ledger client interface and a thin YNAB REST implementation.

The engine depends only on :class:`LedgerClient`. :class:`YnabClient` talks to
``https://api.ynab.com/v1`` with a bearer token over ``urllib.request`` and
validates responses into the package models. Read failures raise
:class:`LedgerSyncError` (fatal: reconciliation needs both ledgers); write
failures raise :class:`MutationFailure` so the planner can log and continue.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from .config import Settings
from .errors import LedgerSyncError, MutationFailure
from .logging_setup import get_logger
from .models import Account, CandidateTransaction, ExistingTransaction

_logger = get_logger("ledger_sync.ynab_client")


class LedgerClient(Protocol):
    def list_accounts(self) -> list[Account]: ...

    def list_transactions(self) -> list[ExistingTransaction]: ...

    def create_transactions(self, transactions: Sequence[CandidateTransaction]) -> None: ...

    def update_transaction(self, transaction_id: str, fields: Mapping[str, Any]) -> None: ...

    def delete_transaction(self, transaction_id: str) -> None: ...


class _HttpError(Exception):
    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status


class YnabClient:
    """Minimal YNAB API client for one budget."""

    def __init__(
        self,
        *,
        api_token: str,
        budget_id: str,
        base_url: str = "https://api.ynab.com/v1",
        timeout: float = 30.0,
    ) -> None:
        self._token = api_token
        self._budget_path = f"/budgets/{urllib.parse.quote(budget_id, safe='')}"
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> YnabClient:
        token, budget_id = settings.require_ledger_access()
        return cls(api_token=token, budget_id=budget_id, base_url=settings.api_base_url)

    # ---- transport -----------------------------------------------------------

    def _request(self, method: str, path: str, body: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{self._budget_path}{path}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Authorization", f"Bearer {self._token}")
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/json")

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except OSError:
                err_body = ""
            raise _HttpError(e.code, f"{e.code} {e.reason}: {err_body}") from e
        except urllib.error.URLError as e:
            raise _HttpError(None, f"network error: {e.reason}") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as e:
            raise _HttpError(None, "response is not valid JSON") from e

    # ---- reads ---------------------------------------------------------------

    def _get_data(self, path: str, key: str) -> list[Any]:
        try:
            payload = self._request("GET", path)
        except _HttpError as e:
            raise LedgerSyncError(f"failed to fetch {key} from YNAB: {e}") from e
        try:
            items = payload["data"][key]
        except (KeyError, TypeError) as e:
            raise LedgerSyncError(f"unexpected YNAB response shape for {key}") from e
        if not isinstance(items, list):
            raise LedgerSyncError(f"unexpected YNAB response shape for {key}")
        return items

    def list_accounts(self) -> list[Account]:
        items = self._get_data("/accounts", "accounts")
        accounts = [Account.from_api(a) for a in items if not a.get("deleted")]
        _logger.info(
            "ynab_client:accounts count=%d names=%s", len(accounts), [a.name for a in accounts]
        )
        return accounts

    def list_transactions(self) -> list[ExistingTransaction]:
        items = self._get_data("/transactions", "transactions")
        try:
            txs = [ExistingTransaction.model_validate(t) for t in items]
        except ValidationError as e:
            raise LedgerSyncError(f"invalid transaction in YNAB response: {e}") from e
        _logger.info("ynab_client:transactions count=%d", len(txs))
        return txs

    # ---- writes --------------------------------------------------------------

    def create_transactions(self, transactions: Sequence[CandidateTransaction]) -> None:
        body = {"transactions": [t.to_payload() for t in transactions]}
        try:
            self._request("POST", "/transactions", body)
        except _HttpError as e:
            raise MutationFailure("create", str(e), status=e.status) from e

    def update_transaction(self, transaction_id: str, fields: Mapping[str, Any]) -> None:
        path = f"/transactions/{urllib.parse.quote(transaction_id, safe='')}"
        try:
            self._request("PUT", path, {"transaction": dict(fields)})
        except _HttpError as e:
            raise MutationFailure(
                "update", str(e), transaction_id=transaction_id, status=e.status
            ) from e

    def delete_transaction(self, transaction_id: str) -> None:
        path = f"/transactions/{urllib.parse.quote(transaction_id, safe='')}"
        try:
            self._request("DELETE", path)
        except _HttpError as e:
            raise MutationFailure(
                "delete", str(e), transaction_id=transaction_id, status=e.status
            ) from e


__all__ = ["LedgerClient", "YnabClient"]
