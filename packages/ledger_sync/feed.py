"""File-backed source feed.

A feed directory holds, per physical account:

- ``<Account Name>.csv``: posted rows as exported by the issuer. Header
  columns ``Datum``, ``Beschreibung``, ``Betrag`` (the issuer's German export)
  or ``Date``, ``Description``, ``Amount``.
- ``<Account Name>.pending.json`` (optional): a JSON array of objects with
  ``amount``, ``charge_date`` and ``description``.

Both are read completely before reconciliation starts. The account name is
the file stem and must equal the ledger account's name.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import IO, Any, Protocol

from .errors import InputError
from .logging_setup import get_logger
from .models import FeedAccount, RawPendingRecord, RawPostedRecord

_logger = get_logger("ledger_sync.feed")

PENDING_SUFFIX = ".pending.json"

# Canonical field -> accepted header names, in preference order.
_POSTED_HEADERS: dict[str, tuple[str, ...]] = {
    "amount": ("Betrag", "Amount"),
    "date": ("Datum", "Date"),
    "description": ("Beschreibung", "Description"),
}
_PENDING_KEYS = ("amount", "charge_date", "description")


class SourceFeed(Protocol):
    def fetch(self) -> list[FeedAccount]: ...


def _resolve_headers(fieldnames: Iterable[str] | None, source: str) -> dict[str, str]:
    present = {h.strip().lstrip("\ufeff"): h for h in (fieldnames or [])}
    if not present:
        raise InputError(f"CSV appears to have no header row: {source}")
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for key, options in _POSTED_HEADERS.items():
        hit = next((present[o] for o in options if o in present), None)
        if hit is None:
            missing.append("/".join(options))
        else:
            resolved[key] = hit
    if missing:
        raise InputError(f"CSV header mismatch in {source}. Missing columns: " + ", ".join(missing))
    return resolved


def read_posted_csv(f: IO[str], *, source: str = "<stream>") -> list[RawPostedRecord]:
    reader = csv.DictReader(f)
    cols = _resolve_headers(reader.fieldnames, source)
    records: list[RawPostedRecord] = []
    for row in reader:
        if all((v or "").strip() == "" for k, v in row.items() if k is not None):
            continue
        records.append(
            RawPostedRecord(
                amount=(row.get(cols["amount"]) or "").strip(),
                date=(row.get(cols["date"]) or "").strip(),
                description=row.get(cols["description"]) or "",
            )
        )
    return records


def _pending_from_mapping(item: Any, source: str) -> RawPendingRecord:
    if not isinstance(item, Mapping):
        raise InputError(f"pending record in {source} is not an object", raw=item)
    missing = [k for k in _PENDING_KEYS if item.get(k) is None]
    if missing:
        raise InputError(
            f"pending record in {source} is missing: {', '.join(missing)}", raw=item
        )
    return RawPendingRecord(
        amount=str(item["amount"]),
        charge_date=str(item["charge_date"]),
        description=str(item["description"]),
    )


def read_pending_json(f: IO[str], *, source: str = "<stream>") -> list[RawPendingRecord]:
    try:
        data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"invalid JSON in {source}: {e}") from e
    if not isinstance(data, list):
        raise InputError(f"expected a JSON array of pending records in {source}")
    return [_pending_from_mapping(item, source) for item in data]


class DirectoryFeed:
    """Source feed backed by a directory of per-account export files."""

    def __init__(self, root: str | PathLike[str]) -> None:
        self.root = Path(root)

    def _account_names(self) -> list[str]:
        names: set[str] = set()
        for p in self.root.iterdir():
            if not p.is_file():
                continue
            if p.name.endswith(PENDING_SUFFIX):
                names.add(p.name[: -len(PENDING_SUFFIX)])
            elif p.suffix == ".csv":
                names.add(p.stem)
        return sorted(names)

    def fetch(self) -> list[FeedAccount]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"feed directory not found: {self.root}")
        accounts: list[FeedAccount] = []
        for name in self._account_names():
            posted: list[RawPostedRecord] = []
            pending: list[RawPendingRecord] = []
            csv_path = self.root / f"{name}.csv"
            pending_path = self.root / f"{name}{PENDING_SUFFIX}"
            try:
                if csv_path.is_file():
                    with csv_path.open(encoding="utf-8", newline="") as f:
                        posted = read_posted_csv(f, source=str(csv_path))
                if pending_path.is_file():
                    with pending_path.open(encoding="utf-8") as f:
                        pending = read_pending_json(f, source=str(pending_path))
            except UnicodeDecodeError as e:
                raise InputError(f"{self.root / name} feed file is not valid UTF-8: {e}") from e
            _logger.info(
                "feed:account name=%r posted=%d pending=%d", name, len(posted), len(pending)
            )
            accounts.append(FeedAccount(name=name, posted=tuple(posted), pending=tuple(pending)))
        return accounts


__all__ = [
    "DirectoryFeed",
    "SourceFeed",
    "read_pending_json",
    "read_posted_csv",
]
