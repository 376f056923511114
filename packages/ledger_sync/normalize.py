"""Feed record → :class:`CandidateTransaction` normalization.

Conventions
-----------
- Feed amounts are positive for spend; the ledger wants negative outflows.
  Amounts are parsed as decimals (``.`` or ``,`` as fractional separator),
  scaled to minor units, truncated toward zero and sign-inverted.
- Posted rows carry ``DD/MM/YYYY`` dates; pending rows carry ISO dates.
- Payees are titlecased and cut at the first double space, where issuers
  append merchant metadata.
- ``import_id`` is ``<tag>:<amount>:<date>:<occurrence>``. ``occurrence`` is
  1 + the number of earlier candidates in the same batch sharing
  ``(payee, amount, date)``, so identical input yields identical keys.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .config import Settings
from .errors import InputError
from .models import CandidateTransaction, ClearedState, RawPendingRecord, RawPostedRecord

_TITLE_START = re.compile(r"(?:^|\s|-)\S")


def parse_amount(raw: str | int | float | Decimal, *, scale: int) -> int:
    """Parse a feed amount into signed ledger minor units (spend → negative)."""

    if isinstance(raw, Decimal):
        d = raw
    elif isinstance(raw, int | float):
        d = Decimal(str(raw))
    else:
        s = (raw or "").strip().replace(" ", "")
        if not s:
            raise InputError("amount is empty", raw=raw)
        if "," in s and "." in s:
            # Whichever separator comes last is the fractional one.
            if s.rfind(",") > s.rfind("."):
                s = s.replace(".", "").replace(",", ".")
            else:
                s = s.replace(",", "")
        else:
            s = s.replace(",", ".")
        try:
            d = Decimal(s)
        except InvalidOperation as exc:
            raise InputError(f"invalid amount: {raw!r}", raw=raw) from exc
    if not d.is_finite():
        raise InputError(f"invalid amount: {raw!r}", raw=raw)
    # int() on Decimal truncates toward zero.
    return -int(d * scale)


def parse_posted_date(raw: str) -> date:
    """``DD/MM/YYYY`` → :class:`date`."""

    s = (raw or "").strip()
    try:
        return datetime.strptime(s, "%d/%m/%Y").date()
    except ValueError as exc:
        raise InputError(f"invalid DD/MM/YYYY date: {raw!r}", raw=raw) from exc


def parse_pending_date(raw: str | date) -> date:
    if isinstance(raw, date):
        return raw
    s = (raw or "").strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError as exc:
        raise InputError(f"invalid YYYY-MM-DD date: {raw!r}", raw=raw) from exc


def titleize(text: str) -> str:
    return _TITLE_START.sub(lambda m: m.group(0).upper(), text.lower())


def clean_payee(description: str) -> str:
    return titleize(description or "").split("  ")[0].strip()


def make_import_id(tag: str, amount: int, on: date, occurrence: int) -> str:
    return f"{tag}:{amount}:{on.isoformat()}:{occurrence}"


class _OccurrenceCounter:
    """Assigns 1-based occurrence numbers per ``(payee, amount, date)``."""

    def __init__(self) -> None:
        self._seen: Counter[tuple[str, int, date]] = Counter()

    def next(self, payee: str, amount: int, on: date) -> int:
        key = (payee, amount, on)
        self._seen[key] += 1
        return self._seen[key]


def normalize_posted(
    records: Iterable[RawPostedRecord], account_id: str, settings: Settings
) -> list[CandidateTransaction]:
    """Normalize settled feed rows for one account (``cleared``, posted flag)."""

    counter = _OccurrenceCounter()
    out: list[CandidateTransaction] = []
    for r in records:
        amount = parse_amount(r.amount, scale=settings.amount_scale)
        on = parse_posted_date(r.date)
        payee = clean_payee(r.description)
        n = counter.next(payee, amount, on)
        out.append(
            CandidateTransaction(
                account_id=account_id,
                amount=amount,
                date=on,
                payee_name=payee,
                cleared=ClearedState.CLEARED,
                import_id=make_import_id(settings.posted_import_tag, amount, on, n),
                flag_color=settings.posted_flag,
            )
        )
    return out


def normalize_pending(
    records: Iterable[RawPendingRecord], account_id: str, settings: Settings
) -> list[CandidateTransaction]:
    """Normalize authorized-but-unsettled rows for one account (``uncleared``)."""

    counter = _OccurrenceCounter()
    out: list[CandidateTransaction] = []
    for r in records:
        amount = parse_amount(r.amount, scale=settings.amount_scale)
        on = parse_pending_date(r.charge_date)
        payee = clean_payee(r.description)
        n = counter.next(payee, amount, on)
        out.append(
            CandidateTransaction(
                account_id=account_id,
                amount=amount,
                date=on,
                payee_name=payee,
                cleared=ClearedState.UNCLEARED,
                import_id=make_import_id(settings.pending_import_tag, amount, on, n),
                flag_color=settings.pending_flag,
            )
        )
    return out


__all__ = [
    "clean_payee",
    "make_import_id",
    "normalize_pending",
    "normalize_posted",
    "parse_amount",
    "parse_pending_date",
    "parse_posted_date",
    "titleize",
]
