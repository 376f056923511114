"""Voiding-pair elimination.

A merchant authorization that is reversed before settlement shows up in the
feed as two uncleared rows with equal-and-opposite amounts, the same payee and
the same date. Neither leg should ever reach the ledger.
"""

from __future__ import annotations

from collections.abc import Sequence

from .logging_setup import get_logger
from .models import CandidateTransaction, ClearedState, format_transaction

_logger = get_logger("ledger_sync.voids")


def _cancels(t: CandidateTransaction, v: CandidateTransaction) -> bool:
    return (
        v.cleared == ClearedState.UNCLEARED
        and v.amount == -t.amount
        and v.payee_name == t.payee_name
        and v.date == t.date
    )


def find_voiding_pairs(batch: Sequence[CandidateTransaction]) -> list[tuple[int, int]]:
    """Return ``(index, voiding_index)`` pairs in scan order.

    Single pass: each uncleared transaction is paired with the first not yet
    removed transaction that cancels it. A transaction never pairs with
    itself, and a removed transaction is never paired again.
    """

    removed: set[int] = set()
    pairs: list[tuple[int, int]] = []
    for i, t in enumerate(batch):
        if i in removed or t.cleared != ClearedState.UNCLEARED:
            continue
        for j, v in enumerate(batch):
            if j == i or j in removed:
                continue
            if _cancels(t, v):
                removed.update((i, j))
                pairs.append((i, j))
                break
    return pairs


def eliminate_voiding_pairs(
    batch: Sequence[CandidateTransaction], *, amount_scale: int = 100
) -> list[CandidateTransaction]:
    """Return a filtered copy of ``batch`` without either leg of any voiding pair."""

    pairs = find_voiding_pairs(batch)
    dropped: set[int] = set()
    for i, j in pairs:
        _logger.info(
            "voids:pair_removed transaction=%r voided_by=%r",
            format_transaction(batch[i], amount_scale=amount_scale),
            format_transaction(batch[j], amount_scale=amount_scale),
        )
        dropped.update((i, j))
    return [t for k, t in enumerate(batch) if k not in dropped]


__all__ = ["eliminate_voiding_pairs", "find_voiding_pairs"]
