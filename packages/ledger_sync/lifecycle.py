"""Lifecycle classification of existing pending transactions.

Every existing pending transaction starts ``UNMATCHED`` and ends in exactly
one terminal state:

- ``STALE``: no candidate matched; the planner deletes or flags it.
- ``STILL_PENDING``: matched an uncleared candidate with the same date and
  ``import_id``; both are left alone (the ledger dedups the candidate on
  ``import_id``).
- ``CHANGED_PENDING``: matched an uncleared candidate whose date or
  ``import_id`` differs; the candidate is dropped from the batch so a
  near-duplicate is never created, and the existing one is left alone.
- ``POSTED``: matched a cleared candidate; the user's curation is copied onto
  the candidate and the existing transaction is queued for deletion.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import StrEnum

from .config import Settings
from .logging_setup import get_logger
from .models import CandidateTransaction, ClearedState, ExistingTransaction, format_transaction

_logger = get_logger("ledger_sync.lifecycle")


class Lifecycle(StrEnum):
    UNMATCHED = "unmatched"
    STILL_PENDING = "still_pending"
    CHANGED_PENDING = "changed_pending"
    POSTED = "posted"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Terminal state of one existing pending transaction.

    ``candidate`` is the matched candidate (already enriched for ``POSTED``),
    or ``None`` for ``STALE``.
    """

    existing: ExistingTransaction
    state: Lifecycle
    candidate: CandidateTransaction | None = None


@dataclass(frozen=True, slots=True)
class Classification:
    outcomes: tuple[Outcome, ...]
    candidates: tuple[CandidateTransaction, ...]

    def in_state(self, state: Lifecycle) -> list[ExistingTransaction]:
        return [o.existing for o in self.outcomes if o.state == state]


def merge_curated_fields(
    existing: ExistingTransaction, candidate: CandidateTransaction, settings: Settings
) -> CandidateTransaction:
    """Carry user-edited fields of ``existing`` over to a posted ``candidate``."""

    payee = candidate.payee_name
    existing_payee = existing.payee_name
    if existing_payee and not existing_payee.startswith(settings.protected_payee_prefixes):
        payee = existing_payee
    flag = candidate.flag_color if candidate.flag_color in settings.allowed_flags else None
    return replace(
        candidate,
        payee_name=payee,
        approved=existing.approved,
        category_id=existing.category_id,
        memo=existing.memo,
        subtransactions=existing.live_subtransactions,
        flag_color=flag,
    )


def classify(
    existing: Sequence[ExistingTransaction],
    candidates: Sequence[CandidateTransaction],
    assignment: Sequence[int | None],
    settings: Settings,
) -> Classification:
    """Classify ``existing`` given a matcher ``assignment`` (aligned by position).

    Returns the outcomes and the surviving batch: ``candidates`` with posted
    matches enriched and changed-pending matches removed, in input order.
    """

    if len(existing) != len(assignment):
        raise ValueError("assignment must be aligned with existing transactions")

    scale = settings.amount_scale
    batch = list(candidates)
    dropped: set[int] = set()
    outcomes: list[Outcome] = []

    for e, ci in zip(existing, assignment, strict=True):
        if not e.is_pending:
            continue
        if ci is None:
            outcomes.append(Outcome(e, Lifecycle.STALE))
            _logger.info("lifecycle:stale transaction=%r", format_transaction(e, amount_scale=scale))
            continue

        c = batch[ci]
        if c.cleared == ClearedState.UNCLEARED:
            if c.date != e.date or c.import_id != e.import_id:
                dropped.add(ci)
                outcomes.append(Outcome(e, Lifecycle.CHANGED_PENDING, c))
                _logger.warning(
                    "lifecycle:changed_pending transaction=%r import_id=%s new_import_id=%s "
                    "action=drop_candidate",
                    format_transaction(e, amount_scale=scale),
                    e.import_id,
                    c.import_id,
                )
            else:
                outcomes.append(Outcome(e, Lifecycle.STILL_PENDING, c))
                _logger.info(
                    "lifecycle:still_pending transaction=%r",
                    format_transaction(e, amount_scale=scale),
                )
            continue

        enriched = merge_curated_fields(e, c, settings)
        batch[ci] = enriched
        outcomes.append(Outcome(e, Lifecycle.POSTED, enriched))
        _logger.info(
            "lifecycle:posted transaction=%r replacement_import_id=%s",
            format_transaction(e, amount_scale=scale),
            enriched.import_id,
        )

    survivors = tuple(c for i, c in enumerate(batch) if i not in dropped)
    return Classification(outcomes=tuple(outcomes), candidates=survivors)


__all__ = ["Classification", "Lifecycle", "Outcome", "classify", "merge_curated_fields"]
