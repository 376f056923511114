"""Mutation planning and application.

A :class:`MutationPlan` holds three ordered action lists, applied in order:

1. stale transactions: deleted outright, or flagged for review when they
   carry category splits and are not already flagged;
2. pending transactions that posted: deleted (their enriched replacement is
   in the create list);
3. the surviving batch: created in one bulk call; the ledger dedups on
   ``import_id`` so replays are harmless.

:func:`apply_plan` issues mutations sequentially. A failing call is logged
and recorded in the :class:`ApplyReport`; it never aborts the rest.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .config import Settings
from .errors import MutationFailure
from .lifecycle import Classification, Lifecycle
from .logging_setup import get_logger
from .models import CandidateTransaction, ExistingTransaction, format_transaction

if TYPE_CHECKING:
    from .ynab_client import LedgerClient

_logger = get_logger("ledger_sync.planner")


class StaleAction(StrEnum):
    DELETE = "delete"
    FLAG = "flag"


@dataclass(frozen=True, slots=True)
class StaleDecision:
    existing: ExistingTransaction
    action: StaleAction
    update: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class MutationPlan:
    stale: tuple[StaleDecision, ...] = ()
    delete_posted: tuple[ExistingTransaction, ...] = ()
    create: tuple[CandidateTransaction, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.stale or self.delete_posted or self.create)

    def summary(self) -> dict[str, int]:
        return {
            "stale_flag": sum(1 for d in self.stale if d.action == StaleAction.FLAG),
            "stale_delete": sum(1 for d in self.stale if d.action == StaleAction.DELETE),
            "posted_delete": len(self.delete_posted),
            "create": len(self.create),
        }


@dataclass(slots=True)
class ApplyReport:
    flagged: int = 0
    deleted: int = 0
    submitted: int = 0
    failures: list[MutationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def decide_stale(existing: ExistingTransaction, settings: Settings) -> StaleDecision:
    """Delete unless the transaction has splits and is not already flagged."""

    if existing.flag_color == settings.stale_flag or not existing.live_subtransactions:
        return StaleDecision(existing, StaleAction.DELETE)
    return StaleDecision(
        existing,
        StaleAction.FLAG,
        {"flag_color": settings.stale_flag, "memo": settings.stale_memo},
    )


def plan_mutations(classification: Classification, settings: Settings) -> MutationPlan:
    return MutationPlan(
        stale=tuple(decide_stale(e, settings) for e in classification.in_state(Lifecycle.STALE)),
        delete_posted=tuple(classification.in_state(Lifecycle.POSTED)),
        create=classification.candidates,
    )


def _attempt(report: ApplyReport, event: str, what: str, call: Callable[[], None]) -> bool:
    try:
        call()
    except MutationFailure as e:
        _logger.error("planner:%s transaction=%r error=%s", event, what, e)
        report.failures.append(e)
        return False
    return True


def apply_plan(plan: MutationPlan, client: LedgerClient, settings: Settings) -> ApplyReport:
    """Apply ``plan`` against ``client`` one call at a time."""

    report = ApplyReport()
    scale = settings.amount_scale

    for decision in plan.stale:
        e = decision.existing
        what = format_transaction(e, amount_scale=scale)
        if decision.action == StaleAction.FLAG:
            _logger.info("planner:flag_stale transaction=%r", what)
            update = decision.update or {}
            if _attempt(
                report, "update_failed", what, lambda e=e, u=update: client.update_transaction(e.id, u)
            ):
                report.flagged += 1
        else:
            _logger.info("planner:delete_stale transaction=%r", what)
            if _attempt(report, "delete_failed", what, lambda e=e: client.delete_transaction(e.id)):
                report.deleted += 1

    for e in plan.delete_posted:
        what = format_transaction(e, amount_scale=scale)
        _logger.info("planner:delete_posted transaction=%r", what)
        if _attempt(report, "delete_failed", what, lambda e=e: client.delete_transaction(e.id)):
            report.deleted += 1

    if plan.create:
        # The ledger ignores duplicate import_ids, so the created count may be lower.
        _logger.info("planner:create count=%d", len(plan.create))
        batch = list(plan.create)
        if _attempt(
            report,
            "create_failed",
            f"{len(batch)} transactions",
            lambda: client.create_transactions(batch),
        ):
            report.submitted = len(batch)

    return report


__all__ = [
    "ApplyReport",
    "MutationPlan",
    "StaleAction",
    "StaleDecision",
    "apply_plan",
    "decide_stale",
    "plan_mutations",
]
