"""Reconciliation engine entry points.

:func:`reconcile` is the pure core: given both ledgers' contents it binds feed
accounts to ledger accounts, normalizes and de-voids the batch, matches and
classifies existing pending transactions, and returns a
:class:`ReconciliationResult` holding the :class:`MutationPlan`. :func:`run`
fetches the inputs from the collaborators, calls :func:`reconcile` and applies
the plan.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from .config import Settings
from .errors import EmptyFeed, NoAccountMatch
from .feed import SourceFeed
from .lifecycle import Classification, classify
from .logging_setup import get_logger
from .matching import match_pending
from .models import Account, CandidateTransaction, ExistingTransaction, FeedAccount
from .normalize import normalize_pending, normalize_posted
from .planner import ApplyReport, MutationPlan, apply_plan, plan_mutations
from .voids import eliminate_voiding_pairs
from .ynab_client import LedgerClient

_logger = get_logger("ledger_sync.engine")


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    accounts: tuple[Account, ...]
    batch: tuple[CandidateTransaction, ...]
    classification: Classification
    plan: MutationPlan


def _resolve_account(by_name: dict[str, Account], name: str) -> Account:
    try:
        return by_name[name]
    except KeyError:
        raise NoAccountMatch(name) from None


def bind_accounts(
    ledger_accounts: Sequence[Account],
    feed_accounts: Sequence[FeedAccount],
    settings: Settings,
) -> list[Account]:
    """Queue normalized candidates on same-named ledger accounts.

    Returns only the ledger accounts that received at least one candidate.
    Raises :class:`EmptyFeed` when the feed has no accounts at all and
    :class:`InputError` on any malformed record.
    """

    if not feed_accounts:
        raise EmptyFeed("source feed returned no accounts; the fetch has likely gone awry")

    by_name: dict[str, Account] = {}
    for a in ledger_accounts:
        by_name.setdefault(a.name, a)

    queued: dict[str, tuple[CandidateTransaction, ...]] = {}
    for fa in feed_accounts:
        try:
            account = _resolve_account(by_name, fa.name)
        except NoAccountMatch as e:
            _logger.warning("engine:no_account_match feed_account=%r message=%s", fa.name, e)
            continue
        posted = normalize_posted(fa.posted, account.id, settings)
        pending = normalize_pending(fa.pending, account.id, settings)
        queued[account.id] = (*posted, *pending)

    ready = [replace(a, queued=queued[a.id]) for a in by_name.values() if queued.get(a.id)]
    for a in ready:
        _logger.info("engine:ready account=%r queued=%d", a.name, len(a.queued))
    return ready


def reconcile(
    ledger_accounts: Sequence[Account],
    existing: Sequence[ExistingTransaction],
    feed_accounts: Sequence[FeedAccount],
    settings: Settings,
) -> ReconciliationResult:
    ready = bind_accounts(ledger_accounts, feed_accounts, settings)
    batch = eliminate_voiding_pairs(
        [c for a in ready for c in a.queued], amount_scale=settings.amount_scale
    )

    ready_ids = {a.id for a in ready}
    pending = [e for e in existing if e.is_pending and e.account_id in ready_ids]
    _logger.info("engine:match existing_pending=%d candidates=%d", len(pending), len(batch))

    assignment = match_pending(pending, batch, settings)
    classification = classify(pending, batch, assignment, settings)
    plan = plan_mutations(classification, settings)
    _logger.info("engine:plan %s", " ".join(f"{k}={v}" for k, v in plan.summary().items()))

    return ReconciliationResult(
        accounts=tuple(ready),
        batch=tuple(batch),
        classification=classification,
        plan=plan,
    )


def run(
    settings: Settings,
    ledger: LedgerClient,
    feed: SourceFeed,
    *,
    dry_run: bool = False,
) -> tuple[ReconciliationResult, ApplyReport | None]:
    """Fetch both ledgers, reconcile, and apply the plan unless ``dry_run``."""

    ledger_accounts = ledger.list_accounts()
    existing = ledger.list_transactions()
    feed_accounts = feed.fetch()

    result = reconcile(ledger_accounts, existing, feed_accounts, settings)
    if dry_run:
        _logger.info("engine:dry_run plan_not_applied=true")
        return result, None

    report = apply_plan(result.plan, ledger, settings)
    _logger.info(
        "engine:done flagged=%d deleted=%d submitted=%d failures=%d",
        report.flagged,
        report.deleted,
        report.submitted,
        len(report.failures),
    )
    return result, report


__all__ = ["ReconciliationResult", "bind_accounts", "reconcile", "run"]
