"""Public interface for the ``ledger_sync`` package.

Reconciles a bank feed (posted and pending transactions) into a budgeting
ledger: normalize, drop voiding pairs, match pending transactions, classify
their lifecycle and plan the create/update/delete mutations. Only symbol
re-exports live here.
"""

from .config import Settings
from .engine import ReconciliationResult, bind_accounts, reconcile, run
from .errors import (
    ConfigError,
    EmptyFeed,
    InputError,
    LedgerSyncError,
    MutationFailure,
    NoAccountMatch,
)
from .lifecycle import Classification, Lifecycle, Outcome, classify, merge_curated_fields
from .matching import jaro_winkler, match_pending, payee_similarity, payees_match
from .models import (
    Account,
    CandidateTransaction,
    ClearedState,
    ExistingTransaction,
    FeedAccount,
    RawPendingRecord,
    RawPostedRecord,
    SubTransaction,
    format_transaction,
)
from .normalize import normalize_pending, normalize_posted
from .planner import ApplyReport, MutationPlan, StaleAction, apply_plan, plan_mutations
from .voids import eliminate_voiding_pairs

__all__ = [
    # Engine
    "reconcile",
    "run",
    "bind_accounts",
    "ReconciliationResult",
    "Settings",
    # Components
    "normalize_posted",
    "normalize_pending",
    "eliminate_voiding_pairs",
    "match_pending",
    "payees_match",
    "payee_similarity",
    "jaro_winkler",
    "classify",
    "merge_curated_fields",
    "plan_mutations",
    "apply_plan",
    # Models / types
    "Account",
    "CandidateTransaction",
    "ExistingTransaction",
    "SubTransaction",
    "FeedAccount",
    "RawPostedRecord",
    "RawPendingRecord",
    "ClearedState",
    "Lifecycle",
    "Outcome",
    "Classification",
    "MutationPlan",
    "StaleAction",
    "ApplyReport",
    "format_transaction",
    # Errors
    "LedgerSyncError",
    "ConfigError",
    "InputError",
    "EmptyFeed",
    "NoAccountMatch",
    "MutationFailure",
]
