"""Pending-transaction matching between the ledger and the fetched batch.

An existing pending transaction ``E`` matches a candidate ``C`` when all of:

- both belong to the same ledger account;
- dates are at most ``settings.match_window_days`` apart;
- ``C.amount == E.amount``, or ``C`` is uncleared and ``C.amount`` equals the
  amount originally imported for ``E`` (decoded from its ``import_id``);
- the payees agree: ``E``'s effective payee with wallet prefixes stripped and
  ``C``'s trimmed payee are equal, or their :func:`payee_similarity` reaches
  ``settings.payee_similarity_threshold``.

:func:`match_pending` scans existing transactions in ledger order and assigns
each at most one candidate; an assigned candidate is consumed and cannot
satisfy a later existing transaction.
"""

from __future__ import annotations

from collections.abc import Sequence

from .config import Settings
from .models import CandidateTransaction, ClearedState, ExistingTransaction

# Jaro-Winkler score two unrelated short names typically reach through
# incidental shared letters; payee_similarity maps it to 0.
_CHANCE_SIMILARITY = 0.5


def jaro_winkler(s1: str, s2: str) -> float:
    """Jaro-Winkler similarity in ``[0, 1]`` (prefix scale 0.1, max prefix 4)."""

    if s1 == s2:
        return 1.0
    len1, len2 = len(s1), len(s2)
    if len1 == 0 or len2 == 0:
        return 0.0

    match_dist = max(0, max(len1, len2) // 2 - 1)
    s1_matches = [False] * len1
    s2_matches = [False] * len2

    matches = 0
    for i in range(len1):
        start = max(0, i - match_dist)
        end = min(i + match_dist + 1, len2)
        for j in range(start, end):
            if s2_matches[j] or s1[i] != s2[j]:
                continue
            s1_matches[i] = s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(len1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if s1[i] != s2[k]:
            transpositions += 1
        k += 1

    jaro = (matches / len1 + matches / len2 + (matches - transpositions / 2) / matches) / 3

    prefix = 0
    for a, b in zip(s1[:4], s2[:4], strict=False):
        if a != b:
            break
        prefix += 1
    return jaro + prefix * 0.1 * (1 - jaro)


def payee_similarity(a: str, b: str) -> float:
    """Case-insensitive Jaro-Winkler, rescaled so chance agreement scores 0.

    ``"STARBUCKS #123"`` vs ``"Starbucks"`` scores about 0.86 while
    ``"Starbucks"`` vs ``"Walmart"`` scores about 0.01.
    """

    jw = jaro_winkler(a.casefold(), b.casefold())
    return max(0.0, (jw - _CHANCE_SIMILARITY) / (1.0 - _CHANCE_SIMILARITY))


def strip_wallet_prefixes(name: str, prefixes: Sequence[str]) -> str:
    stripped = True
    while stripped:
        stripped = False
        for p in prefixes:
            if p and name.startswith(p):
                name = name[len(p) :]
                stripped = True
    return name


def payees_match(existing_name: str | None, candidate_name: str | None, settings: Settings) -> bool:
    if not existing_name or not candidate_name:
        return False
    e = strip_wallet_prefixes(existing_name, settings.wallet_prefixes)
    c = candidate_name.strip()
    if e == c:
        return True
    return payee_similarity(c, e) >= settings.payee_similarity_threshold


def dates_match(existing: ExistingTransaction, candidate: CandidateTransaction, settings: Settings) -> bool:
    return abs((candidate.date - existing.date).days) <= settings.match_window_days


def amounts_match(existing: ExistingTransaction, candidate: CandidateTransaction) -> bool:
    if candidate.amount == existing.amount:
        return True
    return (
        candidate.cleared == ClearedState.UNCLEARED
        and candidate.amount == existing.original_amount
    )


def is_match(existing: ExistingTransaction, candidate: CandidateTransaction, settings: Settings) -> bool:
    return (
        candidate.account_id == existing.account_id
        and dates_match(existing, candidate, settings)
        and amounts_match(existing, candidate)
        and payees_match(existing.effective_payee_name, candidate.payee_name, settings)
    )


def match_pending(
    existing: Sequence[ExistingTransaction],
    candidates: Sequence[CandidateTransaction],
    settings: Settings,
) -> list[int | None]:
    """Assign each existing pending transaction at most one candidate index.

    The result is aligned with ``existing``. Cleared existing transactions are
    never matched (their slot is ``None``).
    """

    consumed: set[int] = set()
    assignment: list[int | None] = []
    for e in existing:
        found: int | None = None
        if e.is_pending:
            for ci, c in enumerate(candidates):
                if ci in consumed:
                    continue
                if is_match(e, c, settings):
                    found = ci
                    consumed.add(ci)
                    break
        assignment.append(found)
    return assignment


__all__ = [
    "amounts_match",
    "dates_match",
    "is_match",
    "jaro_winkler",
    "match_pending",
    "payee_similarity",
    "payees_match",
    "strip_wallet_prefixes",
]
