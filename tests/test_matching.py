from datetime import date

import pytest

from ledger_sync.config import Settings
from ledger_sync.matching import (
    amounts_match,
    is_match,
    jaro_winkler,
    match_pending,
    payee_similarity,
    payees_match,
    strip_wallet_prefixes,
)
from ledger_sync.models import ClearedState

from tests.helpers.ledger import candidate_tx, existing_tx

U = ClearedState.UNCLEARED
C = ClearedState.CLEARED


# ---- Jaro-Winkler ------------------------------------------------------------


def test_jaro_winkler_reference_values():
    assert jaro_winkler("MARTHA", "MARHTA") == pytest.approx(0.9611, abs=1e-4)
    assert jaro_winkler("DIXON", "DICKSONX") == pytest.approx(0.8133, abs=1e-4)
    assert jaro_winkler("abc", "abc") == 1.0
    assert jaro_winkler("", "abc") == 0.0
    assert jaro_winkler("abc", "xyz") == 0.0


def test_payee_similarity_tolerates_case_and_suffixes():
    assert payee_similarity("STARBUCKS #123", "Starbucks") >= 0.25
    assert payee_similarity("Amazon.com", "Amazon") >= 0.25


def test_payee_similarity_rejects_unrelated_names():
    assert payee_similarity("Starbucks", "Walmart") < 0.25
    assert payee_similarity("Shell", "Starbucks") < 0.25


def test_payees_match_examples(settings):
    assert payees_match("Starbucks", "STARBUCKS #123", settings)
    assert not payees_match("Starbucks", "Walmart", settings)
    assert not payees_match(None, "Walmart", settings)
    assert not payees_match("Walmart", "", settings)


def test_wallet_prefixes_are_stripped_from_existing_name(settings):
    assert strip_wallet_prefixes("Aplpay Tst* Blue Bottle", settings.wallet_prefixes) == "Blue Bottle"
    assert payees_match("Aplpay Blue Bottle", "Blue Bottle ", settings)


def test_threshold_is_tunable():
    strict = Settings(payee_similarity_threshold=1.0)
    assert not payees_match("Starbucks", "STARBUCKS #123", strict)
    assert payees_match("Starbucks", "Starbucks", strict)


# ---- Date / amount predicates -----------------------------------------------


@pytest.mark.parametrize(
    ("day", "expected"),
    [(7, True), (10, True), (13, True), (14, False), (6, False)],
)
def test_three_day_window(settings, day, expected):
    e = existing_tx(on=date(2024, 5, 10))
    c = candidate_tx(on=date(2024, 5, day))
    assert is_match(e, c, settings) is expected


def test_current_amount_matches_any_candidate():
    e = existing_tx(amount=-2000, import_id="YNAB-pending:-1800:2024-05-01:1")
    assert amounts_match(e, candidate_tx(amount=-2000, cleared=C))
    assert amounts_match(e, candidate_tx(amount=-2000, cleared=U))


def test_original_amount_matches_only_uncleared_candidates():
    # The ledger adjusted the amount; the import_id still carries the imported one.
    e = existing_tx(amount=-2000, import_id="YNAB-pending:-1800:2024-05-01:1")
    assert e.original_amount == -1800
    assert amounts_match(e, candidate_tx(amount=-1800, cleared=U))
    assert not amounts_match(e, candidate_tx(amount=-1800, cleared=C))


def test_original_amount_defaults_to_current_without_import_id():
    e = existing_tx(amount=-2000, import_id=None)
    assert e.original_amount == -2000
    assert existing_tx(import_id="garbage").original_amount == -2000


def test_import_payee_name_takes_precedence(settings):
    e = existing_tx(payee_name="Groceries Run", import_payee_name="Whole Foods")
    assert is_match(e, candidate_tx(payee_name="Whole Foods Market"), settings)


# ---- Assignment --------------------------------------------------------------


def test_match_pending_is_first_match_wins_and_one_to_one(settings):
    e1 = existing_tx("e1")
    e2 = existing_tx("e2")
    c1 = candidate_tx()
    assert match_pending([e1, e2], [c1], settings) == [0, None]


def test_second_existing_takes_next_eligible_candidate(settings):
    e1 = existing_tx("e1")
    e2 = existing_tx("e2")
    c1 = candidate_tx(import_id="YNAB:-2000:2024-05-01:1")
    c2 = candidate_tx(import_id="YNAB:-2000:2024-05-01:2")
    assert match_pending([e1, e2], [c1, c2], settings) == [0, 1]


def test_candidate_on_another_account_is_not_matched(settings):
    e = existing_tx(account_id="acc-1")
    other_card = candidate_tx(account_id="acc-2")
    same_card = candidate_tx(account_id="acc-1", import_id="YNAB:-2000:2024-05-01:2")
    assert not is_match(e, other_card, settings)
    assert match_pending([e], [other_card, same_card], settings) == [1]


def test_cleared_existing_is_never_matched(settings):
    e = existing_tx(cleared="cleared")
    assert match_pending([e], [candidate_tx()], settings) == [None]


def test_deleted_existing_is_never_matched(settings):
    e = existing_tx(deleted=True)
    assert match_pending([e], [candidate_tx()], settings) == [None]
