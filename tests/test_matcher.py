from decimal import Decimal

import pytest

from statement_parser.errors import AmountAlreadyClaimedError
from statement_parser.matcher import score_incoming
from statement_parser.models import (
    AmountCandidate,
    Direction,
    MerchantCandidate,
    Sign,
    TransactionType,
)
from statement_parser.pipeline import run_pipeline
from statement_parser.settings import DEFAULT_SETTINGS, ParserSettings


def _run(*lines: str, settings: ParserSettings = DEFAULT_SETTINGS):
    return run_pipeline("\n".join(lines), settings)


def _pairs(result) -> list[tuple[int, int]]:
    return [(m.merchant.line_index, m.amount.line_index) for m in result.matches]


def _fillers(n: int) -> list[str]:
    return [f"Referanse {i}" for i in range(n)]


# ---- Outgoing ----------------------------------------------------------------


def test_outgoing_amount_beyond_window_is_not_matched():
    result = _run("20.08 Til: Rema 1000", *_fillers(7), "-250,00")
    assert result.matches == ()
    assert result.transactions == ()


def test_outgoing_amount_at_window_edge_is_matched():
    result = _run("20.08 Til: Rema 1000", *_fillers(5), "-250,00")
    assert _pairs(result) == [(0, 6)]


def test_wider_outgoing_window_from_settings():
    settings = ParserSettings(outgoing_window=8)
    result = _run("20.08 Til: Rema 1000", *_fillers(7), "-250,00", settings=settings)
    assert _pairs(result) == [(0, 8)]


def test_outgoing_tie_prefers_the_amount_after_the_merchant():
    result = _run("-100,00", "20.08 Til: Kiwi", "-200,00")
    assert _pairs(result) == [(1, 2)]


def test_outgoing_ignores_positive_amounts_on_signed_statements():
    result = _run("20.08 Til: Kiwi", "1 000,00", "-50,00")
    assert _pairs(result) == [(0, 2)]
    assert result.transactions[0].amount == Decimal("50.00")


def test_outgoing_uses_unsigned_amounts_when_statement_has_no_minus_signs():
    result = _run("20.08 Til: Kiwi", "89,90")
    (tx,) = result.transactions
    assert tx.type is TransactionType.EXPENSE
    assert tx.amount == Decimal("89.90")


def test_amount_is_consumed_by_the_first_merchant_only():
    result = _run("20.08 Til: Kiwi", "20.08 Til: Rema 1000", "-89,90")
    assert _pairs(result) == [(0, 2)]
    (tx,) = result.transactions
    assert tx.merchant == "KIWI"


# ---- Incoming ----------------------------------------------------------------


def test_incoming_rejects_running_balance_sequence():
    result = _run(
        "15.08 Fra: Arbeidsgiver AS",
        "52 340,00",
        "52 350,00",
        "12 500,00",
        "52 380,00",
    )
    (tx,) = result.transactions
    assert tx.merchant == "ARBEIDSGIVER AS"
    assert tx.type is TransactionType.INCOME
    assert tx.amount == Decimal("12500.00")
    assert tx.amount_line == 3


def test_incoming_falls_back_to_nearest_when_no_score_clears_threshold():
    result = _run(
        "15.08 Fra: Kari Nordmann",
        *_fillers(3),
        "60 000,00",
        "60 000,00",
        "60 050,00",
    )
    assert _pairs(result) == [(0, 4)]


def test_incoming_search_stops_at_neighbouring_merchant():
    result = _run(
        "15.08 Fra: Kari Nordmann",
        "20.08 Til: Kiwi",
        "500,00",
        "-89,90",
    )
    # Kari may not reach past Kiwi's line, and nothing sits between them.
    assert _pairs(result) == [(1, 3)]


def test_score_incoming_penalises_near_identical_neighbours():
    merchant = MerchantCandidate(line_index=0, date=None, direction=Direction.INCOMING, name="X")
    amounts = [
        AmountCandidate(line_index=1, amount=Decimal("52340.00"), sign=Sign.POSITIVE),
        AmountCandidate(line_index=2, amount=Decimal("52350.00"), sign=Sign.POSITIVE),
        AmountCandidate(line_index=3, amount=Decimal("12500.00"), sign=Sign.POSITIVE),
        AmountCandidate(line_index=4, amount=Decimal("52380.00"), sign=Sign.POSITIVE),
    ]
    scores = [score_incoming(merchant, a, amounts) for a in amounts]
    assert scores == [10, 10, 110, -10]


def test_score_incoming_hard_rejects_huge_amounts():
    merchant = MerchantCandidate(line_index=0, date=None, direction=Direction.INCOMING, name="X")
    huge = AmountCandidate(line_index=1, amount=Decimal("600000.00"), sign=Sign.POSITIVE)
    assert score_incoming(merchant, huge, [huge]) is None


def test_score_incoming_favours_small_amounts():
    merchant = MerchantCandidate(line_index=0, date=None, direction=Direction.INCOMING, name="X")
    small = AmountCandidate(line_index=1, amount=Decimal("250.00"), sign=Sign.POSITIVE)
    medium = AmountCandidate(line_index=1, amount=Decimal("2500.00"), sign=Sign.POSITIVE)
    assert score_incoming(merchant, small, [small]) == 150
    assert score_incoming(merchant, medium, [medium]) == 135


# ---- Same-line amounts -------------------------------------------------------


def test_amount_on_the_merchant_line_is_used_when_nothing_else_fits():
    result = _run("20.08 Til: Kiwi Lade -89,90", "Saldo")
    (tx,) = result.transactions
    assert tx.merchant == "KIWI LADE"
    assert tx.amount == Decimal("89.90")
    assert tx.merchant_line == tx.amount_line == 0


def test_incoming_same_line_amount():
    (tx,) = _run("15.08 Fra: Kari Nordmann 250,00").transactions
    assert (tx.merchant, tx.amount, tx.type) == (
        "KARI NORDMANN",
        Decimal("250.00"),
        TransactionType.INCOME,
    )


# ---- Ownership ---------------------------------------------------------------


def test_amount_candidate_can_only_be_claimed_once():
    first = MerchantCandidate(line_index=0, date=None, direction=Direction.OUTGOING, name="A")
    second = MerchantCandidate(line_index=2, date=None, direction=Direction.OUTGOING, name="B")
    amount = AmountCandidate(line_index=1, amount=Decimal("10.00"), sign=Sign.NEGATIVE)

    amount.claim(first)
    assert amount.used_by is first
    with pytest.raises(AmountAlreadyClaimedError) as excinfo:
        amount.claim(second)
    assert excinfo.value.line_index == 1
    assert amount.used_by is first
