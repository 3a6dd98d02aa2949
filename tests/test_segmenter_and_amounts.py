from decimal import Decimal

import pytest

from statement_parser.amounts import (
    detect_amounts,
    find_inline_amount,
    is_day_month,
    is_pure_amount,
    parse_amount,
)
from statement_parser.models import RawLine, Sign
from statement_parser.segmenter import segment_lines

# ---- Segmenter ---------------------------------------------------------------


def test_segment_lines_trims_drops_blanks_and_reindexes():
    text = "  20.08 \r\n\r\nFra: AAS-JAKOBSEN\r  120 599,33\n\t\n"
    lines = segment_lines(text)
    assert lines == (
        RawLine(index=0, text="20.08"),
        RawLine(index=1, text="Fra: AAS-JAKOBSEN"),
        RawLine(index=2, text="120 599,33"),
    )


@pytest.mark.parametrize("text", [None, "", "   ", "\n\n\r\n \t "])
def test_segment_lines_empty_input(text):
    assert segment_lines(text) == ()


# ---- Amount parsing ----------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("4 349,00", "4349.00"),
        ("-599,00", "599.00"),
        ("120.599,33", "120599.33"),
        ("1,234.56", "1234.56"),
        ("-89.90", "89.90"),
        ("4\u00a0349,00", "4349.00"),
        ("\u2212250,00", "250.00"),
        ("599,-", "599.00"),
        ("1 234,50 kr", "1234.50"),
        ("12", "12.00"),
    ],
)
def test_parse_amount_locale_formats(raw, expected):
    assert parse_amount(raw) == Decimal(expected)


@pytest.mark.parametrize(
    "raw", ["", "abc", "-", "kr", "1" * 40 + ",00", "-" + "9" * 30 + ".50"]
)
def test_parse_amount_failures_yield_zero(raw):
    assert parse_amount(raw) == Decimal("0.00")


def test_is_day_month_checks_ranges():
    assert is_day_month("20.08")
    assert is_day_month("1.12.")
    assert not is_day_month("32.08")
    assert not is_day_month("20.13")
    assert not is_day_month("20.08.2025")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("4 500,00", True),
        ("-89,90", True),
        ("120.599,33", True),
        ("599,00 kr", True),
        ("32.13", True),  # not a valid day/month, so an amount
        ("-20.08", True),  # the sign makes it an amount
        ("20.08", False),  # bare date header
        ("20.08.", False),
        ("Saldo 4 500,00", False),
        ("Til: Kiwi 89,90", False),
        ("REMA 1000", False),
        ("1000", False),
    ],
)
def test_is_pure_amount(text, expected):
    assert is_pure_amount(text) is expected


# ---- Amount detection --------------------------------------------------------


def test_detect_amounts_skips_consumed_lines_and_words():
    lines = segment_lines("20.08 Til: Kiwi\n-89,90\nSaldo\n1 200,00\n-5,00")
    found = detect_amounts(lines, consumed={0, 4})

    assert [(a.line_index, a.amount, a.sign) for a in found] == [
        (1, Decimal("89.90"), Sign.NEGATIVE),
        (3, Decimal("1200.00"), Sign.POSITIVE),
    ]
    assert all(not a.is_used and not a.inline for a in found)


def test_detect_amounts_skips_zero_and_oversized_lines():
    lines = segment_lines("0,00\n-" + "7" * 40 + ",00\n-45,00")
    (cand,) = detect_amounts(lines)
    assert (cand.line_index, cand.amount) == (2, Decimal("45.00"))


def test_detect_amounts_typographic_minus_is_negative():
    (cand,) = detect_amounts(segment_lines("\u2212250,00"))
    assert cand.sign is Sign.NEGATIVE
    assert cand.amount == Decimal("250.00")


def test_find_inline_amount_on_worded_line():
    cand = find_inline_amount(RawLine(index=3, text="20.08 Til: Kiwi Lade -89,90"))
    assert cand is not None
    assert (cand.line_index, cand.amount, cand.sign, cand.inline) == (
        3,
        Decimal("89.90"),
        Sign.NEGATIVE,
        True,
    )


@pytest.mark.parametrize(
    "text",
    [
        "-89,90",  # pure amount lines are handled by detect_amounts
        "Til: Rema 1000",
        "20.08 Til: Kiwi",
        "20.08 Til: Kiwi -" + "9" * 40 + ",00",
    ],
)
def test_find_inline_amount_none(text):
    assert find_inline_amount(RawLine(index=0, text=text)) is None
