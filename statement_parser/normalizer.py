"""Turn matched pairs into normalized transaction suggestions."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .logging_setup import get_logger
from .models import Direction, Match, Transaction, TransactionType
from .settings import DEFAULT_SETTINGS, ParserSettings

_logger = get_logger("statement_parser.normalizer")

# ---------------------------------------------------------------------------
# Merchant name cleanup
# ---------------------------------------------------------------------------

# Full dates go first so "20.08.2025" is not half-eaten by the amount pattern.
_FULL_DATE_RE = re.compile(r"\b\d{1,2}[./-]\d{1,2}[./-]\d{2,4}\b")
_AMOUNT_RE = re.compile(
    r"(?:^|(?<=\s))[+\-\u2212\u2013]?\s?(?:\d{1,3}(?:[ .]\d{3})+|\d+)[.,]\d{2}\b"
    r"(?:\s*(?:kr|nok)\b)?",
    re.IGNORECASE,
)
_SHORT_DATE_RE = re.compile(r"\b\d{1,2}[./-]\d{1,2}\b\.?")
_ASTERISK_RE = re.compile(r"\*+")
_PUNCT_RUN_RE = re.compile(r"[^\w\s]{2,}")
_LOCATION_SUFFIX_RE = re.compile(r",[^,]*$")
_SPACES_RE = re.compile(r"\s+")
_EDGE_PUNCT = " -.,:;/"


def clean_merchant_name(raw: str, settings: ParserSettings = DEFAULT_SETTINGS) -> str:
    """Return the display form of a detected merchant name.

    Dates, amounts, asterisks and punctuation runs are removed, a trailing
    ``, Location`` is dropped, long names are cut to their first few words and
    the result is upper-cased. Single hyphens survive (``AAS-JAKOBSEN``) as do
    bare integers that are part of a name (``REMA 1000``). A name that cleans
    down to nothing is returned upper-cased but otherwise untouched.
    """

    s = _FULL_DATE_RE.sub(" ", raw)
    s = _AMOUNT_RE.sub(" ", s)
    s = _SHORT_DATE_RE.sub(" ", s)
    s = _ASTERISK_RE.sub(" ", s)
    s = _PUNCT_RUN_RE.sub(" ", s)
    s = _SPACES_RE.sub(" ", s).strip()
    s = _LOCATION_SUFFIX_RE.sub("", s).strip(_EDGE_PUNCT)

    if not s:
        return _SPACES_RE.sub(" ", raw).strip().upper()

    if len(s) > settings.merchant_max_length:
        s = " ".join(s.split(" ")[: settings.merchant_max_words])
    return s.upper()


# ---------------------------------------------------------------------------
# Classification and assembly
# ---------------------------------------------------------------------------


def classify(
    direction: Direction, name: str, settings: ParserSettings = DEFAULT_SETTINGS
) -> TransactionType:
    if direction is Direction.INCOMING:
        return TransactionType.INCOME
    lowered = name.lower()
    if any(k in lowered for k in settings.savings_keywords):
        return TransactionType.SAVINGS
    return TransactionType.EXPENSE


def build_transactions(
    matches: Iterable[Match], settings: ParserSettings = DEFAULT_SETTINGS
) -> list[Transaction]:
    """Build :class:`Transaction` rows sorted by amount, largest first.

    The sort is stable so equal amounts keep discovery order. Duplicate
    merchant/amount pairs are kept; they are usually separate purchases.
    """

    rows: list[Transaction] = []
    for m in matches:
        name = clean_merchant_name(m.merchant.name, settings)
        rows.append(
            Transaction(
                merchant=name,
                amount=m.amount.amount,
                type=classify(m.merchant.direction, name, settings),
                date=m.merchant.date,
                merchant_line=m.merchant.line_index,
                amount_line=m.amount.line_index,
            )
        )
    rows.sort(key=lambda t: t.amount, reverse=True)
    _logger.debug("normalizer:built transactions=%d", len(rows))
    return rows


__all__ = ["clean_merchant_name", "classify", "build_transactions"]
