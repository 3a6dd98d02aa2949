"""Amount detection and locale-aware amount parsing.

A statement line counts as an amount line only when, after removing a
trailing currency marker, it is *exactly* one monetary amount. Norwegian
statements group thousands with a space or a period and use a comma as the
decimal mark (``4 349,00``, ``120.599,33``); plain decimals (``-89.90``) are
accepted as well. Words on the line disqualify it; such lines may still carry
a trailing amount that the matcher can use for the merchant on that same line
(see :func:`find_inline_amount`).
"""

from __future__ import annotations

import re
from collections.abc import Collection
from decimal import Decimal, InvalidOperation

from .logging_setup import get_logger
from .models import AmountCandidate, Lines, RawLine, Sign

_logger = get_logger("statement_parser.amounts")

_ZERO = Decimal("0.00")
_CENT = Decimal("0.01")

# OCR output regularly carries typographic minus signs and non-breaking spaces.
_MINUS_CHARS = "-\u2212\u2013"
_SIGN_CHARS = "+" + _MINUS_CHARS
_SIGN_CLASS = r"[+\-\u2212\u2013]"
_SPACE_TRANSLATION = str.maketrans({"\u00a0": " ", "\u202f": " ", "\u2009": " "})

_AMOUNT_BODY = (
    r"\d{1,3}(?:[ .]\d{3})+,\d{2}"  # 4 349,00 / 120.599,33
    r"|\d+,\d{2}"  # 599,00
    r"|\d{1,3}(?: \d{3})+\.\d{2}"  # 4 349.00
    r"|\d+\.\d{2}"  # 89.90
)

_PURE_AMOUNT_RE = re.compile(rf"^(?P<sign>{_SIGN_CLASS}?)\s*(?P<body>{_AMOUNT_BODY})$")
_INLINE_AMOUNT_RE = re.compile(
    rf"(?:^|\s)(?P<sign>{_SIGN_CLASS}?)\s?(?P<body>{_AMOUNT_BODY})"
    r"(?:\s*(?:kr\.?|nok))?\s*$",
    re.IGNORECASE,
)
_CURRENCY_SUFFIX_RE = re.compile(r"\s*(?:kr\.?|nok)\s*$", re.IGNORECASE)
# "599,-" is the whole-kroner notation.
_WHOLE_KRONER_RE = re.compile(r"(?<=\d),-$")
_DAY_MONTH_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.?$")


def _normalize(text: str) -> str:
    s = text.translate(_SPACE_TRANSLATION).strip()
    s = _CURRENCY_SUFFIX_RE.sub("", s)
    s = _WHOLE_KRONER_RE.sub(",00", s)
    return s.strip()


def is_day_month(text: str) -> bool:
    """Return True when ``text`` is a bare ``dd.mm`` date with valid ranges."""

    m = _DAY_MONTH_RE.match(text.strip())
    if not m:
        return False
    day, month = int(m.group(1)), int(m.group(2))
    return 1 <= day <= 31 and 1 <= month <= 12


def _sign_of(sign_text: str) -> Sign:
    return Sign.NEGATIVE if sign_text and sign_text in _MINUS_CHARS else Sign.POSITIVE


def parse_amount(text: str) -> Decimal:
    """Parse a locale-formatted amount into a non-negative magnitude.

    The last separator (``.``, ``,`` or space) is the decimal mark when one or
    two digits follow it; every other separator is a thousands separator.
    The sign is ignored (callers track it separately). Unparseable input
    yields ``Decimal("0.00")`` so one bad row never aborts a statement.
    """

    s = _normalize(text).lstrip(_SIGN_CHARS + " ")
    if not s:
        return _ZERO

    last = max(s.rfind("."), s.rfind(","), s.rfind(" "))
    tail = s[last + 1 :] if last != -1 else ""
    if last != -1 and 1 <= len(tail) <= 2 and tail.isdigit():
        int_part, frac = s[:last], tail
    else:
        int_part, frac = s, "0"

    digits = re.sub(r"[.,\s]", "", int_part) or "0"
    try:
        value = Decimal(f"{digits}.{frac}")
        # Past 28 significant digits quantize signals InvalidOperation.
        return abs(value).quantize(_CENT)
    except InvalidOperation:
        return _ZERO


def is_pure_amount(text: str) -> bool:
    """Return True when ``text`` is exactly one amount (currency marker allowed)."""

    s = _normalize(text)
    m = _PURE_AMOUNT_RE.match(s)
    if not m:
        return False
    # "20.08" on its own is a date header, not 20.08 kroner.
    return bool(m.group("sign")) or not is_day_month(m.group("body"))


def _to_candidate(line: RawLine) -> AmountCandidate | None:
    s = _normalize(line.text)
    m = _PURE_AMOUNT_RE.match(s)
    if not m:
        return None
    sign_text, body = m.group("sign"), m.group("body")
    if not sign_text and is_day_month(body):
        return None
    amount = parse_amount(body)
    if not amount:
        # Zero, or too garbled to parse; nothing to match against.
        return None
    return AmountCandidate(line_index=line.index, amount=amount, sign=_sign_of(sign_text))


def detect_amounts(lines: Lines, consumed: Collection[int] = ()) -> tuple[AmountCandidate, ...]:
    """Return one :class:`AmountCandidate` per pure-amount line with a non-zero value.

    Lines in ``consumed`` belong to a merchant record and are skipped.
    """

    found: list[AmountCandidate] = []
    for line in lines:
        if line.index in consumed:
            continue
        cand = _to_candidate(line)
        if cand is not None:
            found.append(cand)
    _logger.debug(
        "amounts:detected lines=%d amounts=%d negative=%d",
        len(lines),
        len(found),
        sum(1 for a in found if a.sign is Sign.NEGATIVE),
    )
    return tuple(found)


def find_inline_amount(line: RawLine) -> AmountCandidate | None:
    """Return the amount written at the end of a worded line, if any.

    Used for hybrid records such as ``20.08 Til: Kiwi Lade -89,90`` where the
    merchant and its amount share one line.
    """

    text = line.text.translate(_SPACE_TRANSLATION).strip()
    if not re.search(r"[^\W\d_]", text):
        return None
    m = _INLINE_AMOUNT_RE.search(text)
    if not m:
        return None
    sign_text, body = m.group("sign"), m.group("body")
    if not sign_text and is_day_month(body):
        return None
    amount = parse_amount(body)
    if not amount:
        return None
    return AmountCandidate(
        line_index=line.index, amount=amount, sign=_sign_of(sign_text), inline=True
    )


__all__ = [
    "parse_amount",
    "is_pure_amount",
    "is_day_month",
    "detect_amounts",
    "find_inline_amount",
]
