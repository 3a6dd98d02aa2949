"""Merchant/direction detection over segmented statement lines.

Record families, tried in priority order on each unconsumed line:

1. Full descriptor, ``20.08 Til: Marco Caronte``: date, direction and name on
   one line.
2. Direct payment, ``12.08 Vipps*Peppes Pizza``: a dated line whose text
   carries a known payment-processor, transit or utility signature. Always
   outgoing.
3. Split descriptor: a line holding only ``20.08`` followed by
   ``Fra: AAS-JAKOBSEN``. The candidate is anchored at the name line because
   amount search distances are measured from where the name appears.
4. Bare descriptor, ``Til: Kari Nordmann``, with no date.

When the detected name is an account number (``1234.56.78901``, possibly
masked) or empty, the next few lines are searched for a real name, first
another descriptor and then a plausible standalone text line. Every line used
by a record is reported in :attr:`MerchantScan.consumed`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .amounts import is_day_month, is_pure_amount
from .logging_setup import get_logger
from .models import Direction, Lines, MerchantCandidate, MerchantScan
from .settings import DEFAULT_SETTINGS, ParserSettings

_logger = get_logger("statement_parser.merchants")

_DATE = r"(?P<date>(?P<day>\d{1,2})\.(?P<month>\d{1,2}))\.?"

_ACCOUNT_NUMBER_RE = re.compile(
    r"^(?:[\dxX*•]{4}[ .]?[\dxX*•]{2}[ .]?[\dxX*•]{5}|[xX*•]{2,}\s?\d{4})$"
)
_LETTER_RE = re.compile(r"[^\W\d_]")


def is_account_number(text: str) -> bool:
    """Return True for Norwegian account-number shapes, masked or not."""

    return bool(_ACCOUNT_NUMBER_RE.match(text.strip()))


def _usable_name(name: str) -> bool:
    return bool(name.strip()) and not is_account_number(name)


def _word_alternation(words: tuple[str, ...]) -> str:
    # Longest first so multi-word signatures win over their prefixes.
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


@dataclass(frozen=True, slots=True)
class _Patterns:
    full: re.Pattern[str]
    bare: re.Pattern[str]
    dated: re.Pattern[str]
    date_only: re.Pattern[str]
    signature: re.Pattern[str]
    label: re.Pattern[str]
    outgoing: frozenset[str]
    incoming: frozenset[str]

    def direction_of(self, word: str) -> Direction:
        return Direction.OUTGOING if word.lower() in self.outgoing else Direction.INCOMING


def _compile(settings: ParserSettings) -> _Patterns:
    dirs = _word_alternation(settings.outgoing_words + settings.incoming_words)
    descriptor = rf"(?P<dir>{dirs})\s*:\s*(?P<name>.*?)"
    return _Patterns(
        full=re.compile(rf"^{_DATE}\s+{descriptor}$", re.IGNORECASE),
        bare=re.compile(rf"^{descriptor}$", re.IGNORECASE),
        dated=re.compile(rf"^{_DATE}\s+(?P<rest>.+)$"),
        date_only=re.compile(rf"^{_DATE}$"),
        signature=re.compile(
            rf"\b(?:{_word_alternation(settings.direct_payment_signatures)})\b", re.IGNORECASE
        ),
        label=re.compile(rf"\b(?:{_word_alternation(settings.label_keywords)})\b", re.IGNORECASE),
        outgoing=frozenset(settings.outgoing_words),
        incoming=frozenset(settings.incoming_words),
    )


def _valid_date(m: re.Match[str]) -> bool:
    return 1 <= int(m.group("day")) <= 31 and 1 <= int(m.group("month")) <= 12


@dataclass(frozen=True, slots=True)
class _Record:
    anchor: int
    date: str | None
    direction: Direction
    name: str
    used: tuple[int, ...]
    family: str


def _match_record(lines: Lines, i: int, pats: _Patterns) -> _Record | None:
    text = lines[i].text

    m = pats.full.match(text)
    if m and _valid_date(m):
        return _Record(
            anchor=i,
            date=m.group("date"),
            direction=pats.direction_of(m.group("dir")),
            name=m.group("name").strip(),
            used=(i,),
            family="descriptor",
        )

    m = pats.dated.match(text)
    if m and _valid_date(m) and pats.signature.search(m.group("rest")):
        return _Record(
            anchor=i,
            date=m.group("date"),
            direction=Direction.OUTGOING,
            name=m.group("rest").strip(),
            used=(i,),
            family="direct_payment",
        )

    m = pats.date_only.match(text)
    if m and _valid_date(m) and i + 1 < len(lines):
        nxt = pats.bare.match(lines[i + 1].text)
        if nxt:
            return _Record(
                anchor=i + 1,
                date=m.group("date"),
                direction=pats.direction_of(nxt.group("dir")),
                name=nxt.group("name").strip(),
                used=(i, i + 1),
                family="split",
            )

    m = pats.bare.match(text)
    if m:
        return _Record(
            anchor=i,
            date=None,
            direction=pats.direction_of(m.group("dir")),
            name=m.group("name").strip(),
            used=(i,),
            family="bare",
        )
    return None


def _starts_new_record(text: str, pats: _Patterns) -> bool:
    m = pats.date_only.match(text)
    if m and _valid_date(m):
        return True
    m = pats.dated.match(text)
    return bool(m and _valid_date(m) and pats.signature.search(m.group("rest")))


def _descriptor_name(text: str, pats: _Patterns) -> str | None:
    m = pats.full.match(text)
    if m and not _valid_date(m):
        m = None
    m = m or pats.bare.match(text)
    return m.group("name").strip() if m else None


def _plausible_name(text: str, pats: _Patterns, settings: ParserSettings) -> bool:
    return (
        settings.name_min_length <= len(text) <= settings.name_max_length
        and bool(_LETTER_RE.search(text))
        and not is_pure_amount(text)
        and not is_account_number(text)
        and not is_day_month(text)
        and not pats.label.search(text)
    )


def _repair_name(
    lines: Lines, last: int, pats: _Patterns, settings: ParserSettings
) -> tuple[str, int] | None:
    """Find a real name after an account-number placeholder ending at ``last``.

    Descriptors win over standalone lines anywhere in the lookahead. The
    lookahead ends early at a line that opens a new dated record.
    """

    window: list[int] = []
    for j in range(last + 1, min(len(lines), last + 1 + settings.name_lookahead)):
        if _starts_new_record(lines[j].text, pats):
            break
        window.append(j)

    for j in window:
        name = _descriptor_name(lines[j].text, pats)
        if name is not None and _usable_name(name):
            return name, j
    for j in window:
        text = lines[j].text
        if _descriptor_name(text, pats) is None and _plausible_name(text, pats, settings):
            return text, j
    return None


def detect_merchants(lines: Lines, settings: ParserSettings = DEFAULT_SETTINGS) -> MerchantScan:
    """Scan ``lines`` once, left to right, and return merchants in discovery order."""

    pats = _compile(settings)
    candidates: list[MerchantCandidate] = []
    consumed: set[int] = set()

    i = 0
    while i < len(lines):
        record = _match_record(lines, i, pats)
        if record is None:
            i += 1
            continue

        name = record.name
        used = list(record.used)
        if not _usable_name(name):
            repaired = _repair_name(lines, used[-1], pats, settings)
            if repaired is not None:
                name, repair_line = repaired
                used.append(repair_line)
                _logger.debug(
                    "merchants:name_repaired line=%d from_line=%d", record.anchor, repair_line
                )

        if not name.strip():
            # A descriptor with no name and nothing to repair it with.
            i += 1
            continue

        candidates.append(
            MerchantCandidate(
                line_index=record.anchor,
                date=record.date,
                direction=record.direction,
                name=name,
            )
        )
        consumed.update(used)
        _logger.debug(
            "merchants:found line=%d direction=%s family=%s",
            record.anchor,
            record.direction.value,
            record.family,
        )
        i = max(used) + 1

    return MerchantScan(candidates=tuple(candidates), consumed=frozenset(consumed))


__all__ = ["detect_merchants", "is_account_number"]
