"""Pair merchants with amounts.

Merchants are processed strictly in discovery order and each chosen amount is
claimed immediately (:meth:`AmountCandidate.claim`), so a later merchant can
never take an amount an earlier one already owns. That ordering is part of
the contract: changing it changes which amounts are available downstream.

Outgoing records
    Nearest unused negative amount within ``outgoing_window`` lines; ties go
    to the amount below the merchant line. The window is never widened. On an
    *unsigned* statement (no negative amount anywhere) the sign carries no
    information and amounts of either sign are eligible.

Incoming records
    Unused positive amounts within ``incoming_window`` lines, bounded by the
    neighbouring merchant lines, are scored. Running balances sit next to the
    real transaction amount and look alike, so values that are numerically
    close to a neighbouring positive amount are heavily penalised; small
    amounts are favoured over large, round ones. The best score above
    ``min_score`` wins, else the nearest positive amount within
    ``incoming_fallback_window`` lines.

When the windowed search finds nothing, an amount printed on the merchant's
own line is used if its sign fits. Anything else is dropped silently.

The balance heuristic guesses intent from numeric proximity and will
misclassify some statements; that ambiguity is inherent to OCR text without
structure.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from .amounts import find_inline_amount
from .logging_setup import get_logger
from .models import AmountCandidate, Direction, Lines, Match, MerchantCandidate, Sign
from .settings import DEFAULT_SETTINGS, ParserSettings

_logger = get_logger("statement_parser.matcher")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _nearest_key(merchant: MerchantCandidate, amount: AmountCandidate) -> tuple[int, int, int]:
    # Nearest first; on equal distance prefer the amount after the merchant line.
    distance = abs(amount.line_index - merchant.line_index)
    after = 0 if amount.line_index > merchant.line_index else 1
    return distance, after, amount.line_index


def _is_unsigned(amounts: Sequence[AmountCandidate]) -> bool:
    return not any(a.sign is Sign.NEGATIVE for a in amounts)


def _record_bounds(
    merchant: MerchantCandidate, merchant_lines: Sequence[int], window: int
) -> tuple[int, int]:
    """Return the inclusive line range an incoming merchant may search.

    The range is ``window`` lines either side, cut short before the previous
    and next merchant lines.
    """

    idx = merchant.line_index
    lo, hi = idx - window, idx + window
    for other in merchant_lines:
        if other < idx:
            lo = max(lo, other + 1)
        elif other > idx:
            hi = min(hi, other - 1)
    return lo, hi


# ---------------------------------------------------------------------------
# Outgoing
# ---------------------------------------------------------------------------


def _select_outgoing(
    merchant: MerchantCandidate,
    amounts: Sequence[AmountCandidate],
    *,
    unsigned: bool,
    settings: ParserSettings,
) -> AmountCandidate | None:
    eligible = [
        a
        for a in amounts
        if not a.is_used
        and (unsigned or a.sign is Sign.NEGATIVE)
        and abs(a.line_index - merchant.line_index) <= settings.outgoing_window
    ]
    if not eligible:
        return None
    return min(eligible, key=lambda a: _nearest_key(merchant, a))


# ---------------------------------------------------------------------------
# Incoming
# ---------------------------------------------------------------------------


def _near_value(value: Decimal, other: Decimal, settings: ParserSettings) -> bool:
    diff = abs(value - other)
    if value < settings.balance_relative_limit:
        return diff <= value * settings.balance_relative_tolerance
    return diff <= settings.balance_absolute_tolerance


def score_incoming(
    merchant: MerchantCandidate,
    amount: AmountCandidate,
    amounts: Sequence[AmountCandidate],
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> int | None:
    """Return the confidence score of ``amount`` for an incoming ``merchant``.

    ``None`` means hard-rejected (larger than ``max_amount``). ``amounts`` is
    the full candidate list; only unused positive amounts count as neighbours.
    """

    value = amount.amount
    if value > settings.max_amount:
        return None

    score = settings.base_score
    if abs(amount.line_index - merchant.line_index) <= settings.proximity_lines:
        score += settings.proximity_bonus

    neighbours = [
        b
        for b in amounts
        if b is not amount
        and not b.is_used
        and b.sign is Sign.POSITIVE
        and abs(b.line_index - amount.line_index) <= settings.balance_neighbor_lines
    ]
    near = [b for b in neighbours if _near_value(value, b.amount, settings)]
    if near:
        penalty = settings.balance_penalty + settings.balance_extra_neighbor_penalty * (
            len(near) - 1
        )
        score -= min(penalty, settings.balance_penalty_max)
    elif neighbours:
        score += settings.sequence_bonus

    if value < settings.small_amount_limit:
        score += settings.small_amount_bonus
    elif value < settings.medium_amount_limit:
        score += settings.medium_amount_bonus
    if value > settings.large_amount_limit:
        score -= settings.large_amount_penalty
    # Multiples of 1,000 are multiples of 100 as well.
    if value > settings.round_amount_limit and value % 100 == 0:
        score -= settings.round_amount_penalty

    return score


def _select_incoming(
    merchant: MerchantCandidate,
    amounts: Sequence[AmountCandidate],
    *,
    merchant_lines: Sequence[int],
    settings: ParserSettings,
) -> AmountCandidate | None:
    lo, hi = _record_bounds(merchant, merchant_lines, settings.incoming_window)
    in_range = [
        a
        for a in amounts
        if not a.is_used and a.sign is Sign.POSITIVE and lo <= a.line_index <= hi
    ]

    best: AmountCandidate | None = None
    best_key: tuple[int, int, int, int] | None = None
    for a in in_range:
        score = score_incoming(merchant, a, amounts, settings)
        _logger.debug(
            "match:score merchant_line=%d amount_line=%d amount=%s score=%s",
            merchant.line_index,
            a.line_index,
            a.amount,
            score,
        )
        if score is None or score <= settings.min_score:
            continue
        distance, after, line = _nearest_key(merchant, a)
        key = (-score, distance, after, line)
        if best_key is None or key < best_key:
            best, best_key = a, key
    if best is not None:
        return best

    fw = settings.incoming_fallback_window
    fallback = [
        a
        for a in in_range
        if abs(a.line_index - merchant.line_index) <= fw
    ]
    if not fallback:
        return None
    chosen = min(fallback, key=lambda a: _nearest_key(merchant, a))
    _logger.debug(
        "match:fallback merchant_line=%d amount_line=%d", merchant.line_index, chosen.line_index
    )
    return chosen


# ---------------------------------------------------------------------------
# Hybrid same-line amounts
# ---------------------------------------------------------------------------


def _select_inline(
    merchant: MerchantCandidate, lines: Lines, *, unsigned: bool
) -> AmountCandidate | None:
    line = next((ln for ln in lines if ln.index == merchant.line_index), None)
    if line is None:
        return None
    inline = find_inline_amount(line)
    if inline is None:
        return None
    if merchant.direction is Direction.OUTGOING:
        fits = unsigned or inline.sign is Sign.NEGATIVE
    else:
        fits = inline.sign is Sign.POSITIVE
    return inline if fits else None


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def match_transactions(
    lines: Lines,
    merchants: Sequence[MerchantCandidate],
    amounts: Sequence[AmountCandidate],
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> tuple[Match, ...]:
    """Pair each merchant (in discovery order) with at most one unused amount."""

    unsigned = _is_unsigned(amounts)
    merchant_lines = sorted({m.line_index for m in merchants})
    matches: list[Match] = []

    for merchant in merchants:
        if merchant.direction is Direction.OUTGOING:
            chosen = _select_outgoing(merchant, amounts, unsigned=unsigned, settings=settings)
        else:
            chosen = _select_incoming(
                merchant, amounts, merchant_lines=merchant_lines, settings=settings
            )
        if chosen is None:
            chosen = _select_inline(merchant, lines, unsigned=unsigned)
        if chosen is None:
            _logger.debug(
                "match:dropped line=%d direction=%s",
                merchant.line_index,
                merchant.direction.value,
            )
            continue

        chosen.claim(merchant)
        matches.append(Match(merchant=merchant, amount=chosen))

    return tuple(matches)


__all__ = ["match_transactions", "score_incoming"]
