"""Staged parse: Segment -> Detect -> Match -> Normalize.

Each stage consumes the immutable output of the previous one. The only state
touched during a run is amount ownership, and every call builds its own
amount candidates, so concurrent calls never share anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from .amounts import detect_amounts
from .logging_setup import get_logger
from .matcher import match_transactions
from .merchants import detect_merchants
from .models import AmountCandidate, Match, MerchantScan, RawLine, Transaction
from .normalizer import build_transactions
from .segmenter import segment_lines
from .settings import DEFAULT_SETTINGS, ParserSettings

_logger = get_logger("statement_parser.pipeline")


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Every intermediate stage output of one parse, for inspection and tests."""

    lines: tuple[RawLine, ...]
    merchants: MerchantScan
    amounts: tuple[AmountCandidate, ...]
    matches: tuple[Match, ...]
    transactions: tuple[Transaction, ...]


def run_pipeline(text: str | None, settings: ParserSettings = DEFAULT_SETTINGS) -> ParseResult:
    lines = segment_lines(text)
    scan = detect_merchants(lines, settings)
    amounts = detect_amounts(lines, scan.consumed)
    matches = match_transactions(lines, scan.candidates, amounts, settings)
    transactions = tuple(build_transactions(matches, settings))

    _logger.info(
        "parse_statement:done lines=%d merchants=%d amounts=%d transactions=%d",
        len(lines),
        len(scan.candidates),
        len(amounts),
        len(transactions),
    )
    return ParseResult(
        lines=lines,
        merchants=scan,
        amounts=amounts,
        matches=matches,
        transactions=transactions,
    )


__all__ = ["ParseResult", "run_pipeline"]
