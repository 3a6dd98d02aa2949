"""Data model for the statement parsing pipeline.

Every stage hands the next one immutable values: lines, merchant candidates
and transactions are frozen dataclasses collected in tuples. The one piece of
state that changes during a parse is amount ownership, which is modelled as a
single-assignment claim on :class:`AmountCandidate` rather than a free
boolean flag.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TypeAlias

from .errors import AmountAlreadyClaimedError

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Direction(Enum):
    """Whether a statement record moves money in or out of the account."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class Sign(Enum):
    NEGATIVE = "negative"
    POSITIVE = "positive"


class TransactionType(str, Enum):
    """Semantic type of an emitted transaction (string-valued for JSON output)."""

    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS = "savings"


# ---------------------------------------------------------------------------
# Pipeline values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawLine:
    """A trimmed, non-empty line of OCR text.

    ``index`` is the position within the filtered sequence and the only
    ordering key used by later stages.
    """

    index: int
    text: str


Lines: TypeAlias = Sequence[RawLine]


@dataclass(frozen=True, slots=True)
class MerchantCandidate:
    """A detected merchant/direction record.

    ``line_index`` is the line where the name appears (for split records the
    name line, not the date line); amount search distances are measured from
    it. ``name`` is already final: account-number placeholders are repaired
    before the candidate is constructed.
    """

    line_index: int
    date: str | None
    direction: Direction
    name: str


@dataclass(frozen=True, slots=True)
class MerchantScan:
    """Output of the merchant detector.

    ``consumed`` holds the index of every line used as part of a merchant
    record; the amount detector must skip them.
    """

    candidates: tuple[MerchantCandidate, ...]
    consumed: frozenset[int]


@dataclass(slots=True, eq=False)
class AmountCandidate:
    """A line that holds exactly one monetary amount.

    ``amount`` is a non-negative magnitude; the sign lives in ``sign``.
    Ownership is transferred at most once through :meth:`claim`.
    """

    line_index: int
    amount: Decimal
    sign: Sign
    inline: bool = False
    _used_by: MerchantCandidate | None = field(default=None, init=False, repr=False)

    @property
    def used_by(self) -> MerchantCandidate | None:
        return self._used_by

    @property
    def is_used(self) -> bool:
        return self._used_by is not None

    def claim(self, merchant: MerchantCandidate) -> None:
        """Assign this amount to ``merchant``; a second claim is an error."""

        if self._used_by is not None:
            raise AmountAlreadyClaimedError(self.line_index, self._used_by, merchant)
        self._used_by = merchant


@dataclass(frozen=True, slots=True)
class Match:
    """A merchant paired with the amount it claimed."""

    merchant: MerchantCandidate
    amount: AmountCandidate


@dataclass(frozen=True, slots=True)
class Transaction:
    """A normalized transaction suggestion.

    ``merchant_line`` and ``amount_line`` point back at the source lines so
    callers can audit which OCR lines produced the row.
    """

    merchant: str
    amount: Decimal
    type: TransactionType
    date: str | None
    merchant_line: int
    amount_line: int

    def to_dict(self) -> dict[str, object]:
        return {
            "merchant": self.merchant,
            "amount": f"{self.amount:.2f}",
            "type": self.type.value,
            "date": self.date,
            "merchant_line": self.merchant_line,
            "amount_line": self.amount_line,
        }


__all__ = [
    "Direction",
    "Sign",
    "TransactionType",
    "RawLine",
    "Lines",
    "MerchantCandidate",
    "MerchantScan",
    "AmountCandidate",
    "Match",
    "Transaction",
]
