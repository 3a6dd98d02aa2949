"""Category suggestions for parsed transactions.

A suggestion comes from, in order:

1. the learning map (a category the user picked earlier for the same
   merchant, keyed case-insensitively),
2. keyword rules on the merchant name (expenses only),
3. a per-type default.

``normalize_name`` and ``validate_name`` are shared with the terminal UI so
that a custom category typed at the prompt gets early feedback.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from .models import TransactionType

# ---------------------------
# Options and rules
# ---------------------------

CATEGORY_OPTIONS: Mapping[TransactionType, tuple[str, ...]] = {
    TransactionType.INCOME: ("salary", "freelance", "investment", "other-income"),
    TransactionType.EXPENSE: (
        "grocery",
        "transport",
        "dining",
        "shopping",
        "utilities",
        "entertainment",
        "other-expense",
    ),
    TransactionType.SAVINGS: ("emergency-fund", "vacation", "investment", "other-savings"),
}

_DEFAULTS: Mapping[TransactionType, str] = {
    TransactionType.INCOME: "salary",
    TransactionType.EXPENSE: "other-expense",
    TransactionType.SAVINGS: "emergency-fund",
}

# First matching rule wins; order matters for names like "Pizza Market".
_EXPENSE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("grocery", ("grocery", "supermarket", "food", "market")),
    ("transport", ("uber", "taxi", "bus", "train", "gas", "fuel")),
    ("dining", ("restaurant", "cafe", "coffee", "pizza", "mcdonald")),
    ("shopping", ("amazon", "store", "mall", "shop")),
    ("utilities", ("electric", "water", "internet", "phone")),
    ("entertainment", ("cinema", "netflix", "spotify", "game")),
)


# ---------------------------
# Name normalization/validation
# ---------------------------

_ALLOWED_RE = re.compile(r"^[a-z0-9][a-z0-9 &\-/]*$")


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced, lower-cased form of ``name``."""

    return " ".join(name.strip().split()).lower()


def merchant_key(merchant: str) -> str:
    """Key under which a merchant's learned category is stored."""

    return normalize_name(merchant)


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, min_len: int = 1, max_len: int = 40) -> NameValidation:
    """Validate a user-entered category name.

    Rules
    -----
    - Trim whitespace; enforce length bounds 1..40.
    - Allowed characters: letters, numbers, spaces, and ``& - /``; must start
      with a letter or number.
    """

    n = normalize_name(name)
    if len(n) < min_len:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    if not _ALLOWED_RE.match(n):
        return NameValidation(False, "Only letters, numbers, spaces, and & - / are allowed")
    return NameValidation(True, None)


# ---------------------------
# Suggestion
# ---------------------------


def suggest_category(
    merchant: str,
    type: TransactionType,
    learned: Mapping[str, str] | None = None,
) -> str:
    """Return the suggested category for ``merchant``.

    ``learned`` maps :func:`merchant_key` values to categories and always
    wins, even when the learned category is not one of the built-in options.
    """

    key = merchant_key(merchant)
    if learned and key in learned:
        return learned[key]

    if type is TransactionType.EXPENSE:
        for category, keywords in _EXPENSE_RULES:
            if any(k in key for k in keywords):
                return category

    return _DEFAULTS[type]


__all__ = [
    "CATEGORY_OPTIONS",
    "NameValidation",
    "merchant_key",
    "normalize_name",
    "suggest_category",
    "validate_name",
]
