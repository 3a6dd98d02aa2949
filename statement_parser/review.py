"""Interactive category review for parsed transactions.

Each transaction gets a suggested category (learning map first, then keyword
rules, then a per-type default). The user confirms or changes it; choices
that differ from the suggestion are learned so the next statement suggests
them directly. The learning map is written once, after the last prompt.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .categories import CATEGORY_OPTIONS, suggest_category
from .learning import LearningStore
from .logging_setup import get_logger
from .models import Transaction
from .term_ui import select_category as _select_category

_logger = get_logger("statement_parser.review")


@dataclass(frozen=True, slots=True)
class ReviewedTransaction:
    transaction: Transaction
    suggested: str
    category: str

    @property
    def changed(self) -> bool:
        return self.category != self.suggested


def _headline(pos: int, total: int, tx: Transaction) -> str:
    date = tx.date or "--.--"
    return f"[{pos}/{total}] {date}  {tx.merchant}  {tx.amount:.2f}  ({tx.type.value})"


def review_transactions(
    transactions: Iterable[Transaction],
    *,
    store: LearningStore,
    selector: Callable[..., str] | None = None,
    print_fn: Callable[..., None] = builtins.print,
) -> list[ReviewedTransaction]:
    """Walk the user through ``transactions`` and return their categories.

    Parameters
    ----------
    store:
        Learning map consulted for suggestions and updated with changed
        choices. Saved once at the end when anything changed.
    selector:
        ``selector(options, default=...) -> str``; defaults to the
        prompt_toolkit prompt in :mod:`statement_parser.term_ui`. Tests pass a
        plain function.
    print_fn:
        Where headlines go; ``print`` by default.
    """

    select = selector or _select_category
    items = list(transactions)
    reviewed: list[ReviewedTransaction] = []

    for pos, tx in enumerate(items, start=1):
        suggested = suggest_category(tx.merchant, tx.type, store.categories)
        print_fn(_headline(pos, len(items), tx))
        chosen = select(list(CATEGORY_OPTIONS[tx.type]), default=suggested)

        item = ReviewedTransaction(transaction=tx, suggested=suggested, category=chosen)
        if item.changed and store.learn(tx.merchant, chosen):
            _logger.debug("review:learned merchant=%s category=%s", tx.merchant, chosen)
        reviewed.append(item)

    if store.dirty:
        store.save()
    _logger.info(
        "review:done transactions=%d changed=%d",
        len(reviewed),
        sum(1 for r in reviewed if r.changed),
    )
    return reviewed


__all__ = ["ReviewedTransaction", "review_transactions"]
