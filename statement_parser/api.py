"""Public entry points of the ``statement_parser`` package.

:func:`parse_statement` is the pure core: OCR text in, transaction
suggestions out. It never raises for malformed input; lines it cannot
interpret are skipped. :func:`scan_statement` runs an OCR provider chain
first and hands the text to the core.
"""

from __future__ import annotations

from collections.abc import Sequence
from os import PathLike

from .models import Transaction
from .ocr import OcrProvider, default_providers, extract_text
from .pipeline import run_pipeline
from .settings import DEFAULT_SETTINGS, ParserSettings


def parse_statement(
    text: str | None, *, settings: ParserSettings | None = None
) -> list[Transaction]:
    """Parse OCR text of a bank statement into transaction suggestions.

    Parameters
    ----------
    text:
        Raw OCR output. Any line-break convention is accepted; ``None`` and
        blank input yield an empty list.
    settings:
        Heuristic overrides; :data:`~statement_parser.settings.DEFAULT_SETTINGS`
        when omitted.

    Returns
    -------
    Transactions sorted by amount, largest first. The function is
    deterministic: the same text and settings always give the same list.
    """

    result = run_pipeline(text, settings or DEFAULT_SETTINGS)
    return list(result.transactions)


def scan_statement(
    image_path: str | PathLike[str],
    *,
    providers: Sequence[OcrProvider] | None = None,
    settings: ParserSettings | None = None,
) -> list[Transaction]:
    """OCR a statement screenshot and parse the text.

    ``providers`` defaults to :func:`~statement_parser.ocr.default_providers`.
    Raises :class:`~statement_parser.errors.OcrUnavailableError` when no
    provider returns text.
    """

    chain = default_providers() if providers is None else providers
    text = extract_text(image_path, chain)
    return parse_statement(text, settings=settings)


__all__ = ["parse_statement", "scan_statement"]
