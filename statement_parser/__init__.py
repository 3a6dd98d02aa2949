"""Public interface for the ``statement_parser`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import parse_statement, scan_statement
from .errors import (
    AmountAlreadyClaimedError,
    LearningStoreError,
    OcrError,
    OcrUnavailableError,
    SettingsError,
    StatementParserError,
)
from .models import (
    AmountCandidate,
    Direction,
    MerchantCandidate,
    RawLine,
    Sign,
    Transaction,
    TransactionType,
)
from .settings import DEFAULT_SETTINGS, ParserSettings, load_settings

__all__ = [
    # API
    "parse_statement",
    "scan_statement",
    "load_settings",
    # Models / types
    "Transaction",
    "TransactionType",
    "Direction",
    "Sign",
    "RawLine",
    "MerchantCandidate",
    "AmountCandidate",
    "ParserSettings",
    "DEFAULT_SETTINGS",
    # Errors
    "StatementParserError",
    "AmountAlreadyClaimedError",
    "SettingsError",
    "LearningStoreError",
    "OcrError",
    "OcrUnavailableError",
]
