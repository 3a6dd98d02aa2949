"""Tunable heuristics for the statement parser.

Window sizes, score deltas and keyword lists were tuned empirically against
Norwegian bank statements and are likely locale-specific, so they live here as
configuration instead of literals inside the detectors and the matcher.

Settings can be overridden from a JSON file whose keys mirror the field
names; unknown keys are rejected::

    {"outgoing_window": 8, "savings_keywords": ["sparing", "fond"]}

``load_settings()`` resolves the file from an explicit path or the
``STATEMENT_PARSER_SETTINGS`` environment variable and falls back to the
defaults.
"""

from __future__ import annotations

import os
from decimal import Decimal
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .errors import SettingsError
from .logging_setup import get_logger

_SETTINGS_ENV = "STATEMENT_PARSER_SETTINGS"

_logger = get_logger("statement_parser.settings")


class ParserSettings(BaseModel):
    """Every constant the pipeline consults, with the tuned defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ---- Merchant detection -------------------------------------------------
    outgoing_words: tuple[str, ...] = ("til", "to")
    incoming_words: tuple[str, ...] = ("fra", "from")
    direct_payment_signatures: tuple[str, ...] = (
        "vipps",
        "mobilepay",
        "paypal",
        "klarna",
        "apple pay",
        "google pay",
        "ruter",
        "entur",
        "atb",
        "skyss",
        "kolumbus",
        "vy",
        "kommune",
        "kemner",
        "skatteetaten",
        "fjordkraft",
        "tibber",
        "hafslund",
        "elvia",
        "statkraft",
        "telenor",
        "telia",
    )
    # Lines mentioning these are statement furniture, never merchant names.
    label_keywords: tuple[str, ...] = (
        "saldo",
        "balance",
        "total",
        "sum",
        "reservert",
        "pending",
    )
    name_lookahead: int = 3
    name_min_length: int = 4
    name_max_length: int = 49

    # ---- Outgoing matching --------------------------------------------------
    outgoing_window: int = 6

    # ---- Incoming scoring ---------------------------------------------------
    incoming_window: int = 20
    incoming_fallback_window: int = 10
    base_score: int = 100
    min_score: int = 50
    proximity_lines: int = 3
    proximity_bonus: int = 20
    balance_neighbor_lines: int = 3
    balance_relative_tolerance: Decimal = Decimal("0.01")
    balance_relative_limit: Decimal = Decimal("10000")
    balance_absolute_tolerance: Decimal = Decimal("100")
    balance_penalty: int = 80
    balance_extra_neighbor_penalty: int = 10
    balance_penalty_max: int = 100
    sequence_bonus: int = 10
    small_amount_limit: Decimal = Decimal("1000")
    small_amount_bonus: int = 30
    medium_amount_limit: Decimal = Decimal("5000")
    medium_amount_bonus: int = 15
    large_amount_limit: Decimal = Decimal("10000")
    large_amount_penalty: int = 20
    round_amount_limit: Decimal = Decimal("50000")
    round_amount_penalty: int = 20
    max_amount: Decimal = Decimal("500000")

    # ---- Normalization ------------------------------------------------------
    merchant_max_length: int = 25
    merchant_max_words: int = 3
    savings_keywords: tuple[str, ...] = (
        "sparing",
        "sparekonto",
        "sparande",
        "sparen",
        "savings",
        "investering",
        "investment",
        "investition",
        "pensjon",
        "pension",
        "fond",
        "aksje",
        "bsu",
        "overføring til",
        "transfer to",
    )

    @field_validator(
        "outgoing_words",
        "incoming_words",
        "direct_payment_signatures",
        "label_keywords",
        "savings_keywords",
    )
    @classmethod
    def _lowercase_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        items = tuple(s.strip().lower() for s in v if s.strip())
        if not items:
            raise ValueError("keyword lists must not be empty")
        return items

    @field_validator(
        "name_lookahead",
        "outgoing_window",
        "incoming_window",
        "incoming_fallback_window",
        "proximity_lines",
        "balance_neighbor_lines",
        "merchant_max_words",
    )
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("window sizes must be >= 0")
        return v

    @model_validator(mode="after")
    def _check_ranges(self) -> ParserSettings:
        if self.name_min_length > self.name_max_length:
            raise ValueError("name_min_length must not exceed name_max_length")
        if self.balance_penalty > self.balance_penalty_max:
            raise ValueError("balance_penalty must not exceed balance_penalty_max")
        return self


DEFAULT_SETTINGS = ParserSettings()


def load_settings(path: str | PathLike[str] | None = None) -> ParserSettings:
    """Return settings from ``path`` (or ``$STATEMENT_PARSER_SETTINGS``).

    Without either, the defaults are returned. Raises :class:`SettingsError`
    when the file is missing, unreadable, or fails validation.
    """

    if path is None:
        env_val = os.getenv(_SETTINGS_ENV)
        if not env_val or not env_val.strip():
            return DEFAULT_SETTINGS
        path = env_val.strip()

    p = Path(path).expanduser()
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"cannot read settings file {p}: {e}") from e

    try:
        settings = ParserSettings.model_validate_json(raw)
    except ValidationError as e:
        raise SettingsError(f"invalid settings file {p}: {e}") from e

    _logger.debug("settings:loaded path=%s", p)
    return settings


__all__ = ["ParserSettings", "DEFAULT_SETTINGS", "load_settings"]
