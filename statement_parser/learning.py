"""Persistent merchant -> category learning map.

The map remembers the category a user picked for a merchant so the next
statement suggests it directly. It lives in a single JSON file::

    <data_dir>/category_learning.json

``data_dir`` defaults to ``./.statement_parser`` and can be overridden with
the ``STATEMENT_PARSER_DATA_DIR`` environment variable (absolute or
relative). Writes target ``.tmp`` first and then ``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Mapping
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from .categories import merchant_key, normalize_name
from .errors import LearningStoreError
from .logging_setup import get_logger

SCHEMA_VERSION: int = 1
LEARNING_FILENAME = "category_learning.json"
_DATA_DIR_ENV = "STATEMENT_PARSER_DATA_DIR"

_logger = get_logger("statement_parser.learning")


def get_data_dir() -> Path:
    """Return the data directory.

    Default: ``./.statement_parser`` under the current working directory.
    Override: ``STATEMENT_PARSER_DATA_DIR``.
    """

    root = os.getenv(_DATA_DIR_ENV)
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".statement_parser").resolve()


class LearningFile(BaseModel):
    """On-disk shape of the learning map."""

    model_config = ConfigDict(strict=True, extra="forbid")

    schema_version: int
    categories: dict[str, str]


class LearningStore:
    """Load, update and save the merchant -> category map.

    The file is read lazily on first access. Updates stay in memory until
    :meth:`save`.
    """

    def __init__(self, data_dir: str | PathLike[str] | None = None) -> None:
        base = Path(data_dir).expanduser().resolve() if data_dir is not None else get_data_dir()
        self.path = base / LEARNING_FILENAME
        self._categories: dict[str, str] | None = None
        self._dirty = False

    def _load(self) -> dict[str, str]:
        if self._categories is not None:
            return self._categories
        if not self.path.exists():
            self._categories = {}
            return self._categories

        try:
            text = self.path.read_text(encoding="utf-8")
            parsed = LearningFile.model_validate_json(text)
        except (OSError, UnicodeDecodeError) as e:
            raise LearningStoreError(f"cannot read learning file {self.path}: {e}") from e
        except ValidationError as e:
            raise LearningStoreError(f"invalid learning file {self.path}: {e}") from e
        if parsed.schema_version != SCHEMA_VERSION:
            raise LearningStoreError(
                f"unsupported learning file schema_version={parsed.schema_version} "
                f"(expected {SCHEMA_VERSION}): {self.path}"
            )

        self._categories = {merchant_key(k): v for k, v in parsed.categories.items()}
        _logger.debug(
            "learning:loaded path=%s entries=%d", os.fspath(self.path), len(self._categories)
        )
        return self._categories

    @property
    def categories(self) -> Mapping[str, str]:
        return dict(self._load())

    @property
    def dirty(self) -> bool:
        return self._dirty

    def get(self, merchant: str) -> str | None:
        return self._load().get(merchant_key(merchant))

    def learn(self, merchant: str, category: str) -> bool:
        """Remember ``category`` for ``merchant``; return True when it changed."""

        key = merchant_key(merchant)
        value = normalize_name(category)
        if not key or not value:
            raise ValueError("merchant and category must be non-empty")
        data = self._load()
        if data.get(key) == value:
            return False
        data[key] = value
        self._dirty = True
        return True

    def save(self) -> None:
        data = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = LearningFile(schema_version=SCHEMA_VERSION, categories=dict(sorted(data.items())))

        try:
            tmp.write_text(
                json.dumps(payload.model_dump(mode="json"), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp, self.path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise

        self._dirty = False
        _logger.info("learning:saved path=%s entries=%d", os.fspath(self.path), len(data))


__all__ = ["LearningFile", "LearningStore", "get_data_dir", "SCHEMA_VERSION"]
