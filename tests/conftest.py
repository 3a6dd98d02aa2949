"""Pytest configuration for test isolation.

The learning map is persisted under a default project-relative directory
(``./.statement_parser``) and settings/API keys are read from the
environment. A developer's own ``.env`` or shell exports would otherwise leak
into tests (a stray ``STATEMENT_PARSER_SETTINGS`` changes every heuristic; a
real API key makes the OCR chain hit the network).

An autouse fixture points the data dir at the test's temporary directory and
clears the relevant variables for every test.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

_CLEARED_ENV = (
    "STATEMENT_PARSER_SETTINGS",
    "STATEMENT_PARSER_OCR_PROVIDERS",
    "STATEMENT_PARSER_LOG_LEVEL",
    "GOOGLE_VISION_API_KEY",
    "OCR_SPACE_API_KEY",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("STATEMENT_PARSER_DATA_DIR", os.fspath(data_dir))
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
