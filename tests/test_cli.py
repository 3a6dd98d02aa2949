import importlib
import json
import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

import statement_parser.cli as cli_mod
from statement_parser.cli import app, cmd_review
from statement_parser.learning import LearningStore

STATEMENT = "21.08 Til: Kiwi Lade\n-89,90\n"


@pytest.fixture
def runner(tmp_path, monkeypatch):
    # Keep the root callback from reconfiguring logging or reading a real .env.
    monkeypatch.setattr(cli_mod, "configure_logging", lambda level=None: None)
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def statement_file(tmp_path):
    path = tmp_path / "statement.txt"
    path.write_text(STATEMENT, encoding="utf-8")
    return path


def test_parse_json(runner, statement_file):
    result = runner.invoke(app, ["parse", "--text-path", str(statement_file), "--format", "json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [
        {
            "merchant": "KIWI LADE",
            "amount": "89.90",
            "type": "expense",
            "date": "21.08",
            "merchant_line": 0,
            "amount_line": 1,
        }
    ]


def test_parse_tsv_from_stdin(runner):
    result = runner.invoke(app, ["parse", "--text-path", "-", "--format", "tsv"], input=STATEMENT)

    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["21.08\tKIWI LADE\t89.90\texpense"]


def test_parse_table(runner, statement_file):
    result = runner.invoke(app, ["parse", "--text-path", str(statement_file)])

    assert result.exit_code == 0, result.output
    assert "KIWI LADE" in result.stdout
    assert "89.90" in result.stdout


def test_parse_table_without_transactions(runner, tmp_path):
    empty = tmp_path / "empty.txt"
    empty.write_text("Saldo\n12 345,67\n", encoding="utf-8")

    result = runner.invoke(app, ["parse", "--text-path", str(empty)])

    assert result.exit_code == 0
    assert "No transactions found." in result.stdout


def test_parse_missing_file(runner, tmp_path):
    missing = tmp_path / "missing.txt"
    result = runner.invoke(app, ["parse", "--text-path", str(missing)])

    assert result.exit_code == 1
    assert f"Error: File not found: {missing}" in result.output


def test_parse_invalid_settings(runner, statement_file, tmp_path):
    bad = tmp_path / "settings.json"
    bad.write_text('{"outgoing_window": "wide"}', encoding="utf-8")

    result = runner.invoke(
        app, ["parse", "--text-path", str(statement_file), "--settings", str(bad)]
    )

    assert result.exit_code == 1
    assert "invalid settings file" in result.output


def test_scan_without_configured_providers(runner, tmp_path):
    image = tmp_path / "statement.png"
    image.write_bytes(b"png")

    result = runner.invoke(app, ["scan", "--image-path", str(image)])

    assert result.exit_code == 1
    assert "no OCR provider is configured" in result.output


def test_scan_unknown_provider(runner, tmp_path):
    image = tmp_path / "statement.png"
    image.write_bytes(b"png")

    result = runner.invoke(
        app, ["scan", "--image-path", str(image), "--provider", "tesseract"]
    )

    assert result.exit_code == 1
    assert "unknown OCR provider" in result.output


def test_review_prints_chosen_categories(statement_file, tmp_path, capsys):
    data_dir = tmp_path / "learn"

    code = cmd_review(
        str(statement_file),
        data_dir=str(data_dir),
        selector=lambda options, *, default: "grocery",
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "21.08\tKIWI LADE\t89.90\texpense\tgrocery" in out.splitlines()
    assert LearningStore(data_dir).get("Kiwi Lade") == "grocery"


def test_review_without_transactions(tmp_path, capsys):
    empty = tmp_path / "empty.txt"
    empty.write_text("Saldo\n", encoding="utf-8")

    assert cmd_review(str(empty), selector=lambda options, *, default: default) == 0
    assert "No transactions found." in capsys.readouterr().out


def test_console_script_targets_the_typer_app():
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    scripts = tomllib.loads(pyproject.read_text("utf-8"))["project"]["scripts"]
    module_name, _, attr = scripts["statement-parser"].partition(":")

    assert getattr(importlib.import_module(module_name), attr) is app
