"""CLI for the ``statement_parser`` package.

Command handlers (``cmd_parse``, ``cmd_scan``, ``cmd_review``) return a
process exit code and are callable directly; the Typer app below wraps them.
Environment variables (OCR API keys, data dir, settings path) are loaded from
a local ``.env`` with ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .api import parse_statement
from .errors import StatementParserError
from .logging_setup import configure_logging
from .models import Transaction
from .settings import load_settings


class OutputFormat(str, Enum):
    table = "table"
    tsv = "tsv"
    json = "json"


# ---- Helpers -----------------------------------------------------------------


def _read_text(text_path: str) -> str:
    if text_path == "-":
        return sys.stdin.read()
    return Path(text_path).expanduser().read_text(encoding="utf-8")


def _render(transactions: Sequence[Transaction], fmt: OutputFormat) -> None:
    if fmt is OutputFormat.json:
        print(json.dumps([t.to_dict() for t in transactions], ensure_ascii=False, indent=2))
        return
    if fmt is OutputFormat.tsv:
        for t in transactions:
            print(f"{t.date or ''}\t{t.merchant}\t{t.amount:.2f}\t{t.type.value}")
        return

    console = Console()
    if not transactions:
        console.print("No transactions found.")
        return
    table = Table(title=f"{len(transactions)} transaction(s)")
    table.add_column("Date")
    table.add_column("Merchant")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    for t in transactions:
        table.add_row(t.date or "", t.merchant, f"{t.amount:,.2f}", t.type.value)
    console.print(table)


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


# ---- Command handlers --------------------------------------------------------


def cmd_parse(
    text_path: str,
    *,
    fmt: OutputFormat = OutputFormat.table,
    settings_path: str | None = None,
) -> int:
    """Parse a text file (``-`` for stdin) and print the transactions."""

    try:
        settings = load_settings(settings_path)
        text = _read_text(text_path)
    except FileNotFoundError:
        return _fail(f"File not found: {text_path}")
    except (OSError, UnicodeDecodeError) as e:
        return _fail(f"cannot read '{text_path}': {e}")
    except StatementParserError as e:
        return _fail(str(e))

    _render(parse_statement(text, settings=settings), fmt)
    return 0


def cmd_scan(
    image_path: str,
    *,
    providers: Sequence[str] | None = None,
    fmt: OutputFormat = OutputFormat.table,
    settings_path: str | None = None,
) -> int:
    """OCR an image with the configured providers and print the transactions."""

    from .api import scan_statement
    from .ocr import default_providers

    try:
        settings = load_settings(settings_path)
        chain = default_providers(providers or None)
        transactions = scan_statement(image_path, providers=chain, settings=settings)
    except ValueError as e:
        return _fail(str(e))
    except StatementParserError as e:
        return _fail(str(e))

    _render(transactions, fmt)
    return 0


def cmd_review(
    text_path: str,
    *,
    data_dir: str | None = None,
    settings_path: str | None = None,
    selector: Callable[..., str] | None = None,
) -> int:
    """Parse a statement, then review categories interactively."""

    from .learning import LearningStore
    from .review import review_transactions

    try:
        settings = load_settings(settings_path)
        text = _read_text(text_path)
    except FileNotFoundError:
        return _fail(f"File not found: {text_path}")
    except (OSError, UnicodeDecodeError) as e:
        return _fail(f"cannot read '{text_path}': {e}")
    except StatementParserError as e:
        return _fail(str(e))

    transactions = parse_statement(text, settings=settings)
    if not transactions:
        print("No transactions found.")
        return 0

    store = LearningStore(data_dir)
    try:
        reviewed = review_transactions(transactions, store=store, selector=selector)
    except (OSError, StatementParserError) as e:
        return _fail(f"review failed: {e}")

    for r in reviewed:
        t = r.transaction
        print(f"{t.date or ''}\t{t.merchant}\t{t.amount:.2f}\t{t.type.value}\t{r.category}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Turn OCR text of bank statement screenshots into transaction suggestions. "
        "Loads OCR API keys from a local .env before running."
    ),
)

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults). Only required options are shared between commands.
TEXT_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--text-path",
    help="Path to a text file with OCR output, or '-' for stdin",
)


@app.command("parse")
def parse_cmd(
    text_path: Annotated[str, TEXT_PATH_OPTION],
    *,
    fmt: Annotated[
        OutputFormat, typer.Option("--format", help="Output format", case_sensitive=False)
    ] = OutputFormat.table,
    settings: Annotated[
        str | None,
        typer.Option("--settings", help="JSON settings file (else STATEMENT_PARSER_SETTINGS)."),
    ] = None,
) -> None:
    """Parse OCR text into transactions."""

    code = cmd_parse(text_path, fmt=fmt, settings_path=settings)
    if code:
        raise typer.Exit(code)


@app.command("scan")
def scan_cmd(
    image_path: Annotated[
        Path,
        typer.Option(..., "--image-path", help="Screenshot of a bank statement", dir_okay=False),
    ],
    *,
    provider: Annotated[
        list[str] | None,
        typer.Option(
            "--provider",
            help="OCR provider to try (google, ocrspace, openai); repeat to set the order.",
        ),
    ] = None,
    fmt: Annotated[
        OutputFormat, typer.Option("--format", help="Output format", case_sensitive=False)
    ] = OutputFormat.table,
    settings: Annotated[
        str | None,
        typer.Option("--settings", help="JSON settings file (else STATEMENT_PARSER_SETTINGS)."),
    ] = None,
) -> None:
    """OCR a statement screenshot, then parse it."""

    code = cmd_scan(str(image_path), providers=provider, fmt=fmt, settings_path=settings)
    if code:
        raise typer.Exit(code)


@app.command("review")
def review_cmd(
    text_path: Annotated[str, TEXT_PATH_OPTION],
    *,
    data_dir: Annotated[
        str | None,
        typer.Option(
            "--data-dir", help="Where the learning map lives (falls back to env/default)."
        ),
    ] = None,
    settings: Annotated[
        str | None,
        typer.Option("--settings", help="JSON settings file (else STATEMENT_PARSER_SETTINGS)."),
    ] = None,
) -> None:
    """Parse OCR text and review suggested categories interactively."""

    code = cmd_review(text_path, data_dir=data_dir, settings_path=settings)
    if code:
        raise typer.Exit(code)


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (falls back to STATEMENT_PARSER_LOG_LEVEL)."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


if __name__ == "__main__":  # pragma: no cover
    app()
