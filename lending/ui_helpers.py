import os
import json
from typing import Any, Dict, List, Sequence, Tuple
from datetime import date

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from lending.outcomes import Result

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _print_rows(title: str, empty_message: str, columns: Sequence[str], rows: List[Dict[str, Any]]) -> None:
    """Render dict rows according to the current output mode.
    - plain: one 'key: value, ...' line per row, or the empty message
    - json: JSON array of the rows
    - rich: Rich table
    """
    mode = get_output_mode()

    if not rows:
        print(empty_message)
        return

    if mode == "json":
        print(json.dumps(rows, ensure_ascii=False, default=str))
    elif mode == "rich":
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        for col in columns:
            table.add_column(col, no_wrap=col.endswith("id"))
        for row in rows:
            table.add_row(*["" if row.get(col) is None else str(row.get(col)) for col in columns])
        _console.print(table)
    else:
        for row in rows:
            print(", ".join(f"{col}: {'-' if row.get(col) is None else row.get(col)}" for col in columns))


def print_books(books: List[Any]) -> None:
    _print_rows("Books", "No books in library.",
                ["book_id", "title", "author", "isbn", "publisher", "stock"],
                [b.to_dict() for b in books])


def print_members(members: List[Any]) -> None:
    _print_rows("Members", "No members registered.",
                ["member_id", "name", "phone_number"],
                [m.to_dict() for m in members])


def print_loans(loans: List[Any]) -> None:
    _print_rows("Loans", "No loans found.",
                ["loan_id", "book_id", "member_id", "borrow_date", "due_date", "return_date",
                 "extension_count", "status"],
                [loan.to_dict() for loan in loans])


def print_holidays(holidays: List[Tuple[date, str]]) -> None:
    _print_rows("Holidays", "No holidays configured.",
                ["holiday_date", "description"],
                [{"holiday_date": d.isoformat(), "description": desc} for d, desc in holidays])


def print_result(result: Result, success_message: str) -> None:
    """Print an operation outcome; failures show the outcome kind and detail."""
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(result.to_dict(), ensure_ascii=False, default=str))
        return

    if result.ok:
        message = success_message
    else:
        message = f"Failed ({result.outcome.value}): {result.detail}"

    if mode == "rich":
        style = "green" if result.ok else "red"
        _console.print(f"[{style}]{message}[/]")
    else:
        print(message)


def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{key.replace('_', ' ').title()}:[/] {value}" for key, value in stats.items())
        _console.print(Panel.fit(content, title="Stats", border_style="blue"))
    else:
        for key, value in stats.items():
            print(f"{key.replace('_', ' ').title()}: {value}")
