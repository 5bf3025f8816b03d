import logging
import os
import subprocess
import sys
from datetime import date
from typing import Optional

import typer
from rich.console import Console

from lending.config import settings
from lending.library import Library
from lending.outcomes import Outcome, Result, StoreError
from lending.ui_helpers import (
    print_books,
    print_holidays,
    print_loans,
    print_members,
    print_result,
    print_stats_result,
    set_output_mode,
)
from lending.validators import InputValidator

APP_NAME = "Lending CLI"

console = Console()


def get_library() -> Library:
    """Build the Library for this invocation; it owns the calendar policy."""
    return Library(db_file=settings.db_file)


def _finish(result: Result, success_message: str) -> None:
    print_result(result, success_message)
    if not result.ok:
        raise typer.Exit(code=1)


def _parse_date(raw: str) -> date:
    try:
        return InputValidator.parse_date(raw)
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)


def _parse_id(raw: int) -> int:
    try:
        return InputValidator.parse_id(raw)
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)


def _parse_stock(raw: int) -> int:
    try:
        return InputValidator.parse_non_negative(raw, "stock")
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)


# --- Typer CLI Application ---
app = typer.Typer(help="Library lending CLI")
book_app = typer.Typer(help="Manage books and stock.")
member_app = typer.Typer(help="Manage members.")
loan_app = typer.Typer(help="Borrow, return and extend loans.")
holiday_app = typer.Typer(help="Manage non-lending days.")
app.add_typer(book_app, name="book")
app.add_typer(member_app, name="member")
app.add_typer(loan_app, name="loan")
app.add_typer(holiday_app, name="holiday")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global options for the CLI (e.g. output mode)."""
    if output:
        set_output_mode(output)


# ------------------------- Books ------------------------- #
@book_app.command("add")
def cli_book_add(
    title: str,
    author: str,
    isbn: str,
    stock: int = typer.Option(1, "--stock", "-s", help="Number of copies"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p"),
):
    """Add a book to the catalog."""
    result = get_library().add_book(title, author, isbn, publisher, _parse_stock(stock))
    book = result.value
    _finish(result, f"Added book {book.book_id}: {book.title} by {book.author}" if result.ok else "")


@book_app.command("list")
def cli_book_list():
    """List every book with its stock."""
    print_books(get_library().list_books())


@book_app.command("search")
def cli_book_search(keyword: str):
    """Search books by title."""
    print_books(get_library().search_books_by_title(keyword))


@book_app.command("stock")
def cli_book_stock(book_id: int, new_stock: int):
    """Set a book's stock count."""
    result = get_library().update_book_stock(_parse_id(book_id), _parse_stock(new_stock))
    _finish(result, f"Stock of book {book_id} set to {new_stock}.")


@book_app.command("delete")
def cli_book_delete(book_id: int):
    """Delete a book that has no active loans."""
    result = get_library().delete_book(_parse_id(book_id))
    _finish(result, f"Book {book_id} has been deleted.")


# ------------------------- Members ------------------------- #
@member_app.command("add")
def cli_member_add(name: str, phone: Optional[str] = typer.Argument(None)):
    """Register a member."""
    result = get_library().add_member(name, phone)
    _finish(result, f"Registered member {result.value.member_id}: {name}" if result.ok else "")


@member_app.command("list")
def cli_member_list():
    """List all members."""
    print_members(get_library().list_members())


@member_app.command("phone")
def cli_member_phone(member_id: int, phone: str):
    """Change a member's phone number."""
    result = get_library().update_member_phone(_parse_id(member_id), phone)
    _finish(result, f"Phone number of member {member_id} updated.")


@member_app.command("delete")
def cli_member_delete(member_id: int):
    """Delete a member with no books on loan."""
    result = get_library().delete_member(_parse_id(member_id))
    _finish(result, f"Member {member_id} has been deleted.")


# ------------------------- Loans ------------------------- #
@loan_app.command("borrow")
def cli_loan_borrow(book_id: int, member_id: int):
    """Lend a book to a member."""
    result = get_library().borrow_book(_parse_id(book_id), _parse_id(member_id))
    loan = result.value
    _finish(result, f"Loan {loan.loan_id} created. Due date: {loan.due_date.isoformat()}" if result.ok else "")


@loan_app.command("return")
def cli_loan_return(loan_id: int):
    """Return a borrowed book."""
    result = get_library().return_book(_parse_id(loan_id))
    _finish(result, f"Loan {loan_id} returned.")


@loan_app.command("extend")
def cli_loan_extend(
    loan_id: int,
    days: int = typer.Option(settings.extension_days, "--days", "-d", help="Lending days to add"),
):
    """Extend a loan's due date (once per loan)."""
    result = get_library().extend_due_date(_parse_id(loan_id), days)
    loan = result.value
    _finish(result, f"Loan {loan_id} extended. New due date: {loan.due_date.isoformat()}" if result.ok else "")


@loan_app.command("list")
def cli_loan_list(
    active: bool = typer.Option(False, "--active", help="Only loans that are not returned"),
    overdue: bool = typer.Option(False, "--overdue", help="Only active loans past their due date"),
):
    """List loans."""
    lib = get_library()
    print_loans(lib.list_overdue_loans() if overdue else lib.list_loans(active_only=active))


# ------------------------- Holidays ------------------------- #
@holiday_app.command("add")
def cli_holiday_add(holiday_date: str, description: str = typer.Argument("")):
    """Add a holiday (YYYY-MM-DD)."""
    d = _parse_date(holiday_date)
    result = get_library().add_holiday(d, description)
    _finish(result, f"Holiday {d.isoformat()} added.")


@holiday_app.command("remove")
def cli_holiday_remove(holiday_date: str):
    """Remove a holiday (YYYY-MM-DD)."""
    d = _parse_date(holiday_date)
    result = get_library().remove_holiday(d)
    _finish(result, f"Holiday {d.isoformat()} removed.")


@holiday_app.command("check")
def cli_holiday_check(holiday_date: str):
    """Tell whether a date is a non-lending day."""
    d = _parse_date(holiday_date)
    if get_library().is_holiday(d):
        print(f"{d.isoformat()} is a non-lending day.")
    else:
        print(f"{d.isoformat()} is a lending day.")


@holiday_app.command("list")
def cli_holiday_list():
    """List configured holidays."""
    lib = get_library()
    if lib.policy_status() is Outcome.POLICY_LOAD_FAILED:
        print("Warning: holidays could not be loaded; only built-in rules apply.")
    print_holidays(lib.list_holidays())


# ------------------------- Misc ------------------------- #
@app.command("stats")
def cli_stats():
    """Show library statistics."""
    print_stats_result(get_library().get_statistics())


@app.command("serve")
def cli_serve(reload: bool = typer.Option(False, "--reload", help="Restart the server on code changes")):
    """Start the HTTP API using uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    subprocess.run(args, cwd=os.path.dirname(os.path.abspath(__file__)))


def run() -> None:
    """Console entry point: configure logging, then dispatch to Typer."""
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        app()
    except StoreError as e:
        console.print(f"[bold red]Database error: {e}[/]")
        sys.exit(1)


if __name__ == "__main__":
    run()
