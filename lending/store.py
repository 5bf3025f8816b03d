"""SQLite-backed record store for books, members, loans and holidays.

The store is deliberately thin: it executes single statements and reports
affected row counts, leaving business decisions to the lending core. Any
``sqlite3.Error`` is re-raised as ``StoreError`` so callers only deal with
one failure type.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Tuple

from lending import database
from lending.book import Book
from lending.loan import Loan
from lending.member import Member
from lending.outcomes import IntegrityViolation, StoreError

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "book_id, title, author, isbn, publisher, stock, created_at"
MEMBER_COLUMNS = "member_id, name, phone_number, created_at"
LOAN_COLUMNS = "loan_id, book_id, member_id, borrow_date, due_date, return_date, extension_count"


class RecordStore:
    """Durable storage consumed by the lending engine."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or database.DATABASE_FILE
        database.initialize_database(self.db_file)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = database.get_db_connection(self.db_file)
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise IntegrityViolation(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    # ------------------------- Books ------------------------- #
    def insert_book(self, book: Book) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO books (title, author, isbn, publisher, stock) VALUES (?, ?, ?, ?, ?)",
                (book.title, book.author, book.isbn, book.publisher, book.stock),
            )
            return cursor.lastrowid

    def get_book(self, book_id: int) -> Optional[Book]:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE book_id = ?", (book_id,)).fetchone()
            return Book.from_dict(dict(row)) if row else None

    def list_books(self) -> List[Book]:
        with self._connection() as conn:
            rows = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY book_id").fetchall()
            return [Book.from_dict(dict(row)) for row in rows]

    def search_books_by_title(self, keyword: str) -> List[Book]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE title LIKE ? ORDER BY title",
                (f"%{keyword}%",),
            ).fetchall()
            return [Book.from_dict(dict(row)) for row in rows]

    def decrement_stock(self, book_id: int) -> Tuple[int, bool]:
        """Take one copy if any is left.

        Returns ``(affected_rows, book_exists)``. The update is a single
        conditional statement, so two racing callers can never both take
        the last copy.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET stock = stock - 1 WHERE book_id = ? AND stock > 0",
                (book_id,),
            )
            if cursor.rowcount > 0:
                return cursor.rowcount, True
            exists = conn.execute("SELECT 1 FROM books WHERE book_id = ?", (book_id,)).fetchone() is not None
            return 0, exists

    def increment_stock(self, book_id: int) -> int:
        with self._connection() as conn:
            cursor = conn.execute("UPDATE books SET stock = stock + 1 WHERE book_id = ?", (book_id,))
            return cursor.rowcount

    def set_stock(self, book_id: int, stock: int) -> int:
        with self._connection() as conn:
            cursor = conn.execute("UPDATE books SET stock = ? WHERE book_id = ?", (stock, book_id))
            return cursor.rowcount

    def delete_book(self, book_id: int) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM books WHERE book_id = ?", (book_id,))
            return cursor.rowcount

    def count_active_loans_for_book(self, book_id: int) -> int:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM loans WHERE book_id = ? AND return_date IS NULL", (book_id,)
            ).fetchone()
            return row[0]

    # ------------------------- Members ------------------------- #
    def insert_member(self, member: Member) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO members (name, phone_number) VALUES (?, ?)",
                (member.name, member.phone_number),
            )
            return cursor.lastrowid

    def get_member(self, member_id: int) -> Optional[Member]:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {MEMBER_COLUMNS} FROM members WHERE member_id = ?", (member_id,)).fetchone()
            return Member.from_dict(dict(row)) if row else None

    def list_members(self) -> List[Member]:
        with self._connection() as conn:
            rows = conn.execute(f"SELECT {MEMBER_COLUMNS} FROM members ORDER BY member_id").fetchall()
            return [Member.from_dict(dict(row)) for row in rows]

    def update_member_phone(self, member_id: int, phone_number: str) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE members SET phone_number = ? WHERE member_id = ?", (phone_number, member_id)
            )
            return cursor.rowcount

    def delete_member(self, member_id: int) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM members WHERE member_id = ?", (member_id,))
            return cursor.rowcount

    def count_active_loans_for_member(self, member_id: int) -> int:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM loans WHERE member_id = ? AND return_date IS NULL", (member_id,)
            ).fetchone()
            return row[0]

    # ------------------------- Loans ------------------------- #
    def insert_loan(self, loan: Loan) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO loans (book_id, member_id, borrow_date, due_date, return_date, extension_count)
                VALUES (?, ?, ?, ?, NULL, ?)
                """,
                (loan.book_id, loan.member_id, loan.borrow_date.isoformat(),
                 loan.due_date.isoformat(), loan.extension_count),
            )
            return cursor.lastrowid

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {LOAN_COLUMNS} FROM loans WHERE loan_id = ?", (loan_id,)).fetchone()
            return Loan.from_dict(dict(row)) if row else None

    def list_loans(self, active_only: bool = False) -> List[Loan]:
        sql = f"SELECT {LOAN_COLUMNS} FROM loans"
        if active_only:
            sql += " WHERE return_date IS NULL"
        with self._connection() as conn:
            rows = conn.execute(sql + " ORDER BY loan_id").fetchall()
            return [Loan.from_dict(dict(row)) for row in rows]

    def extend_loan(self, loan_id: int, due_date: date) -> int:
        """Move the due date of an active, never-extended loan and mark it extended.

        Returns 0 if the loan was returned or already extended; returned loans
        are immutable.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE loans SET due_date = ?, extension_count = extension_count + 1
                WHERE loan_id = ? AND return_date IS NULL AND extension_count = 0
                """,
                (due_date.isoformat(), loan_id),
            )
            return cursor.rowcount

    def mark_loan_returned(self, loan_id: int, return_date: date) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE loans SET return_date = ? WHERE loan_id = ? AND return_date IS NULL",
                (return_date.isoformat(), loan_id),
            )
            return cursor.rowcount

    # ------------------------- Holidays ------------------------- #
    def list_holidays(self) -> List[Tuple[date, str]]:
        with self._connection() as conn:
            rows = conn.execute("SELECT holiday_date, description FROM holidays ORDER BY holiday_date").fetchall()
            return [(date.fromisoformat(row["holiday_date"]), row["description"]) for row in rows]

    def insert_holiday(self, holiday_date: date, description: str) -> None:
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO holidays (holiday_date, description) VALUES (?, ?)",
                (holiday_date.isoformat(), description),
            )

    def delete_holiday(self, holiday_date: date) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM holidays WHERE holiday_date = ?", (holiday_date.isoformat(),))
            return cursor.rowcount

    # ------------------------- Statistics ------------------------- #
    def get_statistics(self) -> Dict[str, Any]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*), COALESCE(SUM(stock), 0) FROM books")
            total_titles, copies_in_stock = cursor.fetchone()
            cursor.execute("SELECT COUNT(*) FROM members")
            total_members = cursor.fetchone()[0]
            cursor.execute("SELECT COUNT(*) FROM loans WHERE return_date IS NULL")
            active_loans = cursor.fetchone()[0]
            return {
                "total_titles": total_titles,
                "copies_in_stock": copies_in_stock,
                "total_members": total_members,
                "active_loans": active_loans,
            }
