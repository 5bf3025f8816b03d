import logging
import sqlite3
from typing import Optional

from lending.config import settings

logger = logging.getLogger(__name__)

# Default database file; callers (and tests) pass their own db_file to override it.
DATABASE_FILE = settings.db_file


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """Open a fresh connection to the SQLite database.

    Every store call uses its own connection so independent callers can run
    concurrently; SQLite serializes the writes using the busy timeout.
    """
    conn = sqlite3.connect(db_file or DATABASE_FILE, timeout=settings.db_timeout, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Create the required tables if they do not exist yet."""
    conn = get_db_connection(db_file)
    try:
        # WAL lets readers proceed while a borrower holds the write lock
        conn.execute("PRAGMA journal_mode=WAL;")
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                book_id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                isbn TEXT NOT NULL,
                publisher TEXT,
                stock INTEGER NOT NULL DEFAULT 0 CHECK(stock >= 0),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS members (
                member_id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                phone_number TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS loans (
                loan_id INTEGER PRIMARY KEY AUTOINCREMENT,
                book_id INTEGER NOT NULL,
                member_id INTEGER NOT NULL,
                borrow_date TEXT NOT NULL,
                due_date TEXT NOT NULL,
                return_date TEXT,
                extension_count INTEGER NOT NULL DEFAULT 0 CHECK(extension_count BETWEEN 0 AND 1)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS holidays (
                holiday_date TEXT PRIMARY KEY,
                description TEXT NOT NULL DEFAULT ''
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_loans_book_active ON loans(book_id, return_date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_loans_member_active ON loans(member_id, return_date)")

        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: Optional[str] = None) -> None:
    """Initialize the database, creating tables when needed."""
    create_tables(db_file)
    logger.debug("Database ready at %s", db_file or DATABASE_FILE)
