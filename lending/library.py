import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from lending.book import Book
from lending.calendar_policy import CalendarPolicy, CompositePolicy, CustomPolicy, build_policy
from lending.config import settings
from lending.ledger import LoanLedger
from lending.loan import Loan
from lending.member import Member
from lending.outcomes import Outcome, Result, StoreError
from lending.scheduler import DueDateScheduler
from lending.stock import StockReservation
from lending.store import RecordStore
from lending.validators import ISBNValidator, TextValidator

logger = logging.getLogger(__name__)


class Library:
    """Wires the record store, calendar policy and lending core together.

    The Library owns exactly one calendar policy instance; the scheduler
    and every holiday operation go through it.
    """

    def __init__(self, db_file: Optional[str] = None, policy: Optional[CalendarPolicy] = None,
                 policy_name: Optional[str] = None, today: Callable[[], date] = date.today) -> None:
        self.store = RecordStore(db_file)
        self.policy = policy if policy is not None else build_policy(policy_name or settings.calendar_policy, self.store)
        self.scheduler = DueDateScheduler(self.policy)
        self.stock = StockReservation(self.store)
        self.ledger = LoanLedger(self.store, self.stock, self.scheduler, today=today)
        self.today = today

    # ------------------------- Books ------------------------- #
    def add_book(self, title: str, author: str, isbn: str, publisher: Optional[str] = None, stock: int = 0) -> Result:
        if not TextValidator.validate_required(title) or not TextValidator.validate_required(author):
            return Result.failure(Outcome.INVALID_INPUT, "Title and author are required.")
        norm = ISBNValidator.normalize_isbn(isbn)
        if not ISBNValidator.is_valid_isbn(norm):
            return Result.failure(Outcome.INVALID_INPUT, f"Invalid ISBN: {isbn}")
        if stock < 0:
            return Result.failure(Outcome.INVALID_INPUT, "Stock cannot be negative.")

        book = Book(title=title, author=author, isbn=norm, publisher=publisher, stock=stock)
        try:
            book.book_id = self.store.insert_book(book)
        except StoreError as e:
            logger.error("Failed to add book '%s': %s", title, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        logger.info("Book '%s' (ISBN: %s) added with id %s", book.title, book.isbn, book.book_id)
        return Result.success(book)

    def list_books(self) -> List[Book]:
        return self.store.list_books()

    def search_books_by_title(self, keyword: str) -> List[Book]:
        return self.store.search_books_by_title(keyword.strip())

    def find_book(self, book_id: int) -> Optional[Book]:
        return self.store.get_book(book_id)

    def update_book_stock(self, book_id: int, new_stock: int) -> Result:
        """Set the stock count directly, e.g. after an inventory check."""
        if new_stock < 0:
            return Result.failure(Outcome.INVALID_INPUT, "Stock cannot be negative.")
        try:
            updated = self.store.set_stock(book_id, new_stock)
        except StoreError as e:
            logger.error("Failed to update stock of book %s: %s", book_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if updated == 0:
            return Result.failure(Outcome.NOT_FOUND, f"Book {book_id} not found")
        logger.info("Stock of book %s set to %s", book_id, new_stock)
        return Result.success(self.store.get_book(book_id))

    def delete_book(self, book_id: int) -> Result:
        try:
            if self.store.count_active_loans_for_book(book_id) > 0:
                return Result.failure(Outcome.HAS_ACTIVE_LOANS, f"Book {book_id} has active loans")
            deleted = self.store.delete_book(book_id)
        except StoreError as e:
            logger.error("Failed to delete book %s: %s", book_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if deleted == 0:
            return Result.failure(Outcome.NOT_FOUND, f"Book {book_id} not found")
        logger.info("Book %s deleted", book_id)
        return Result.success(book_id)

    # ------------------------- Members ------------------------- #
    def add_member(self, name: str, phone_number: Optional[str] = None) -> Result:
        if not TextValidator.validate_required(name):
            return Result.failure(Outcome.INVALID_INPUT, "Member name is required.")
        if phone_number and not TextValidator.validate_phone(phone_number):
            return Result.failure(Outcome.INVALID_INPUT, f"Invalid phone number: {phone_number}")
        member = Member(name=name, phone_number=phone_number)
        try:
            member.member_id = self.store.insert_member(member)
        except StoreError as e:
            logger.error("Failed to add member '%s': %s", name, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        logger.info("Member '%s' registered with id %s", member.name, member.member_id)
        return Result.success(member)

    def list_members(self) -> List[Member]:
        return self.store.list_members()

    def find_member(self, member_id: int) -> Optional[Member]:
        return self.store.get_member(member_id)

    def update_member_phone(self, member_id: int, phone_number: str) -> Result:
        if not TextValidator.validate_phone(phone_number):
            return Result.failure(Outcome.INVALID_INPUT, f"Invalid phone number: {phone_number}")
        try:
            updated = self.store.update_member_phone(member_id, phone_number.strip())
        except StoreError as e:
            logger.error("Failed to update member %s: %s", member_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if updated == 0:
            return Result.failure(Outcome.NOT_FOUND, f"Member {member_id} not found")
        return Result.success(self.store.get_member(member_id))

    def delete_member(self, member_id: int) -> Result:
        try:
            if self.store.count_active_loans_for_member(member_id) > 0:
                return Result.failure(Outcome.HAS_ACTIVE_LOANS, f"Member {member_id} still has books on loan")
            deleted = self.store.delete_member(member_id)
        except StoreError as e:
            logger.error("Failed to delete member %s: %s", member_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if deleted == 0:
            return Result.failure(Outcome.NOT_FOUND, f"Member {member_id} not found")
        logger.info("Member %s deleted", member_id)
        return Result.success(member_id)

    # ------------------------- Loans ------------------------- #
    def borrow_book(self, book_id: int, member_id: int) -> Result:
        return self.ledger.borrow(book_id, member_id)

    def return_book(self, loan_id: int) -> Result:
        return self.ledger.return_loan(loan_id)

    def extend_due_date(self, loan_id: int, days_to_extend: Optional[int] = None) -> Result:
        days = days_to_extend if days_to_extend is not None else settings.extension_days
        return self.ledger.extend_due_date(loan_id, days)

    def list_loans(self, active_only: bool = False) -> List[Loan]:
        return self.store.list_loans(active_only=active_only)

    def list_overdue_loans(self) -> List[Loan]:
        today = self.today()
        return [loan for loan in self.store.list_loans(active_only=True) if loan.is_overdue(today)]

    def find_loan(self, loan_id: int) -> Optional[Loan]:
        return self.store.get_loan(loan_id)

    # ------------------------- Holidays ------------------------- #
    def _holiday_source(self):
        if isinstance(self.policy, CompositePolicy):
            return self.policy.holiday_source()
        return self.policy if hasattr(self.policy, "add_holiday") else None

    def add_holiday(self, holiday_date: date, description: str = "") -> Result:
        source = self._holiday_source()
        if source is None:
            return Result.failure(Outcome.INVALID_INPUT, "The active calendar policy has no editable holidays.")
        return source.add_holiday(holiday_date, description.strip())

    def remove_holiday(self, holiday_date: date) -> Result:
        source = self._holiday_source()
        if source is None:
            return Result.failure(Outcome.INVALID_INPUT, "The active calendar policy has no editable holidays.")
        return source.remove_holiday(holiday_date)

    def list_holidays(self) -> List[Tuple[date, str]]:
        source = self._holiday_source()
        return source.holidays() if source is not None else []

    def is_holiday(self, d: date) -> bool:
        """True if ``d`` is a non-lending day under the active policy (weekends included)."""
        return self.policy.is_non_lending_day(d)

    def policy_status(self) -> Outcome:
        """POLICY_LOAD_FAILED if a persisted calendar could not be loaded at startup."""
        source = self._holiday_source()
        if isinstance(source, CustomPolicy):
            return source.load_outcome
        return Outcome.SUCCESS

    # ------------------------- Statistics ------------------------- #
    def get_statistics(self) -> Dict[str, Any]:
        stats = self.store.get_statistics()
        stats["calendar_policy"] = repr(self.policy)
        return stats

    def close(self) -> None:
        """Connections are opened per call, so there is nothing to release."""
        return None
