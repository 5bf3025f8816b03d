"""Loan ledger: borrow, return and extend.

Each loan moves through ``none -> active -> returned``; a returned loan is
never reopened. Borrowing takes a copy first and then writes the loan row.
The two steps are separate store calls, so a failed loan insert is undone
by giving the copy back. If that compensation fails too the book stays one
copy short; this is logged at CRITICAL and not retried.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from lending.config import settings
from lending.loan import Loan
from lending.outcomes import Outcome, Result, ScheduleUnreachable, StoreError
from lending.scheduler import DueDateScheduler
from lending.stock import StockReservation
from lending.store import RecordStore

logger = logging.getLogger(__name__)

# A loan may be extended once; the schema enforces the same bound
MAX_EXTENSIONS = 1


class LoanLedger:
    def __init__(self, store: RecordStore, stock: StockReservation, scheduler: DueDateScheduler,
                 today: Callable[[], date] = date.today, loan_days: Optional[int] = None) -> None:
        self.store = store
        self.stock = stock
        self.scheduler = scheduler
        self.today = today
        self.loan_days = loan_days if loan_days is not None else settings.loan_days

    # ------------------------- Borrow ------------------------- #
    def borrow(self, book_id: int, member_id: int) -> Result:
        """Lend one copy of ``book_id`` to ``member_id``; the Result carries the new Loan."""
        try:
            if self.store.get_member(member_id) is None:
                return Result.failure(Outcome.NOT_FOUND, f"Member {member_id} not found")
            reserved = self.stock.try_decrement(book_id)
        except StoreError as e:
            logger.error("Borrow of book %s failed before reservation: %s", book_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))

        if reserved is Outcome.NOT_FOUND:
            return Result.failure(reserved, f"Book {book_id} not found")
        if reserved is Outcome.OUT_OF_STOCK:
            return Result.failure(reserved, f"Book {book_id} is out of stock")

        borrow_date = self.today()
        try:
            due_date = self.scheduler.compute_due_date(borrow_date, self.loan_days)
            loan = Loan(book_id=book_id, member_id=member_id, borrow_date=borrow_date, due_date=due_date)
            loan.loan_id = self.store.insert_loan(loan)
        except ScheduleUnreachable as e:
            self._give_back(book_id)
            return Result.failure(Outcome.SCHEDULE_UNREACHABLE, str(e))
        except StoreError as e:
            logger.error("Could not record loan of book %s to member %s: %s", book_id, member_id, e)
            self._give_back(book_id)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))

        logger.info("Book %s lent to member %s as loan %s, due %s", book_id, member_id, loan.loan_id, due_date)
        return Result.success(loan, f"Due {due_date.isoformat()}")

    def _give_back(self, book_id: int) -> None:
        try:
            restocked = self.stock.increment(book_id)
        except StoreError as e:
            logger.critical("Stock of book %s is now one copy short: rollback failed: %s", book_id, e)
            return
        if restocked is not Outcome.SUCCESS:
            logger.critical("Stock of book %s is now one copy short: book vanished during rollback", book_id)

    # ------------------------- Return ------------------------- #
    def return_loan(self, loan_id: int) -> Result:
        try:
            loan = self.store.get_loan(loan_id)
        except StoreError as e:
            logger.error("Could not read loan %s: %s", loan_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if loan is None:
            return Result.failure(Outcome.NOT_FOUND, f"Loan {loan_id} not found")
        if not loan.is_active:
            return Result.failure(Outcome.ALREADY_RETURNED, f"Loan {loan_id} was already returned")

        # Restock first; a loan is never marked returned while its copy is unaccounted for.
        try:
            restocked = self.stock.increment(loan.book_id)
        except StoreError as e:
            logger.error("Could not restock book %s for loan %s: %s", loan.book_id, loan_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if restocked is not Outcome.SUCCESS:
            return Result.failure(Outcome.NOT_FOUND, f"Book {loan.book_id} of loan {loan_id} not found")

        return_date = self.today()
        try:
            marked = self.store.mark_loan_returned(loan_id, return_date)
        except StoreError as e:
            logger.error("Could not mark loan %s returned: %s", loan_id, e)
            self._take_back(loan.book_id)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if marked == 0:
            # Someone else returned it between our read and write
            self._take_back(loan.book_id)
            return Result.failure(Outcome.ALREADY_RETURNED, f"Loan {loan_id} was already returned")

        loan.return_date = return_date
        logger.info("Loan %s returned on %s", loan_id, return_date)
        return Result.success(loan)

    def _take_back(self, book_id: int) -> None:
        try:
            taken = self.stock.try_decrement(book_id)
        except StoreError as e:
            logger.critical("Stock of book %s is now one copy over: rollback failed: %s", book_id, e)
            return
        if taken is not Outcome.SUCCESS:
            logger.critical("Stock of book %s is now one copy over: rollback reported %s", book_id, taken.value)

    # ------------------------- Extend ------------------------- #
    def extend_due_date(self, loan_id: int, days_to_extend: int) -> Result:
        if days_to_extend < 1:
            return Result.failure(Outcome.INVALID_INPUT, "days_to_extend must be at least 1")
        try:
            loan = self.store.get_loan(loan_id)
        except StoreError as e:
            logger.error("Could not read loan %s: %s", loan_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if loan is None:
            return Result.failure(Outcome.NOT_FOUND, f"Loan {loan_id} not found")
        if not loan.is_active:
            return Result.failure(Outcome.ALREADY_RETURNED, f"Loan {loan_id} was already returned")
        if loan.extension_count >= MAX_EXTENSIONS:
            return Result.failure(Outcome.ALREADY_EXTENDED, f"Loan {loan_id} cannot be extended again")

        try:
            new_due = self.scheduler.compute_due_date(loan.due_date, days_to_extend)
            updated = self.store.extend_loan(loan_id, new_due)
        except ScheduleUnreachable as e:
            return Result.failure(Outcome.SCHEDULE_UNREACHABLE, str(e))
        except StoreError as e:
            logger.error("Could not extend loan %s: %s", loan_id, e)
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if updated == 0:
            # Lost a race with a concurrent return or extension
            return self._explain_stale_extension(loan_id)

        loan.due_date = new_due
        loan.extension_count += 1
        logger.info("Loan %s extended to %s", loan_id, new_due)
        return Result.success(loan, f"Due {new_due.isoformat()}")

    def _explain_stale_extension(self, loan_id: int) -> Result:
        try:
            current = self.store.get_loan(loan_id)
        except StoreError as e:
            return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
        if current is not None and not current.is_active:
            return Result.failure(Outcome.ALREADY_RETURNED, f"Loan {loan_id} was already returned")
        return Result.failure(Outcome.ALREADY_EXTENDED, f"Loan {loan_id} cannot be extended again")
