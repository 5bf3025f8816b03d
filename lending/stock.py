from __future__ import annotations

import logging

from lending.outcomes import Outcome
from lending.store import RecordStore

logger = logging.getLogger(__name__)


class StockReservation:
    """Atomic take/give-back of a book's available copies.

    Store failures are not caught here: ``StoreError`` propagates so the
    ledger can decide between aborting and compensating.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def try_decrement(self, book_id: int) -> Outcome:
        """Take one copy: SUCCESS, OUT_OF_STOCK or NOT_FOUND."""
        affected, exists = self.store.decrement_stock(book_id)
        if affected > 0:
            return Outcome.SUCCESS
        if not exists:
            logger.info("Book %s not found", book_id)
            return Outcome.NOT_FOUND
        # Also covers losing a race for the last copy
        logger.info("Book %s is out of stock", book_id)
        return Outcome.OUT_OF_STOCK

    def increment(self, book_id: int) -> Outcome:
        """Give one copy back: SUCCESS or NOT_FOUND."""
        if self.store.increment_stock(book_id) > 0:
            return Outcome.SUCCESS
        logger.warning("Cannot restock book %s: not found", book_id)
        return Outcome.NOT_FOUND
