from __future__ import annotations

from datetime import date


def _parse_date(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


class Loan:
    """A borrowing of one copy of a book by a member.

    A loan is active while ``return_date`` is None. Once returned it is
    terminal: the ledger never touches it again.
    """

    def __init__(self, book_id: int, member_id: int, borrow_date: date | str, due_date: date | str,
                 return_date: date | str | None = None, extension_count: int = 0,
                 loan_id: int | None = None) -> None:
        self.loan_id = loan_id
        self.book_id = book_id
        self.member_id = member_id
        self.borrow_date = _parse_date(borrow_date)
        self.due_date = _parse_date(due_date)
        self.return_date = _parse_date(return_date)
        self.extension_count = extension_count

    @property
    def is_active(self) -> bool:
        return self.return_date is None

    @property
    def status(self) -> str:
        """Human readable status: BORROWED or RETURNED."""
        return "BORROWED" if self.is_active else "RETURNED"

    def is_overdue(self, today: date) -> bool:
        return self.is_active and today > self.due_date

    def __str__(self) -> str:  # pragma: no cover
        return f"Loan {self.loan_id}: book {self.book_id} -> member {self.member_id}, due {self.due_date} ({self.status})"

    def to_dict(self) -> dict:
        return {
            "loan_id": self.loan_id,
            "book_id": self.book_id,
            "member_id": self.member_id,
            "borrow_date": self.borrow_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
            "extension_count": self.extension_count,
            "status": self.status,
        }

    @staticmethod
    def from_dict(data: dict) -> "Loan":
        return Loan(
            loan_id=data.get("loan_id"),
            book_id=data["book_id"],
            member_id=data["member_id"],
            borrow_date=data["borrow_date"],
            due_date=data["due_date"],
            return_date=data.get("return_date"),
            extension_count=int(data.get("extension_count") or 0),
        )
