from datetime import date

from lending.calendar_policy import WeekendPolicy
from lending.library import Library
from lending.outcomes import Outcome

from conftest import CLEAN_CODE_ISBN, DUNE_ISBN


def test_add_and_find_book(lib):
    result = lib.add_book("Clean Code", "Robert C. Martin", "978-0-13-235088-4", "Prentice Hall", stock=2)
    assert result.ok
    book = lib.find_book(result.value.book_id)
    assert book.title == "Clean Code"
    assert book.isbn == CLEAN_CODE_ISBN
    assert book.stock == 2


def test_add_book_rejects_invalid_input(lib):
    assert lib.add_book("Dune", "Frank Herbert", "9780441172710").outcome is Outcome.INVALID_INPUT
    assert lib.add_book("", "Frank Herbert", DUNE_ISBN).outcome is Outcome.INVALID_INPUT
    assert lib.add_book("Dune", "Frank Herbert", DUNE_ISBN, stock=-1).outcome is Outcome.INVALID_INPUT
    assert lib.list_books() == []


def test_search_books_by_title(lib, book):
    lib.add_book("Clean Code", "Robert C. Martin", CLEAN_CODE_ISBN)
    found = lib.search_books_by_title("dun")
    assert [b.book_id for b in found] == [book.book_id]
    assert lib.search_books_by_title("nothing like this") == []


def test_update_book_stock(lib, book):
    result = lib.update_book_stock(book.book_id, 10)
    assert result.ok
    assert result.value.stock == 10
    assert lib.update_book_stock(book.book_id, -2).outcome is Outcome.INVALID_INPUT
    assert lib.update_book_stock(999, 1).outcome is Outcome.NOT_FOUND


def test_delete_book_blocked_by_active_loan(lib, book, member):
    loan = lib.borrow_book(book.book_id, member.member_id).value
    assert lib.delete_book(book.book_id).outcome is Outcome.HAS_ACTIVE_LOANS

    lib.return_book(loan.loan_id)
    assert lib.delete_book(book.book_id).ok
    assert lib.find_book(book.book_id) is None
    assert lib.delete_book(book.book_id).outcome is Outcome.NOT_FOUND


def test_member_lifecycle(lib, book, member):
    assert lib.find_member(member.member_id).name == "Alice Reader"
    assert lib.add_member("   ").outcome is Outcome.INVALID_INPUT
    assert lib.add_member("Bob", "not a phone").outcome is Outcome.INVALID_INPUT

    updated = lib.update_member_phone(member.member_id, "+82 10 9999 0000")
    assert updated.ok
    assert updated.value.phone_number == "+82 10 9999 0000"
    assert lib.update_member_phone(999, "010-0000-0000").outcome is Outcome.NOT_FOUND

    loan = lib.borrow_book(book.book_id, member.member_id).value
    assert lib.delete_member(member.member_id).outcome is Outcome.HAS_ACTIVE_LOANS
    lib.return_book(loan.loan_id)
    assert lib.delete_member(member.member_id).ok
    assert lib.list_members() == []


def test_list_loans_and_overdue(lib, book, member, clock):
    first = lib.borrow_book(book.book_id, member.member_id).value
    second = lib.borrow_book(book.book_id, member.member_id).value
    lib.return_book(first.loan_id)

    assert len(lib.list_loans()) == 2
    assert [loan.loan_id for loan in lib.list_loans(active_only=True)] == [second.loan_id]
    assert lib.list_overdue_loans() == []

    clock.current = date(2025, 9, 10)
    assert [loan.loan_id for loan in lib.list_overdue_loans()] == [second.loan_id]


def test_holiday_operations(lib):
    assert lib.add_holiday(date(2025, 10, 3), "National Foundation Day").ok
    assert lib.add_holiday(date(2025, 10, 3)).outcome is Outcome.DUPLICATE
    assert lib.list_holidays() == [(date(2025, 10, 3), "National Foundation Day")]

    assert lib.is_holiday(date(2025, 10, 3))
    assert lib.is_holiday(date(2025, 10, 4))  # Saturday
    assert not lib.is_holiday(date(2025, 10, 2))

    assert lib.remove_holiday(date(2025, 10, 3)).ok
    assert lib.remove_holiday(date(2025, 10, 3)).outcome is Outcome.NOT_FOUND
    assert lib.list_holidays() == []


def test_holidays_survive_restart(db_file, clock):
    Library(db_file=db_file, policy_name="weekend+custom", today=clock).add_holiday(date(2025, 9, 1), "Opening")

    reopened = Library(db_file=db_file, policy_name="weekend+custom", today=clock)
    assert reopened.is_holiday(date(2025, 9, 1))
    assert reopened.policy_status() is Outcome.SUCCESS


def test_weekend_only_policy_has_no_editable_holidays(db_file, clock):
    lib = Library(db_file=db_file, policy=WeekendPolicy(), today=clock)
    assert lib.add_holiday(date(2025, 9, 1)).outcome is Outcome.INVALID_INPUT
    assert lib.remove_holiday(date(2025, 9, 1)).outcome is Outcome.INVALID_INPUT
    assert lib.list_holidays() == []


def test_anniversary_policy_holidays_stay_in_memory(db_file, clock):
    lib = Library(db_file=db_file, policy_name="anniversary", today=clock)
    assert lib.add_holiday(date(2025, 12, 25), "Christmas").ok
    assert lib.is_holiday(date(2025, 12, 25))

    fresh = Library(db_file=db_file, policy_name="anniversary", today=clock)
    assert not fresh.is_holiday(date(2025, 12, 25))


def test_statistics(lib, book, member):
    lib.borrow_book(book.book_id, member.member_id)
    stats = lib.get_statistics()
    assert stats["total_titles"] == 1
    assert stats["copies_in_stock"] == 2
    assert stats["total_members"] == 1
    assert stats["active_loans"] == 1
    assert "WeekendPolicy" in stats["calendar_policy"]


def test_records_persist_across_instances(db_file, clock):
    first = Library(db_file=db_file, today=clock)
    book = first.add_book("Dune", "Frank Herbert", DUNE_ISBN, stock=1).value
    member = first.add_member("Alice Reader").value
    loan = first.borrow_book(book.book_id, member.member_id).value

    second = Library(db_file=db_file, today=clock)
    assert second.find_book(book.book_id).stock == 0
    assert second.find_loan(loan.loan_id).due_date == loan.due_date
    assert second.return_book(loan.loan_id).ok
