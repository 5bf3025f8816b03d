from datetime import date

import pytest

from lending.library import Library

# A Friday: the first lending day after it is Monday 2025-09-01
FIXED_TODAY = date(2025, 8, 29)

DUNE_ISBN = "9780441172719"
CLEAN_CODE_ISBN = "9780132350884"


class Clock:
    """Mutable stand-in for date.today so tests can move time forward."""

    def __init__(self, today: date) -> None:
        self.current = today

    def __call__(self) -> date:
        return self.current


@pytest.fixture
def db_file(tmp_path, request):
    # A separate database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def clock():
    return Clock(FIXED_TODAY)


@pytest.fixture
def lib(db_file, clock):
    lib = Library(db_file=db_file, policy_name="weekend+custom", today=clock)
    yield lib
    lib.close()


@pytest.fixture
def member(lib):
    return lib.add_member("Alice Reader", "010-1234-5678").value


@pytest.fixture
def book(lib):
    return lib.add_book("Dune", "Frank Herbert", DUNE_ISBN, "Ace", stock=3).value
