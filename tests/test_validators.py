from datetime import date

import pytest

from lending.validators import InputValidator, ISBNValidator, TextValidator


@pytest.mark.parametrize("isbn", ["9780441172719", "978-0-13-235088-4", "0-306-40615-2", "080442957X"])
def test_valid_isbns(isbn):
    assert ISBNValidator.is_valid_isbn(isbn)


@pytest.mark.parametrize("isbn", ["", "12345", "9780441172710", "0-306-40615-3"])
def test_invalid_isbns(isbn):
    assert not ISBNValidator.is_valid_isbn(isbn)


def test_phone_and_required_text():
    assert TextValidator.validate_phone("010-1234-5678")
    assert TextValidator.validate_phone("+1 555 0100")
    assert not TextValidator.validate_phone("call me")
    assert not TextValidator.validate_required("   ")


def test_parse_id():
    assert InputValidator.parse_id(" 7 ") == 7
    with pytest.raises(ValueError):
        InputValidator.parse_id("0")
    with pytest.raises(ValueError):
        InputValidator.parse_id("abc")


def test_parse_date():
    assert InputValidator.parse_date("2025-09-01") == date(2025, 9, 1)
    with pytest.raises(ValueError):
        InputValidator.parse_date("2025-02-30")
    with pytest.raises(ValueError):
        InputValidator.parse_date("1/9/2025")
