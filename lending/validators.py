import re
from datetime import date
from typing import Optional, Union


class ISBNValidator:
    """ISBN-10 and ISBN-13 validation with checksum checks."""

    @staticmethod
    def normalize_isbn(raw: str) -> str:
        if raw is None:
            return ""
        s = re.sub(r"[^0-9Xx]", "", raw)
        return s.upper()

    @staticmethod
    def is_valid_isbn(isbn: str) -> bool:
        if not isbn:
            return False
        s = ISBNValidator.normalize_isbn(isbn)
        if len(s) == 10:
            total = 0
            for i, ch in enumerate(s[:-1], 1):
                if not ch.isdigit():
                    return False
                total += i * int(ch)
            check = s[-1]
            if check == 'X':
                check_val = 10
            elif check.isdigit():
                check_val = int(check)
            else:
                return False
            # weights 1..9 plus 10 * check must be divisible by 11
            return (total + 10 * check_val) % 11 == 0
        elif len(s) == 13 and s.isdigit():
            total = 0
            for i, ch in enumerate(s[:-1]):
                factor = 1 if i % 2 == 0 else 3
                total += factor * int(ch)
            check_val = (10 - (total % 10)) % 10
            return check_val == int(s[-1])
        return False


class TextValidator:
    """Basic text checks for titles, names and phone numbers."""

    @staticmethod
    def validate_required(text: Optional[str]) -> bool:
        return text is not None and bool(text.strip())

    @staticmethod
    def validate_phone(phone: Optional[str]) -> bool:
        if phone is None:
            return False
        return re.fullmatch(r"\+?[0-9][0-9 \-]{3,19}", phone.strip()) is not None


class InputValidator:
    """Parses the primitive inputs the text interfaces hand to the engine."""

    @staticmethod
    def parse_id(raw: Union[str, int]) -> int:
        """Return a positive integer id or raise ValueError."""
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid id: {raw!r}") from e
        if value <= 0:
            raise ValueError(f"Id must be a positive integer: {raw!r}")
        return value

    @staticmethod
    def parse_date(raw: Union[str, date]) -> date:
        """Parse an ISO ``YYYY-MM-DD`` date or raise ValueError."""
        if isinstance(raw, date):
            return raw
        text = (raw or "").strip()
        if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", text):
            raise ValueError(f"Date must be in YYYY-MM-DD format: {raw!r}")
        try:
            return date.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid date: {raw!r}") from e

    @staticmethod
    def parse_non_negative(raw: Union[str, int], name: str = "value") -> int:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError) as e:
            raise ValueError(f"{name} must be an integer: {raw!r}") from e
        if value < 0:
            raise ValueError(f"{name} cannot be negative: {raw!r}")
        return value
