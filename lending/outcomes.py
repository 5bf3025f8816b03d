"""Outcome kinds returned by every public lending operation.

Engine operations never let store or scheduling errors escape to the
caller. Internally the record store raises ``StoreError`` and the
scheduler raises ``ScheduleUnreachable``; the ledger and the library
facade translate them into a ``Result`` carrying one of the ``Outcome``
values below.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Outcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    OUT_OF_STOCK = "out_of_stock"
    ALREADY_RETURNED = "already_returned"
    ALREADY_EXTENDED = "already_extended"
    STORE_WRITE_FAILED = "store_write_failed"
    POLICY_LOAD_FAILED = "policy_load_failed"
    SCHEDULE_UNREACHABLE = "schedule_unreachable"
    DUPLICATE = "duplicate"
    HAS_ACTIVE_LOANS = "has_active_loans"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    value: Any = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @classmethod
    def success(cls, value: Any = None, detail: str = "") -> "Result":
        return cls(Outcome.SUCCESS, value, detail)

    @classmethod
    def failure(cls, outcome: Outcome, detail: str = "", value: Optional[Any] = None) -> "Result":
        return cls(outcome, value, detail)

    def to_dict(self) -> dict:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return {"outcome": self.outcome.value, "detail": self.detail, "value": value}


class StoreError(Exception):
    """Raised when the underlying record store cannot complete a read or write."""


class ScheduleUnreachable(Exception):
    """Raised when no due date can be found within the scheduler's scan limit."""


class IntegrityViolation(StoreError):
    """Raised when a write breaks a uniqueness or check constraint."""
