"""
Calendar policies deciding which days are excluded from due-date counting.

Every policy answers a single question, ``is_non_lending_day(d)``. Policies
are owned by the ``Library`` that built them and passed to the scheduler by
reference; nothing here is module-level state.

``CustomPolicy`` keeps an in-memory copy of the persisted holidays. The copy
is loaded once at construction and stays coherent only through the
instance's own ``add_holiday``/``remove_holiday``; changes made to the store
by anyone else are seen after ``reload()`` or reconstruction.
"""
from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Protocol, Tuple, runtime_checkable

from lending.outcomes import IntegrityViolation, Outcome, Result, StoreError
from lending.store import RecordStore

logger = logging.getLogger(__name__)

# date.weekday(): 0=Monday, 6=Sunday
WEEKEND_DAYS = frozenset({5, 6})


@runtime_checkable
class CalendarPolicy(Protocol):
    """Anything that can tell whether a date is a non-lending day."""

    def is_non_lending_day(self, d: date) -> bool:
        ...


class WeekendPolicy:
    """Saturdays and Sundays are non-lending days."""

    def is_non_lending_day(self, d: date) -> bool:
        return d.weekday() in WEEKEND_DAYS

    def __repr__(self) -> str:
        return "WeekendPolicy()"


class AnniversaryPolicy:
    """In-memory set of holidays with no persistence."""

    def __init__(self, holidays: Iterable[date] = ()) -> None:
        self._lock = threading.RLock()
        self._holidays: Dict[date, str] = {d: "" for d in holidays}

    def is_non_lending_day(self, d: date) -> bool:
        with self._lock:
            return d in self._holidays

    def add_holiday(self, d: date, description: str = "") -> Result:
        with self._lock:
            if d in self._holidays:
                return Result.failure(Outcome.DUPLICATE, f"{d} is already a holiday")
            self._holidays[d] = description
        logger.info("Anniversary holiday added: %s (%s)", d, description)
        return Result.success(d)

    def remove_holiday(self, d: date) -> Result:
        with self._lock:
            if d not in self._holidays:
                return Result.failure(Outcome.NOT_FOUND, f"No holiday on {d}")
            del self._holidays[d]
        logger.info("Anniversary holiday removed: %s", d)
        return Result.success(d)

    def holidays(self) -> List[Tuple[date, str]]:
        with self._lock:
            return sorted(self._holidays.items())

    def __repr__(self) -> str:
        return f"AnniversaryPolicy({len(self._holidays)} holidays)"


class CustomPolicy:
    """Holidays persisted in the record store and cached in memory.

    Construction never raises: if the holidays cannot be loaded the policy
    starts empty and ``load_outcome`` is ``Outcome.POLICY_LOAD_FAILED``.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._lock = threading.RLock()
        self._holidays: Dict[date, str] = {}
        self.load_outcome = Outcome.SUCCESS
        self.reload()

    def reload(self) -> Outcome:
        """Rebuild the cache from the store."""
        try:
            entries = self._store.list_holidays()
        except StoreError as e:
            logger.warning("Could not load holidays, treating calendar as empty: %s", e)
            with self._lock:
                self._holidays = {}
            self.load_outcome = Outcome.POLICY_LOAD_FAILED
            return self.load_outcome

        with self._lock:
            self._holidays = dict(entries)
        self.load_outcome = Outcome.SUCCESS
        logger.debug("Loaded %d custom holidays", len(entries))
        return self.load_outcome

    def is_non_lending_day(self, d: date) -> bool:
        with self._lock:
            return d in self._holidays

    def add_holiday(self, d: date, description: str = "") -> Result:
        """Persist a holiday, then cache it. The cache is untouched if the write fails."""
        with self._lock:
            try:
                self._store.insert_holiday(d, description)
            except IntegrityViolation:
                logger.warning("Holiday %s already exists", d)
                return Result.failure(Outcome.DUPLICATE, f"{d} is already a holiday")
            except StoreError as e:
                logger.error("Failed to add holiday %s: %s", d, e)
                return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
            self._holidays[d] = description
        logger.info("Holiday '%s' (%s) added", description, d)
        return Result.success(d)

    def remove_holiday(self, d: date) -> Result:
        with self._lock:
            try:
                removed = self._store.delete_holiday(d)
            except StoreError as e:
                logger.error("Failed to remove holiday %s: %s", d, e)
                return Result.failure(Outcome.STORE_WRITE_FAILED, str(e))
            if removed == 0:
                return Result.failure(Outcome.NOT_FOUND, f"No holiday on {d}")
            self._holidays.pop(d, None)
        logger.info("Holiday %s removed", d)
        return Result.success(d)

    def holidays(self) -> List[Tuple[date, str]]:
        with self._lock:
            return sorted(self._holidays.items())

    def __repr__(self) -> str:
        return f"CustomPolicy({len(self._holidays)} holidays)"


class CompositePolicy:
    """A day is non-lending if any of the wrapped policies says so."""

    def __init__(self, *policies: CalendarPolicy) -> None:
        if not policies:
            raise ValueError("CompositePolicy needs at least one policy")
        self.policies: Tuple[CalendarPolicy, ...] = policies

    def is_non_lending_day(self, d: date) -> bool:
        return any(p.is_non_lending_day(d) for p in self.policies)

    def holiday_source(self):
        """The first wrapped policy that manages its own holiday list, if any."""
        for p in self.policies:
            if hasattr(p, "add_holiday"):
                return p
        return None

    def __repr__(self) -> str:
        return f"CompositePolicy({', '.join(repr(p) for p in self.policies)})"


def build_policy(name: str, store: RecordStore) -> CalendarPolicy:
    """Build a policy from its configured name, e.g. ``weekend+custom``."""
    parts = [p.strip().lower() for p in name.split("+") if p.strip()]
    if not parts:
        raise ValueError("Calendar policy name cannot be empty")

    built: List[CalendarPolicy] = []
    for part in parts:
        if part == "weekend":
            built.append(WeekendPolicy())
        elif part == "custom":
            built.append(CustomPolicy(store))
        elif part == "anniversary":
            built.append(AnniversaryPolicy())
        else:
            raise ValueError(f"Unknown calendar policy: {part}")

    return built[0] if len(built) == 1 else CompositePolicy(*built)
