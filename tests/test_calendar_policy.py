import pytest
from datetime import date

from lending.calendar_policy import (
    AnniversaryPolicy,
    CalendarPolicy,
    CompositePolicy,
    CustomPolicy,
    WeekendPolicy,
    build_policy,
)
from lending.outcomes import Outcome, StoreError
from lending.store import RecordStore

LABOR_DAY = date(2025, 9, 1)


@pytest.fixture
def store(db_file):
    return RecordStore(db_file)


def test_weekend_policy():
    policy = WeekendPolicy()
    assert policy.is_non_lending_day(date(2025, 8, 30))  # Saturday
    assert policy.is_non_lending_day(date(2025, 8, 31))  # Sunday
    assert not policy.is_non_lending_day(date(2025, 8, 29))  # Friday
    assert not policy.is_non_lending_day(LABOR_DAY)  # Monday


def test_all_variants_satisfy_protocol(store):
    for policy in (WeekendPolicy(), AnniversaryPolicy(), CustomPolicy(store), CompositePolicy(WeekendPolicy())):
        assert isinstance(policy, CalendarPolicy)


def test_custom_add_persists_and_caches(store):
    policy = CustomPolicy(store)
    assert not policy.is_non_lending_day(LABOR_DAY)

    result = policy.add_holiday(LABOR_DAY, "Labor Day")
    assert result.ok
    assert policy.is_non_lending_day(LABOR_DAY)
    assert store.list_holidays() == [(LABOR_DAY, "Labor Day")]

    # A new policy instance loads it from the store
    assert CustomPolicy(store).is_non_lending_day(LABOR_DAY)


def test_custom_duplicate_date_rejected(store):
    policy = CustomPolicy(store)
    assert policy.add_holiday(LABOR_DAY, "Labor Day").ok

    result = policy.add_holiday(LABOR_DAY, "Again")
    assert result.outcome is Outcome.DUPLICATE
    assert store.list_holidays() == [(LABOR_DAY, "Labor Day")]


def test_custom_remove(store):
    policy = CustomPolicy(store)
    policy.add_holiday(LABOR_DAY, "Labor Day")

    assert policy.remove_holiday(LABOR_DAY).ok
    assert not policy.is_non_lending_day(LABOR_DAY)
    assert store.list_holidays() == []


def test_custom_remove_missing_is_not_found(store):
    result = CustomPolicy(store).remove_holiday(LABOR_DAY)
    assert result.outcome is Outcome.NOT_FOUND


def test_custom_store_failure_leaves_cache_unchanged(store, monkeypatch):
    policy = CustomPolicy(store)

    def broken_insert(*args, **kwargs):
        raise StoreError("disk I/O error")

    monkeypatch.setattr(store, "insert_holiday", broken_insert)
    result = policy.add_holiday(LABOR_DAY, "Labor Day")
    assert result.outcome is Outcome.STORE_WRITE_FAILED
    assert not policy.is_non_lending_day(LABOR_DAY)


def test_custom_remove_store_failure_keeps_holiday(store, monkeypatch):
    policy = CustomPolicy(store)
    policy.add_holiday(LABOR_DAY, "Labor Day")

    def broken_delete(*args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "delete_holiday", broken_delete)
    result = policy.remove_holiday(LABOR_DAY)
    assert result.outcome is Outcome.STORE_WRITE_FAILED
    assert policy.is_non_lending_day(LABOR_DAY)


def test_custom_load_failure_degrades_to_empty(store, monkeypatch):
    store.insert_holiday(LABOR_DAY, "Labor Day")

    def broken_list():
        raise StoreError("no such table: holidays")

    monkeypatch.setattr(store, "list_holidays", broken_list)
    policy = CustomPolicy(store)
    assert policy.load_outcome is Outcome.POLICY_LOAD_FAILED
    assert not policy.is_non_lending_day(LABOR_DAY)


def test_custom_cache_ignores_external_changes_until_reload(store):
    policy = CustomPolicy(store)
    store.insert_holiday(LABOR_DAY, "Added behind the policy's back")
    assert not policy.is_non_lending_day(LABOR_DAY)

    assert policy.reload() is Outcome.SUCCESS
    assert policy.is_non_lending_day(LABOR_DAY)


def test_anniversary_policy_in_memory():
    policy = AnniversaryPolicy()
    anniversary = date(2025, 10, 9)
    assert policy.add_holiday(anniversary, "Founding day").ok
    assert policy.is_non_lending_day(anniversary)
    assert policy.add_holiday(anniversary).outcome is Outcome.DUPLICATE
    assert policy.holidays() == [(anniversary, "Founding day")]

    assert policy.remove_holiday(anniversary).ok
    assert policy.remove_holiday(anniversary).outcome is Outcome.NOT_FOUND
    assert not policy.is_non_lending_day(anniversary)


def test_composite_policy_any_of():
    anniversary = AnniversaryPolicy([date(2025, 9, 3)])
    policy = CompositePolicy(WeekendPolicy(), anniversary)
    assert policy.is_non_lending_day(date(2025, 8, 30))
    assert policy.is_non_lending_day(date(2025, 9, 3))
    assert not policy.is_non_lending_day(date(2025, 9, 2))
    assert policy.holiday_source() is anniversary


def test_composite_needs_a_policy():
    with pytest.raises(ValueError):
        CompositePolicy()


def test_build_policy(store):
    assert isinstance(build_policy("weekend", store), WeekendPolicy)
    assert isinstance(build_policy("custom", store), CustomPolicy)
    assert isinstance(build_policy("anniversary", store), AnniversaryPolicy)

    combined = build_policy("Weekend + Custom", store)
    assert isinstance(combined, CompositePolicy)
    assert isinstance(combined.holiday_source(), CustomPolicy)

    with pytest.raises(ValueError, match="Unknown calendar policy"):
        build_policy("lunar", store)
    with pytest.raises(ValueError):
        build_policy("", store)
