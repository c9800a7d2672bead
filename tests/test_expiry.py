import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from batch_models import BatchRecord
from expiry import (
    days_until_expiry,
    expiry_status,
    expiry_within_tolerance,
    filter_by_expiry,
    group_by_expiry_status,
    is_expired,
    is_expiring_soon,
)

TODAY = date(2026, 3, 1)


def test_days_until_expiry():
    assert days_until_expiry(date(2026, 3, 31), TODAY) == 30
    assert days_until_expiry(None, TODAY) is None


def test_is_expired():
    assert is_expired(date(2026, 2, 28), TODAY)
    assert not is_expired(TODAY, TODAY)
    assert not is_expired(None, TODAY)


@pytest.mark.parametrize("expiry,expected", [
    (None, "Unknown"),
    (date(2026, 2, 1), "Expired"),
    (date(2026, 3, 1), "Expires Today"),
    (date(2026, 3, 11), "Expires in 10 days"),
    (date(2026, 3, 31), "Expires in 30 days"),
    (date(2026, 4, 1), "Valid"),
])
def test_expiry_status(expiry, expected):
    assert expiry_status(expiry, TODAY) == expected


def test_expiry_within_tolerance():
    assert expiry_within_tolerance(date(2026, 3, 1), date(2026, 3, 31)) is True
    assert expiry_within_tolerance(date(2026, 3, 1), date(2026, 4, 30)) is False
    assert expiry_within_tolerance(date(2026, 3, 1), date(2026, 3, 3), tolerance_days=1) is False
    assert expiry_within_tolerance(None, date(2026, 3, 31)) is None


RECORDS = [
    BatchRecord("old", ("A1",), expiry_date=date(2026, 2, 1)),
    BatchRecord("today", ("A2",), expiry_date=date(2026, 3, 1)),
    BatchRecord("soon", ("A3",), expiry_date=date(2026, 3, 20)),
    BatchRecord("later", ("A4",), expiry_date=date(2027, 1, 31)),
    BatchRecord("undated", ("A5",)),
]


def _ids(records):
    return [r.batch_id for r in records]


def test_is_expiring_soon():
    assert is_expiring_soon(date(2026, 3, 1), TODAY)
    assert is_expiring_soon(date(2026, 3, 31), TODAY)
    assert not is_expiring_soon(date(2026, 4, 1), TODAY)
    assert not is_expiring_soon(date(2026, 2, 1), TODAY)
    assert not is_expiring_soon(None, TODAY)
    assert is_expiring_soon(date(2026, 4, 1), TODAY, warning_days=31)


def test_filter_by_expiry():
    assert _ids(filter_by_expiry(RECORDS, expired=True, today=TODAY)) == ["old"]
    assert _ids(filter_by_expiry(RECORDS, expiring_soon=True, today=TODAY)) == ["today", "soon"]
    assert _ids(filter_by_expiry(RECORDS, expired=False, expiring_soon=False, today=TODAY)) == ["later", "undated"]
    assert _ids(filter_by_expiry(RECORDS, today=TODAY)) == _ids(RECORDS)


def test_group_by_expiry_status():
    groups = group_by_expiry_status(RECORDS, today=TODAY)
    assert {k: _ids(v) for k, v in groups.items()} == {
        "expired": ["old"],
        "expiring_soon": ["today", "soon"],
        "valid": ["later"],
        "unknown": ["undated"],
    }


def test_expiry_status_warning_days():
    assert expiry_status(date(2026, 3, 11), TODAY, warning_days=5) == "Valid"
