from datetime import date
from typing import Dict, List, Optional

from batch_models import BatchRecord

EXPIRY_WARNING_DAYS = 30
DEFAULT_EXPIRY_TOLERANCE_DAYS = 30


def days_until_expiry(expiry: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if expiry is None:
        return None
    today = today or date.today()
    return (expiry - today).days


def is_expired(expiry: Optional[date], today: Optional[date] = None) -> bool:
    days = days_until_expiry(expiry, today)
    return days is not None and days < 0


def expiry_status(
    expiry: Optional[date],
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> str:
    days = days_until_expiry(expiry, today)
    if days is None:
        return "Unknown"
    if days < 0:
        return "Expired"
    if days == 0:
        return "Expires Today"
    if days <= warning_days:
        return f"Expires in {days} days"
    return "Valid"


def expiry_within_tolerance(
    printed: Optional[date],
    expected: Optional[date],
    tolerance_days: int = DEFAULT_EXPIRY_TOLERANCE_DAYS,
) -> Optional[bool]:
    """Printed expiry vs manifest expiry; None when either side is unknown."""
    if printed is None or expected is None:
        return None
    return abs((expected - printed).days) <= tolerance_days


def is_expiring_soon(
    expiry: Optional[date],
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> bool:
    days = days_until_expiry(expiry, today)
    return days is not None and 0 <= days <= warning_days


def filter_by_expiry(
    records: List[BatchRecord],
    expired: Optional[bool] = None,
    expiring_soon: Optional[bool] = None,
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> List[BatchRecord]:
    """Records matching every flag that is not None."""
    today = today or date.today()
    out = []
    for record in records:
        if expired is not None and is_expired(record.expiry_date, today) != expired:
            continue
        if expiring_soon is not None and is_expiring_soon(record.expiry_date, today, warning_days) != expiring_soon:
            continue
        out.append(record)
    return out


def group_by_expiry_status(
    records: List[BatchRecord],
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> Dict[str, List[BatchRecord]]:
    """{"expired", "expiring_soon", "valid", "unknown"}, each record in exactly one group."""
    today = today or date.today()
    groups: Dict[str, List[BatchRecord]] = {"expired": [], "expiring_soon": [], "valid": [], "unknown": []}
    for record in records:
        if record.expiry_date is None:
            groups["unknown"].append(record)
        elif is_expired(record.expiry_date, today):
            groups["expired"].append(record)
        elif is_expiring_soon(record.expiry_date, today, warning_days):
            groups["expiring_soon"].append(record)
        else:
            groups["valid"].append(record)
    return groups
