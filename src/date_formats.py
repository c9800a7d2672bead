"""
Expiry date renderings and multi-format date parsing.

Packaging prints the same expiry in many spellings (15/03/2026, 03-15-26,
15 MAR 2026, 03/2026 ...). `date_format_set` enumerates the spellings of one
date so the matcher can look for them in OCR text, and `parse_any_date`
turns a printed date back into a calendar date.
"""

import calendar
import re
from datetime import date, datetime
from typing import Dict, List, Optional

# fixed table so renderings do not depend on the process locale
MONTH_ABBR = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN",
              "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

_SEPARATORS = ("/", "-", ".")

DAY_FORMATS: List[str] = []
for _sep in _SEPARATORS:
    DAY_FORMATS += [
        f"%d{_sep}%m{_sep}%Y",
        f"%d{_sep}%m{_sep}%y",
        f"%m{_sep}%d{_sep}%Y",
        f"%m{_sep}%d{_sep}%y",
        f"%Y{_sep}%m{_sep}%d",
    ]
DAY_FORMATS += [
    "%d %b %Y", "%d-%b-%Y", "%d/%b/%Y", "%d.%b.%Y",
    "%d %b %y", "%d-%b-%y",
    "%b %d %Y", "%b %d, %Y", "%b-%d-%Y",
]

MONTH_FORMATS: List[str] = []
for _sep in _SEPARATORS:
    MONTH_FORMATS += [f"%m{_sep}%Y", f"%m{_sep}%y", f"%Y{_sep}%m"]
MONTH_FORMATS += ["%b %Y", "%b-%Y", "%b/%Y", "%b.%Y", "%b %y", "%b-%y"]

# order matters: ISO first, then day-first (most packaging outside the US)
_PARSE_FORMATS = (
    ["%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"]
    + [f for f in DAY_FORMATS if f.startswith("%d")]
    + [f for f in DAY_FORMATS if f.startswith("%m")]
    + [f for f in DAY_FORMATS if f.startswith("%b")]
    + ["%Y%m%d", "%d%m%Y"]
)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _is_month_precision(fmt: str) -> bool:
    return "%d" not in fmt


def render_date(d: date, fmt: str) -> str:
    """strftime with a locale independent %b."""
    if "%b" in fmt:
        fmt = fmt.replace("%b", MONTH_ABBR[d.month - 1])
    return d.strftime(fmt)


# strptime's %y pivot: 69-99 -> 19xx, 00-68 -> 20xx
_TWO_DIGIT_YEARS = range(1969, 2069)


def date_format_set(d: date) -> Dict[str, str]:
    """Every printed rendering of `d`, mapped to the format that produced it.

    Each rendering reparses to `d` with its format. Month-precision
    renderings (``03/2026``, ``MAR 2026``) read as the last day of the month,
    so they are only emitted for month-end dates. Two-digit-year renderings
    are left out when the year falls outside strptime's %y window.
    """
    formats = list(DAY_FORMATS)
    if d == _month_end(d.year, d.month):
        formats += MONTH_FORMATS
    if d.year not in _TWO_DIGIT_YEARS:
        formats = [fmt for fmt in formats if "%y" not in fmt]

    renderings: Dict[str, str] = {}
    for fmt in formats:
        renderings.setdefault(render_date(d, fmt), fmt)
    return renderings


def parse_date_variant(text: str, fmt: str) -> date:
    """Reparse a rendering produced by `date_format_set` with its format."""
    parsed = datetime.strptime(text.strip(), fmt).date()
    if _is_month_precision(fmt):
        return _month_end(parsed.year, parsed.month)
    return parsed


def _clean(text: str) -> str:
    s = re.sub(r"[^\w\-/.,\s]", " ", text)
    return re.sub(r"\s+", " ", s).strip()


def _manual_parse(text: str) -> Optional[date]:
    numbers = [int(n) for n in re.findall(r"\d+", text)]
    if not numbers or len(numbers) > 3:
        return None

    def _year(value: int) -> int:
        return value + 2000 if value < 100 else value

    try:
        if len(numbers) == 1:
            year = _year(numbers[0])
            if 2000 <= year <= 2100:
                return date(year, 12, 31)
            return None

        if len(numbers) == 2:
            first, second = numbers
            if 1 <= first <= 12 and second > 31 and 2000 <= _year(second) <= 2100:
                return _month_end(_year(second), first)
            if first > 31 and 1 <= second <= 12 and 2000 <= _year(first) <= 2100:
                return _month_end(_year(first), second)
            return None

        first, second, third = numbers
        if 1900 < first < 2100 and second <= 12 and third <= 31:
            return date(first, second, third)
        third = _year(third)
        if 1900 < third < 2100 and second <= 12 and first <= 31:
            return date(third, second, first)
        if 1900 < third < 2100 and first <= 12 and second <= 31:
            return date(third, first, second)
    except ValueError:
        return None
    return None


def parse_any_date(text: Optional[str]) -> Optional[date]:
    """Parse a printed or stored date in any of the supported spellings.

    Day-first wins over month-first for ambiguous numeric dates. Month-year
    dates resolve to the end of the month and a bare year to Dec 31.
    Returns None when nothing fits.
    """
    if not text or not text.strip():
        return None
    cleaned = _clean(text)

    # ISO timestamps from the manifest, e.g. 2026-03-31T00:00:00Z
    iso = re.match(r"^(\d{4}-\d{2}-\d{2})T", cleaned)
    if iso:
        cleaned = iso.group(1)

    for fmt in _PARSE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    for fmt in MONTH_FORMATS:
        try:
            return parse_date_variant(cleaned, fmt)
        except ValueError:
            continue

    return _manual_parse(cleaned)
