from __future__ import annotations

import re
from datetime import date, datetime

_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def today_local_date() -> date:
    return datetime.now().date()


def parse_iso_date_prefix(x) -> date | None:
    """
    Calendar date from a value starting with YYYY-MM-DD.

    Any trailing time-of-day or timezone suffix is ignored
    ("2024-01-05T00:00:00.000" -> date(2024, 1, 5)). Returns None when the
    prefix is missing or is not a real calendar date.
    """
    if x is None:
        return None
    m = _ISO_DATE_PREFIX.match(str(x).strip())
    if not m:
        return None
    try:
        return datetime.strptime(m.group(1), "%Y-%m-%d").date()
    except ValueError:
        return None


def to_date_key(x) -> str | None:
    """YYYY-MM-DD form of a stored date cell (date, datetime or string), or None."""
    if isinstance(x, datetime):
        return x.date().isoformat()
    if isinstance(x, date):
        return x.isoformat()
    d = parse_iso_date_prefix(x)
    return d.isoformat() if d is not None else None
