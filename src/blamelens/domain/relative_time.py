# Licensed under the Apache License, Version 2.0
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

# (upper bound in seconds, singular phrase, unit seconds, plural unit name)
_THRESHOLDS = (
    (45, "a few seconds", None, None),
    (90, "a minute", None, None),
    (45 * 60, None, 60, "minutes"),
    (90 * 60, "an hour", None, None),
    (22 * 3600, None, 3600, "hours"),
    (36 * 3600, "a day", None, None),
    (26 * 86400, None, 86400, "days"),
    (45 * 86400, "a month", None, None),
    (320 * 86400, None, 30 * 86400, "months"),
    (548 * 86400, "a year", None, None),
)


def from_now(when: datetime, now: Optional[datetime] = None) -> str:
    """
    Human-relative phrasing of `when` ("3 days ago", "in a minute").

    Naive datetimes are taken as UTC.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    delta = (now - when).total_seconds()
    future = delta < 0
    seconds = abs(delta)

    phrase = None
    for limit, singular, unit, plural in _THRESHOLDS:
        if seconds < limit:
            phrase = singular or f"{max(2, round(seconds / unit))} {plural}"
            break
    if phrase is None:
        years = max(2, round(seconds / (365 * 86400)))
        phrase = f"{years} years"

    return f"in {phrase}" if future else f"{phrase} ago"
