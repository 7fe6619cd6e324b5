"""Leave duration arithmetic."""

from __future__ import annotations

from datetime import date
from typing import Optional


def calculate_leave_duration(start: Optional[date], end: Optional[date]) -> int:
    """Inclusive calendar days between *start* and *end*.

    Returns 0 when either date is missing or the range is inverted; a
    single-day leave counts as 1.
    """
    if start is None or end is None or end < start:
        return 0
    return max(1, (end - start).days + 1)
