"""Date-range helpers — night counts, overlap tests, per-day expansion.

Ranges are half-open: [check_in, check_out). The check-out day itself is never
occupied, so a stay ending on day N and a stay starting on day N do not clash.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta

from app.errors import InvalidDateRange

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DateRange:
    check_in: date
    check_out: date

    def __post_init__(self):
        if self.check_out <= self.check_in:
            raise InvalidDateRange(
                f"Check-out ({self.check_out.isoformat()}) must be after "
                f"check-in ({self.check_in.isoformat()})"
            )

    @property
    def nights(self) -> int:
        return night_count(self.check_in, self.check_out)

    def days(self) -> list[date]:
        return expand_to_days(self.check_in, self.check_out)

    def overlaps(self, other: "DateRange") -> bool:
        return ranges_overlap(self, other)


def night_count(check_in: date, check_out: date) -> int:
    """Whole nights between two dates; never less than 1."""
    if check_out <= check_in:
        raise InvalidDateRange(
            f"Check-out ({check_out.isoformat()}) must be after check-in ({check_in.isoformat()})"
        )
    return max(1, math.ceil((check_out - check_in) / ONE_DAY))


def expand_to_days(check_in: date, check_out: date) -> list[date]:
    days = []
    current = check_in
    while current < check_out:
        days.append(current)
        current += ONE_DAY
    return days


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    return a.check_in < b.check_out and b.check_in < a.check_out
