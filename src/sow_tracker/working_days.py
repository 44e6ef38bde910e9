from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def working_days(start: date, end: date) -> int:
    """Count Monday-Friday dates in ``[start, end]``; 0 for inverted ranges."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    weekday = start.weekday()
    for offset in range(remainder):
        if (weekday + offset) % 7 < 5:
            count += 1
    return count


def interval_overlap(a: DateRange, b: DateRange) -> DateRange | None:
    if a.is_empty or b.is_empty:
        return None
    overlap = clip(a, b)
    return None if overlap.is_empty else overlap


def clip(span: DateRange, bounds: DateRange) -> DateRange:
    # May come back inverted; working_days() treats that as zero days.
    return DateRange(start=max(span.start, bounds.start), end=min(span.end, bounds.end))


def month_bounds(day: date) -> DateRange:
    last = calendar.monthrange(day.year, day.month)[1]
    return DateRange(start=day.replace(day=1), end=day.replace(day=last))


def add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every calendar month touched by ``[start, end]``."""
    current = start.replace(day=1)
    while current <= end:
        yield current
        current = add_months(current, 1)


def count_days(span: DateRange) -> int:
    return 0 if span.is_empty else (span.end - span.start).days + 1


def iter_days(span: DateRange) -> Iterator[date]:
    current = span.start
    while current <= span.end:
        yield current
        current += timedelta(days=1)


__all__ = [
    "DateRange",
    "add_months",
    "clip",
    "count_days",
    "interval_overlap",
    "iter_days",
    "iter_months",
    "month_bounds",
    "working_days",
]
