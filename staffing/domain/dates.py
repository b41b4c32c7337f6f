"""Calendar-date helpers with inclusive range semantics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from staffing.errors import ValidationFailure

DateLike = Union[date, str]


def parse_date(value: DateLike, field: str = "date") -> date:
    """
    Coerce a date or a YYYY-MM-DD string into a calendar date.

    Datetimes are rejected rather than truncated so that a time component
    can never shift the day.

    Raises:
        ValidationFailure: If the value is not a plain date
    """
    if isinstance(value, datetime):
        raise ValidationFailure(f"{field} must be a calendar date without time", field=field)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise ValidationFailure(f"{field} must be in YYYY-MM-DD format", field=field)


@dataclass(frozen=True)
class DateRange:
    """Closed interval of calendar days, both ends included."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationFailure("End date must be after start date", field="end_date")

    @classmethod
    def parse(cls, start: DateLike, end: DateLike) -> "DateRange":
        return cls(parse_date(start, "start_date"), parse_date(end, "end_date"))

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and self.end >= other.start

    def covers(self, other: "DateRange") -> bool:
        """True if other lies entirely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
