"""
Visit clock time value object.
Format: hh:mm on a 12-hour clock, paired with an AM/PM period.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple, Union

from ..enums.workflow import TimeFormat
from ..errors import InvalidVisitTimeError

CLOCK_TIME_PATTERN = re.compile(r"^(1[0-2]|0?[1-9]):([0-5]?[0-9])$")


@dataclass(frozen=True)
class VisitTime:
    """Immutable 12-hour clock time."""

    hour: int
    minute: int
    time_format: TimeFormat

    @classmethod
    def parse(cls, value: str, time_format: Union[TimeFormat, str]) -> "VisitTime":
        """Parse ``hh:mm`` text. Raises InvalidVisitTimeError on malformed input."""
        match = CLOCK_TIME_PATTERN.match((value or "").strip())
        if not match:
            raise InvalidVisitTimeError(value)
        return cls(int(match.group(1)), int(match.group(2)), TimeFormat(time_format))

    @classmethod
    def from_datetime(cls, moment: datetime) -> "VisitTime":
        """Clock time shown for ``moment`` (12 o'clock for hours 0 and 12)."""
        hour = moment.hour % 12 or 12
        time_format = TimeFormat.PM if moment.hour >= 12 else TimeFormat.AM
        return cls(hour, moment.minute, time_format)

    def to_24_hour(self) -> Tuple[int, int]:
        """Resolve to (hours, minutes) on a 24-hour clock."""
        hours = 0 if self.hour == 12 else self.hour
        if self.time_format == TimeFormat.PM:
            hours += 12
        return hours, self.minute

    def combine(self, visit_date: date) -> datetime:
        """Start timestamp for ``visit_date`` at this clock time."""
        hours, minutes = self.to_24_hour()
        return datetime(visit_date.year, visit_date.month, visit_date.day, hours, minutes)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def convert_time_12_to_24(value: str, time_format: Union[TimeFormat, str]) -> Tuple[int, int]:
    """Convert ``hh:mm`` plus AM/PM to (hours, minutes) on a 24-hour clock."""
    return VisitTime.parse(value, time_format).to_24_hour()
