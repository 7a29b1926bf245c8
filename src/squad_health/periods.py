"""
Assessment period detection.

Assessment periods are half-year labels used to group submissions for trend
comparison:
- Jan 1 - Jun 30 of year Y  -> "{Y-1} - 2nd Half"
- Jul 1 - Dec 31 of year Y  -> "{Y} - 1st Half"

Only the calendar date matters; time of day never changes the period.
"""

import re
from datetime import date, datetime
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union


PERIOD_PATTERN = re.compile(r"^(\d{4}) - (1st|2nd) Half$")

DateLike = Union[date, datetime, str]


class AssessmentPeriod(NamedTuple):
    """Parsed form of a period label."""
    year: int
    half: str  # "1st" or "2nd"

    @property
    def label(self) -> str:
        return f"{self.year} - {self.half} Half"

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.year, 1 if self.half == "1st" else 2)


def to_calendar_date(value: Optional[DateLike]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10 and text[10] in ("T", " "):
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise TypeError(f"Cannot derive an assessment period from {type(value).__name__}")


def get_assessment_period(value: Optional[DateLike] = None) -> str:
    """
    Get the assessment period label for a date.

    Args:
        value: date, datetime or ISO string; defaults to today

    Returns:
        Label in the form "YYYY - 1st Half" / "YYYY - 2nd Half"
    """
    day = to_calendar_date(value)

    # month 1-6 belongs to the previous year's second half
    if day.month <= 6:
        return f"{day.year - 1} - 2nd Half"
    return f"{day.year} - 1st Half"


def get_current_assessment_period() -> str:
    return get_assessment_period()


def parse_assessment_period(label: Optional[str]) -> Optional[AssessmentPeriod]:
    """Parse a period label, returning None for anything malformed."""
    if not isinstance(label, str):
        return None
    match = PERIOD_PATTERN.match(label)
    if not match:
        return None
    return AssessmentPeriod(year=int(match.group(1)), half=match.group(2))


def compare_assessment_periods(first: Optional[str], second: Optional[str]) -> int:
    """
    Compare two period labels.

    Returns a negative number if `first` is earlier, positive if later and
    0 if equal. Returns 0 when either label is unparseable, so callers must
    not treat this as a total order over untrusted input.
    """
    parsed_first = parse_assessment_period(first)
    parsed_second = parse_assessment_period(second)

    if parsed_first is None or parsed_second is None:
        return 0

    if parsed_first.year != parsed_second.year:
        return parsed_first.year - parsed_second.year

    return parsed_first.sort_key[1] - parsed_second.sort_key[1]


def sort_assessment_periods(labels: Iterable[Optional[str]]) -> List[str]:
    """Distinct parseable labels in chronological order; the rest are dropped."""
    parsed = {p.label: p for p in (parse_assessment_period(label) for label in labels) if p is not None}
    return [p.label for p in sorted(parsed.values(), key=lambda p: p.sort_key)]


def period_bounds(label: str) -> Optional[Tuple[date, date]]:
    """First and last submission day that map to `label`, or None if malformed."""
    parsed = parse_assessment_period(label)
    if parsed is None:
        return None

    if parsed.half == "1st":
        return date(parsed.year, 7, 1), date(parsed.year, 12, 31)
    return date(parsed.year + 1, 1, 1), date(parsed.year + 1, 6, 30)
