"""Cron expression parsing and validation.

Format: ``minute hour day-of-month month day-of-week [year]``

Each field accepts ``*``, ``N``, ``N-M``, ``N,M,...``, ``*/S``, ``N/S`` or
``N-M/S``. Day of week runs 0-6 with 0 = Sunday. The year field is optional;
a seventh field is tolerated and ignored.

Usage::

    from cronjobs.cron import is_valid_expression, parse_expression

    parsed = parse_expression("*/15 9-17 * * 1-5")
    parsed.matches(datetime(2025, 3, 5, 9, 30))  # True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import NamedTuple

from cronjobs.errors import FormatError

MIN_FIELDS = 5
MAX_FIELDS = 7

YEAR_MIN = 1970
YEAR_MAX = 2099


class CronField(NamedTuple):
    name: str
    low: int
    high: int


FIELDS: tuple[CronField, ...] = (
    CronField("minute", 0, 59),
    CronField("hour", 0, 23),
    CronField("day_of_month", 1, 31),
    CronField("month", 1, 12),
    CronField("day_of_week", 0, 6),
)
YEAR_FIELD = CronField("year", YEAR_MIN, YEAR_MAX)

# Longer literals can never be in range and are refused before int()
_DIGITS = r"[0-9]{1,9}"
_NUMBER = re.compile(_DIGITS)
# Field grammar, "N-M/S" included
_FIELD_SYNTAX = re.compile(
    rf"^({_DIGITS}|\*)(-{_DIGITS})?(/{_DIGITS})?(-{_DIGITS})?(,{_DIGITS})*$"
)


def weekday_of(instant: date) -> int:
    """Day of week with Sunday = 0 (``datetime.weekday()`` starts on Monday)."""
    return instant.isoweekday() % 7


# ---------------------------------------------------------------------------
# Parsed form
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedExpression:
    """Concrete value sets for every field of a cron expression.

    An empty ``years`` tuple means the year is unconstrained.
    """

    expression: str
    minutes: tuple[int, ...]
    hours: tuple[int, ...]
    days_of_month: tuple[int, ...]
    months: tuple[int, ...]
    days_of_week: tuple[int, ...]
    years: tuple[int, ...] = ()

    def matches(self, instant: datetime) -> bool:
        """Every field must match; day-of-month and day-of-week are AND'ed."""
        return (
            instant.minute in self.minutes
            and instant.hour in self.hours
            and self._day_matches(instant)
        )

    def _day_matches(self, day: date) -> bool:
        return (
            day.day in self.days_of_month
            and day.month in self.months
            and weekday_of(day) in self.days_of_week
            and (not self.years or day.year in self.years)
        )

    def next_match(self, after: datetime) -> datetime | None:
        """Return the first matching minute strictly after ``after``.

        Returns ``None`` when the schedule can never match again before the
        end of the supported year range. The result keeps ``after``'s tzinfo.
        """
        start = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
        first_day = start.date()
        day = first_day
        last_year = self.years[-1] if self.years else YEAR_MAX

        while day.year <= last_year:
            if self.years and day.year not in self.years:
                upcoming = [year for year in self.years if year > day.year]
                if not upcoming:
                    return None
                day = date(upcoming[0], 1, 1)
                continue

            if self._day_matches(day):
                for hour in self.hours:
                    if day == first_day and hour < start.hour:
                        continue
                    for minute in self.minutes:
                        if day == first_day and hour == start.hour and minute < start.minute:
                            continue
                        return datetime.combine(day, time(hour, minute), tzinfo=after.tzinfo)
            day += timedelta(days=1)

        return None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _split(expression: str) -> list[str]:
    if not isinstance(expression, str):
        msg = f"Cron expression must be a string, got {type(expression).__name__}"
        raise FormatError(msg)
    parts = expression.split()
    if not MIN_FIELDS <= len(parts) <= MAX_FIELDS:
        msg = (
            f"Cron expression must have {MIN_FIELDS}-{MAX_FIELDS} fields, "
            f"got {len(parts)}: '{expression}'"
        )
        raise FormatError(msg)
    return parts


def _to_int(token: str, field: CronField) -> int:
    if not _NUMBER.fullmatch(token):
        msg = f"Invalid {field.name} value '{token}'"
        raise FormatError(msg)
    number = int(token)
    if not field.low <= number <= field.high:
        msg = f"{field.name} value {number} outside {field.low}-{field.high}"
        raise FormatError(msg)
    return number


def _to_range(token: str, field: CronField) -> tuple[int, int]:
    start_token, _, end_token = token.partition("-")
    start = _to_int(start_token, field)
    end = _to_int(end_token, field)
    if start > end:
        msg = f"Invalid {field.name} range '{token}': start is greater than end"
        raise FormatError(msg)
    return start, end


def _expand_field(value: str, field: CronField) -> tuple[int, ...]:
    """Expand one field into its sorted set of matching integers."""
    if value == "*":
        return tuple(range(field.low, field.high + 1))

    if "/" in value:
        if "," in value:
            msg = f"Invalid {field.name} field '{value}': steps cannot be combined with lists"
            raise FormatError(msg)
        range_token, _, step_token = value.partition("/")
        if not _NUMBER.fullmatch(step_token) or int(step_token) < 1:
            msg = f"Invalid {field.name} step '{step_token}'"
            raise FormatError(msg)
        if range_token == "*":
            start, end = field.low, field.high
        elif "-" in range_token:
            start, end = _to_range(range_token, field)
        else:
            start, end = _to_int(range_token, field), field.high
        values = range(start, end + 1, int(step_token))
    elif "-" in value:
        start, end = _to_range(value, field)
        values = range(start, end + 1)
    elif "," in value:
        values = [_to_int(token, field) for token in value.split(",")]
    else:
        values = [_to_int(value, field)]

    result = tuple(sorted(set(values)))
    if not result:
        msg = f"{field.name} field '{value}' matches nothing"
        raise FormatError(msg)
    return result


@lru_cache(maxsize=256)
def parse_expression(expression: str) -> ParsedExpression:
    """Parse a cron expression into concrete per-field value sets.

    Raises:
        FormatError: On a wrong field count or any unusable field.
    """
    parts = _split(expression)
    expanded = [_expand_field(value, field) for value, field in zip(parts, FIELDS)]
    years = _expand_field(parts[5], YEAR_FIELD) if len(parts) > 5 else ()
    return ParsedExpression(expression, *expanded, years=years)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


def _field_is_valid(value: str, field: CronField) -> bool:
    if value == "*":
        return True
    if not _FIELD_SYNTAX.match(value):
        return False
    if any(int(step) == 0 for step in re.findall(r"/([0-9]+)", value)):
        return False
    literals = re.sub(r"/[0-9]+", "", value).replace("*", str(field.low))
    return all(field.low <= int(token) <= field.high for token in re.split(r"[,-]", literals))


def is_valid_expression(expression: object) -> bool:
    """Cheap syntax and bounds check. Never raises.

    This does not expand the fields, so a few odd combinations (``1/5,2``, ``5-1``,
    ``*-5``) pass here and are still rejected by :func:`parse_expression`.
    """
    if not isinstance(expression, str):
        return False
    parts = expression.split()
    if not MIN_FIELDS <= len(parts) <= MAX_FIELDS:
        return False
    if not all(_field_is_valid(value, field) for value, field in zip(parts, FIELDS)):
        return False
    return len(parts) < 6 or _field_is_valid(parts[5], YEAR_FIELD)
