"""Cron expression engine — parsing, validation and matching."""

from cronjobs.cron.expression import (
    FIELDS,
    YEAR_FIELD,
    CronField,
    ParsedExpression,
    is_valid_expression,
    parse_expression,
    weekday_of,
)

__all__ = [
    "FIELDS",
    "YEAR_FIELD",
    "CronField",
    "ParsedExpression",
    "is_valid_expression",
    "parse_expression",
    "weekday_of",
]
