"""Cron field classification.

Splits a 5-field cron expression (or a '@' macro) into typed values so the
description code can dispatch on shape instead of re-inspecting strings.
"""

import logging
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

MACRO_SIGIL = "@"

FIELD_NAMES = ("minute", "hour", "day_of_month", "month", "day_of_week")


def _to_value(text: str) -> int | str:
    """Return the integer for a plain ASCII digit token, or the token itself."""
    if text.isascii() and text.isdigit():
        return int(text)
    return text


@dataclass(frozen=True)
class Wildcard:
    """Matches every value ('*')."""

    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True)
class Single:
    """An exact value. Non-numeric tokens are kept as literal text."""

    value: int | str

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ValueList:
    """Comma-separated values, in the order they were written."""

    values: tuple[int | str, ...]

    def __str__(self) -> str:
        return ",".join(str(v) for v in self.values)


@dataclass(frozen=True)
class Range:
    """Inclusive range 'start-end'. Bounds are not checked."""

    start: int | str
    end: int | str

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Step:
    """Every `interval` units starting at `base` ('*' or a value)."""

    base: int | str
    interval: int | str

    @property
    def from_wildcard(self) -> bool:
        return self.base == "*"

    def __str__(self) -> str:
        return f"{self.base}/{self.interval}"


CronField = Union[Wildcard, Single, ValueList, Range, Step]


def classify(token: str) -> CronField:
    """Classify a single cron field.

    Checks are ordered: '*', then '/', then '-', then ','. The first
    separator found decides the shape, so '1-5/2' is a Step whose base is
    the literal '1-5'. Never raises; unknown shapes become a literal Single.

    Args:
        token: One field of a cron expression, e.g. '*/15' or '1-5'.

    Returns:
        The classified field.
    """
    if token == "*":
        return Wildcard()
    if "/" in token:
        base, interval = token.split("/", 1)
        return Step(base if base == "*" else _to_value(base), _to_value(interval))
    if "-" in token:
        start, end = token.split("-", 1)
        return Range(_to_value(start), _to_value(end))
    if "," in token:
        return ValueList(tuple(_to_value(v) for v in token.split(",")))

    value = _to_value(token)
    if isinstance(value, str):
        logger.debug("Field %r is not numeric, keeping it as a literal", token)
    return Single(value)


@dataclass(frozen=True)
class Macro:
    """A named whole-expression shorthand such as '@daily'."""

    name: str
    text: str


@dataclass(frozen=True)
class Fields:
    """The five classified fields of a standard cron expression."""

    minute: CronField
    hour: CronField
    day_of_month: CronField
    month: CronField
    day_of_week: CronField

    def as_tuple(self) -> tuple[CronField, ...]:
        return (self.minute, self.hour, self.day_of_month, self.month, self.day_of_week)

    def is_all_wildcard(self) -> bool:
        return all(isinstance(f, Wildcard) for f in self.as_tuple())


CronExpression = Union[Macro, Fields]


def parse_expression(raw: str) -> CronExpression | None:
    """Parse a raw expression into a Macro or five classified Fields.

    The result is a fresh projection of the text; nothing is cached.

    Args:
        raw: The canonical expression, e.g. '0 9 * * 1-5' or '@daily'.

    Returns:
        A Macro for sigil-prefixed input, Fields for exactly five
        whitespace-separated tokens, or None when the text is unparseable.
    """
    text = raw.strip()
    if not text:
        return None
    if text.startswith(MACRO_SIGIL):
        return Macro(name=text[len(MACRO_SIGIL):], text=text)

    tokens = text.split()
    if len(tokens) != len(FIELD_NAMES):
        return None
    return Fields(*(classify(t) for t in tokens))
