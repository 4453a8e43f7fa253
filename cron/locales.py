"""Phrase tables for cron descriptions.

Each locale is an immutable table of templates and names. Templates use
str.format placeholders and may leave some of them unused, e.g. Chinese
has no prepositions.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class FieldUnits:
    """Unit nouns for one positional field.

    `wildcard` is used for steps based on '*' ('*/5'), `concrete` for
    everything else. Both are (singular, plural) pairs.
    """

    wildcard: tuple[str, str]
    concrete: tuple[str, str]
    preposition: str = ""


@dataclass(frozen=True)
class Locale:
    """All phrasing for one language."""

    code: str
    macros: Mapping[str, str]
    weekdays: tuple[str, ...]
    months: tuple[str, ...]
    units: Mapping[str, FieldUnits]

    # Whole-expression fast paths
    every_minute: str
    every_n_hours: str
    daily_at_hour: str
    every_n_minutes: str
    minute_of_hour: str

    # General composition
    composed: str
    joiner: str
    list_separator: str
    repeated_token: str
    repeated_pattern: str

    field_step: str
    field_single: str
    field_range: str
    field_list: str
    field_list_item: str

    weekday_single: str
    weekday_range: str
    weekday_list: str
    month_single: str
    month_range: str
    month_list: str

    pluralize: bool = True

    def unit(self, field_name: str, from_wildcard: bool, count: object = None) -> str:
        """Pick the unit noun for a field, singular when count is 1."""
        units = self.units[field_name]
        singular, plural = units.wildcard if from_wildcard else units.concrete
        if self.pluralize and str(count) != "1":
            return plural
        return singular

    def weekday_name(self, value: int | str) -> str:
        return _lookup(self.weekdays, value, offset=0)

    def month_name(self, value: int | str) -> str:
        return _lookup(self.months, value, offset=1)


def _lookup(names: tuple[str, ...], value: int | str, offset: int) -> str:
    """Map a numeric value to a name; echo anything outside the table."""
    if isinstance(value, int) and 0 <= value - offset < len(names):
        return names[value - offset]
    return str(value)


EN = Locale(
    code="en",
    macros=MappingProxyType({
        "yearly": "runs once a year",
        "monthly": "runs once a month",
        "weekly": "runs once a week",
        "daily": "runs once a day",
        "hourly": "runs once an hour",
        "reboot": "runs at system restart",
    }),
    weekdays=("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    months=(
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    units=MappingProxyType({
        "minute": FieldUnits(("minute", "minutes"), ("minute", "minutes"), "at"),
        "hour": FieldUnits(("hour", "hours"), ("hour", "hours"), "at"),
        "day_of_month": FieldUnits(("day", "days"), ("day", "days"), "on"),
        "month": FieldUnits(("month", "months"), ("month", "months"), "in"),
        "day_of_week": FieldUnits(("day", "days"), ("day", "days"), "on"),
    }),
    every_minute="runs every minute",
    every_n_hours="runs every {interval} {unit}",
    daily_at_hour="runs daily at hour {hour}",
    every_n_minutes="runs every {interval} {unit}",
    minute_of_hour="runs at minute {minute} of every hour",
    composed="runs {body}",
    joiner=" ",
    list_separator=", ",
    repeated_token="every",
    repeated_pattern=r"\bevery(?:\s+every\b)+",
    field_step="every {interval} {unit}",
    field_single="{prep} {unit} {value}",
    field_range="{prep} {unit} {start}-{end}",
    field_list="{prep} {unit} {values}",
    field_list_item="{value}",
    weekday_single="every {name}",
    weekday_range="every {start} through {end}",
    weekday_list="every {names}",
    month_single="in {name}",
    month_range="from {start} through {end}",
    month_list="in {names}",
)

ZH = Locale(
    code="zh",
    macros=MappingProxyType({
        "yearly": "每年执行一次",
        "monthly": "每月执行一次",
        "weekly": "每周执行一次",
        "daily": "每天执行一次",
        "hourly": "每小时执行一次",
        "reboot": "系统重启时执行",
    }),
    weekdays=("日", "一", "二", "三", "四", "五", "六"),
    months=("一", "二", "三", "四", "五", "六", "七", "八", "九", "十", "十一", "十二"),
    units=MappingProxyType({
        "minute": FieldUnits(("分钟", "分钟"), ("分", "分")),
        "hour": FieldUnits(("小时", "小时"), ("点", "点")),
        "day_of_month": FieldUnits(("天", "天"), ("日", "日")),
        "month": FieldUnits(("个月", "个月"), ("个月", "个月")),
        "day_of_week": FieldUnits(("天", "天"), ("天", "天")),
    }),
    every_minute="每分钟执行",
    every_n_hours="每{interval}小时执行",
    daily_at_hour="每天{hour}点执行",
    every_n_minutes="每{interval}分钟执行",
    minute_of_hour="每小时的第{minute}分执行",
    composed="{body}执行",
    joiner="",
    list_separator="、",
    repeated_token="每",
    repeated_pattern="每{2,}",
    field_step="每{interval}{unit}",
    field_single="{value}{unit}",
    field_range="{start}-{end}{unit}",
    field_list="{values}",
    field_list_item="{value}{unit}",
    weekday_single="每周{name}",
    weekday_range="每周{start}至周{end}",
    weekday_list="每周{names}",
    month_single="{name}月",
    month_range="{start}月至{end}月",
    month_list="{names}月",
    pluralize=False,
)

LOCALES: dict[str, Locale] = {EN.code: EN, ZH.code: ZH}


def get_locale(code: str | None = None) -> Locale:
    """Return the locale for `code`, falling back to English."""
    if not isinstance(code, str) or not code:
        if code:
            logger.warning("Locale %r is not a string, using '%s'", code, DEFAULT_LOCALE)
        return LOCALES[DEFAULT_LOCALE]
    locale = LOCALES.get(code.lower())
    if locale is None:
        logger.warning("Unknown locale '%s', using '%s'", code, DEFAULT_LOCALE)
        return LOCALES[DEFAULT_LOCALE]
    return locale
