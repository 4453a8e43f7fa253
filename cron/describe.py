"""Human-readable descriptions of cron expressions.

The pipeline is: macro lookup, then a handful of whole-expression fast
paths, then general per-field composition. The first stage that produces
a phrase wins.
"""

import logging
import re

from cron.fields import (
    MACRO_SIGIL,
    CronField,
    Fields,
    Range,
    Single,
    Step,
    ValueList,
    Wildcard,
    parse_expression,
)
from cron.locales import Locale, get_locale

logger = logging.getLogger(__name__)


def _wild(field: CronField) -> bool:
    return isinstance(field, Wildcard)


def resolve_macro(raw: str, locale: Locale | None = None) -> str | None:
    """Describe a '@' macro.

    Returns None when `raw` is not a macro. Unknown macro names are echoed
    back unchanged rather than rejected.
    """
    text = raw.strip()
    if not text.startswith(MACRO_SIGIL):
        return None
    loc = locale or get_locale()
    phrase = loc.macros.get(text[len(MACRO_SIGIL):])
    if phrase is None:
        logger.debug("Unknown macro %r, echoing it", text)
        return text
    return phrase


def match_pattern(fields: Fields, locale: Locale | None = None) -> str | None:
    """Phrase common whole-expression shapes, or None if none applies."""
    loc = locale or get_locale()
    minute, hour, day, month, week = fields.as_tuple()

    if fields.is_all_wildcard():
        return loc.every_minute

    calendar_wild = _wild(day) and _wild(month) and _wild(week)
    if not calendar_wild:
        return None

    # A literal 0 minute reads the same as '*' next to a fixed hour: on the hour.
    if not _wild(hour) and (_wild(minute) or minute == Single(0)):
        if isinstance(hour, Step) and hour.from_wildcard:
            return loc.every_n_hours.format(
                interval=hour.interval,
                unit=loc.unit("hour", True, hour.interval),
            )
        return loc.daily_at_hour.format(hour=hour)

    if _wild(hour) and not _wild(minute):
        if isinstance(minute, Step) and minute.from_wildcard:
            return loc.every_n_minutes.format(
                interval=minute.interval,
                unit=loc.unit("minute", True, minute.interval),
            )
        return loc.minute_of_hour.format(minute=minute)

    return None


def render_field(field: CronField, name: str, locale: Locale) -> str:
    """Render day-of-month, hour or minute. Wildcards render as ''."""
    if isinstance(field, Wildcard):
        return ""
    if isinstance(field, Step):
        return locale.field_step.format(
            interval=field.interval,
            unit=locale.unit(name, field.from_wildcard, field.interval),
        )

    prep = locale.units[name].preposition
    if isinstance(field, Range):
        return locale.field_range.format(
            prep=prep, unit=locale.unit(name, False), start=field.start, end=field.end
        )
    if isinstance(field, ValueList):
        item_unit = locale.unit(name, False, 1)
        items = [locale.field_list_item.format(value=v, unit=item_unit) for v in field.values]
        return locale.field_list.format(
            prep=prep,
            unit=locale.unit(name, False),
            values=locale.list_separator.join(items),
        )
    return locale.field_single.format(prep=prep, unit=locale.unit(name, False, 1), value=field.value)


def render_weekday(field: CronField, locale: Locale) -> str:
    if isinstance(field, Wildcard):
        return ""
    if isinstance(field, Step):
        return render_field(field, "day_of_week", locale)
    if isinstance(field, ValueList):
        names = locale.list_separator.join(locale.weekday_name(v) for v in field.values)
        return locale.weekday_list.format(names=names)
    if isinstance(field, Range):
        return locale.weekday_range.format(
            start=locale.weekday_name(field.start), end=locale.weekday_name(field.end)
        )
    return locale.weekday_single.format(name=locale.weekday_name(field.value))


def render_month(field: CronField, locale: Locale) -> str:
    if isinstance(field, Wildcard):
        return ""
    if isinstance(field, Step):
        return render_field(field, "month", locale)
    if isinstance(field, ValueList):
        names = locale.list_separator.join(locale.month_name(v) for v in field.values)
        return locale.month_list.format(names=names)
    if isinstance(field, Range):
        return locale.month_range.format(
            start=locale.month_name(field.start), end=locale.month_name(field.end)
        )
    return locale.month_single.format(name=locale.month_name(field.value))


def collapse_repeats(text: str, locale: Locale) -> str:
    """Collapse a repeated leading token ('every every') left by joining fragments.

    Built-in fragments never end in the token, so this only fires when a
    literal field value supplies it ('0 0 * every 1' gives 'in every every
    Monday'). It runs once, over the joined text.
    """
    return re.sub(locale.repeated_pattern, locale.repeated_token, text)


def compose(fields: Fields, locale: Locale | None = None) -> str:
    """Build a description from individual field fragments.

    Fragments are ordered month, weekday (or day of month), hour, minute.
    A weekday fragment always replaces the day-of-month fragment.
    """
    loc = locale or get_locale()

    month_part = render_month(fields.month, loc)
    week_part = render_weekday(fields.day_of_week, loc)
    day_part = "" if week_part else render_field(fields.day_of_month, "day_of_month", loc)
    hour_part = render_field(fields.hour, "hour", loc)
    minute_part = render_field(fields.minute, "minute", loc)

    parts = [p for p in (month_part, week_part or day_part, hour_part, minute_part) if p]
    if not parts:
        return loc.every_minute

    return collapse_repeats(loc.composed.format(body=loc.joiner.join(parts)), loc)


def describe(raw: str, locale: Locale | str | None = None) -> str:
    """Describe a cron expression in words.

    Args:
        raw: A 5-field expression or a '@' macro.
        locale: A Locale, a locale code ('en', 'zh') or None for English.

    Returns:
        The description. Empty input gives '', and text that is neither a
        macro nor five fields is returned as-is.
    """
    loc = locale if isinstance(locale, Locale) else get_locale(locale)
    text = raw.strip()
    if not text:
        return ""

    macro = resolve_macro(text, loc)
    if macro is not None:
        return macro

    expr = parse_expression(text)
    if not isinstance(expr, Fields):
        logger.debug("Expression %r does not have 5 fields", text)
        return text

    return match_pattern(expr, loc) or compose(expr, loc)
