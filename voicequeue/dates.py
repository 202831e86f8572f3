"""
Due-date normalization for spoken date phrases.

Turns phrases such as "next monday", "tomorrow" or "march twenty first"
into ISO calendar dates. Anything that can't be understood falls back to
the configured default policy; this module never raises on bad input.
"""

import re
import logging
from datetime import date, datetime, time
from typing import Optional, Union

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from .models import DueDatePolicy, NO_DUE_DATE

logger = logging.getLogger(__name__)

WEEKDAYS = {
    "monday": MO, "tuesday": TU, "wednesday": WE, "thursday": TH,
    "friday": FR, "saturday": SA, "sunday": SU,
}

_ORDINAL_UNITS = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9,
}
_ORDINALS = {
    **_ORDINAL_UNITS,
    "tenth": 10, "eleventh": 11, "twelfth": 12, "thirteenth": 13,
    "fourteenth": 14, "fifteenth": 15, "sixteenth": 16, "seventeenth": 17,
    "eighteenth": 18, "nineteenth": 19, "twentieth": 20, "thirtieth": 30,
}
_CARDINALS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

_COMPOUND_ORDINAL_RE = re.compile(
    r"\b(twenty|thirty)[\s-]+(" + "|".join(_ORDINAL_UNITS) + r")\b"
)
_ORDINAL_RE = re.compile(r"\b(" + "|".join(_ORDINALS) + r")\b")
_YEAR_RE = re.compile(r"\b\d{4}\b")
_OFFSET_RE = re.compile(r"^in\s+(\d+|" + "|".join(_CARDINALS) + r")\s+(day|week)s?$")
_WEEKDAY_RE = re.compile(
    r"^(?:(next|this|on|coming|this coming)\s+)?(" + "|".join(WEEKDAYS) + r")$"
)


def next_friday(today: date) -> date:
    """Nearest Friday strictly after ``today`` (a Friday advances 7 days)."""
    return today + relativedelta(days=+1, weekday=FR(+1))


def default_due_date(today: date, policy: Union[DueDatePolicy, str]) -> str:
    """Due date to use when the sentence names none."""
    policy = DueDatePolicy(policy)
    if policy is DueDatePolicy.NEXT_FRIDAY:
        return next_friday(today).isoformat()
    return NO_DUE_DATE


def _spoken_ordinals_to_digits(phrase: str) -> str:
    def compound(m: re.Match) -> str:
        tens = 20 if m.group(1) == "twenty" else 30
        return f"{tens + _ORDINAL_UNITS[m.group(2)]}"

    phrase = _COMPOUND_ORDINAL_RE.sub(compound, phrase)
    return _ORDINAL_RE.sub(lambda m: str(_ORDINALS[m.group(1)]), phrase)


def _resolve_relative(phrase: str, today: date) -> Optional[date]:
    """Handle phrases relative to today. Returns None when not relative."""
    if phrase == "today":
        return today
    if phrase == "tomorrow":
        return today + relativedelta(days=+1)
    if phrase in ("the day after tomorrow", "day after tomorrow"):
        return today + relativedelta(days=+2)
    if phrase == "next week":
        return today + relativedelta(days=+1, weekday=MO(+1))

    m = _OFFSET_RE.match(phrase)
    if m:
        count = int(m.group(1)) if m.group(1).isdigit() else _CARDINALS[m.group(1)]
        if m.group(2) == "week":
            return today + relativedelta(weeks=+count)
        return today + relativedelta(days=+count)

    m = _WEEKDAY_RE.match(phrase)
    if m:
        weekday = WEEKDAYS[m.group(2)]
        if m.group(1) == "next":
            return today + relativedelta(days=+1, weekday=weekday(+1))
        return today + relativedelta(weekday=weekday(+1))

    return None


def normalize_due_date(
    phrase: Optional[str],
    today: date,
    policy: Union[DueDatePolicy, str] = DueDatePolicy.NEXT_FRIDAY,
) -> str:
    """Normalize a spoken due-date phrase to an ISO date string.

    Args:
        phrase: The text after "by", or None/empty when absent.
        today: Reference date for relative phrases and missing years.
        policy: Default policy applied to empty or unparsable phrases.

    Returns:
        ``YYYY-MM-DD``, or ``NO_DUE_DATE`` ("") under the ``none`` policy
        when no usable date was given.
    """
    cleaned = " ".join((phrase or "").lower().replace(",", " ").split()).strip(" .")
    if not cleaned:
        return default_due_date(today, policy)

    relative = _resolve_relative(cleaned, today)
    if relative is not None:
        return relative.isoformat()

    text = _spoken_ordinals_to_digits(" ".join(w for w in cleaned.split() if w != "the"))
    try:
        parsed = dateutil_parser.parse(text, default=datetime.combine(today, time()))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse due date {phrase!r}: {e}")
        return default_due_date(today, policy)

    result = parsed.date()
    if not _YEAR_RE.search(text) and result.year != today.year:
        try:
            result = result.replace(year=today.year)
        except ValueError:
            # Feb 29 outside a leap year
            return default_due_date(today, policy)
    return result.isoformat()
