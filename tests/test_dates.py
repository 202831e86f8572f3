from datetime import date, timedelta

import pytest

from voicequeue.dates import next_friday, normalize_due_date
from voicequeue.models import DueDatePolicy, NO_DUE_DATE

MONDAY = date(2024, 6, 3)
WEDNESDAY = date(2024, 6, 5)


@pytest.mark.parametrize("offset", range(7))
def test_empty_phrase_is_a_strictly_future_friday(offset):
    today = MONDAY + timedelta(days=offset)
    due = date.fromisoformat(normalize_due_date("", today, DueDatePolicy.NEXT_FRIDAY))
    assert due > today
    assert due.weekday() == 4
    assert (due - today).days <= 7


def test_friday_advances_a_full_week():
    friday = date(2024, 6, 7)
    assert next_friday(friday) == date(2024, 6, 14)
    assert normalize_due_date(None, friday, "next_friday") == "2024-06-14"


def test_none_policy_uses_sentinel():
    assert normalize_due_date("", WEDNESDAY, DueDatePolicy.NONE) == NO_DUE_DATE
    assert normalize_due_date("   ", WEDNESDAY, "none") == ""


def test_missing_year_assumes_current_year():
    assert normalize_due_date("march 5", date(2027, 1, 10)) == "2027-03-05"
    assert normalize_due_date("December 1st", date(2027, 1, 10)) == "2027-12-01"


def test_explicit_year_is_preserved():
    assert normalize_due_date("march 5 2030", date(2027, 1, 10)) == "2030-03-05"
    assert normalize_due_date("2029-11-02", date(2027, 1, 10)) == "2029-11-02"


def test_spoken_ordinals():
    today = date(2027, 1, 10)
    assert normalize_due_date("march twenty first", today) == "2027-03-21"
    assert normalize_due_date("march the fifth", today) == "2027-03-05"
    # no such day: falls back to the policy default
    assert normalize_due_date("april thirty-first", today) == "2027-01-15"


def test_next_weekday_from_wednesday():
    assert normalize_due_date("next monday", WEDNESDAY) == "2024-06-10"
    assert normalize_due_date("next wednesday", WEDNESDAY) == "2024-06-12"


def test_bare_weekday_may_be_today():
    assert normalize_due_date("wednesday", WEDNESDAY) == "2024-06-05"
    assert normalize_due_date("this friday", WEDNESDAY) == "2024-06-07"


def test_relative_words():
    assert normalize_due_date("today", WEDNESDAY) == "2024-06-05"
    assert normalize_due_date("tomorrow", WEDNESDAY) == "2024-06-06"
    assert normalize_due_date("next week", WEDNESDAY) == "2024-06-10"
    assert normalize_due_date("in three days", WEDNESDAY) == "2024-06-08"
    assert normalize_due_date("in 2 weeks", WEDNESDAY) == "2024-06-19"


def test_unparsable_phrase_falls_back_to_policy():
    assert normalize_due_date("whenever you can", WEDNESDAY) == "2024-06-07"
    assert normalize_due_date("whenever you can", WEDNESDAY, DueDatePolicy.NONE) == ""


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        normalize_due_date("", WEDNESDAY, "someday")
