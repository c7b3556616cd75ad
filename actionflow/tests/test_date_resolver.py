"""Tests for due date resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from actionflow.extraction.date_resolver import (
    extract_due_date_from_text,
    next_friday,
    resolve_due_date,
)

# Monday
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
# Friday
FRIDAY_NOW = datetime(2026, 10, 23, 9, 0, tzinfo=timezone.utc)


class TestNextFriday:
    def test_from_monday(self):
        assert next_friday(NOW) == NOW + timedelta(days=4)

    def test_on_friday_is_a_week_out(self):
        assert next_friday(FRIDAY_NOW) == FRIDAY_NOW + timedelta(days=7)

    def test_from_saturday(self):
        saturday = datetime(2026, 10, 24, tzinfo=timezone.utc)
        assert next_friday(saturday) == saturday + timedelta(days=6)


class TestResolveDueDate:
    @pytest.mark.parametrize("phrase,delta", [
        ("today", 0),
        ("by end of today", 0),
        ("tomorrow", 1),
        ("Tomorrow morning", 1),
        ("next week", 7),
        ("friday", 4),
        ("by Friday", 4),
        ("end of week", 4),
    ])
    def test_relative_phrases(self, phrase, delta):
        assert resolve_due_date(phrase, NOW) == NOW + timedelta(days=delta)

    def test_friday_on_friday(self):
        assert resolve_due_date("Friday", FRIDAY_NOW) == FRIDAY_NOW + timedelta(days=7)

    def test_explicit_iso_date(self):
        assert resolve_due_date("2026-11-02", NOW) == datetime(2026, 11, 2, tzinfo=timezone.utc)

    def test_explicit_month_day(self):
        assert resolve_due_date("December 5th", NOW) == datetime(2026, 12, 5, tzinfo=timezone.utc)

    def test_explicit_us_format(self):
        assert resolve_due_date("11/15/2026", NOW) == datetime(2026, 11, 15, tzinfo=timezone.utc)

    def test_past_date_is_rejected(self):
        assert resolve_due_date("2026-01-15", NOW) is None
        assert resolve_due_date("March 5", NOW) is None

    @pytest.mark.parametrize("phrase", [None, "", "   ", "whenever", "soonish"])
    def test_unparseable_is_none(self, phrase):
        assert resolve_due_date(phrase, NOW) is None

    def test_default_now_is_aware(self):
        resolved = resolve_due_date("tomorrow")
        assert resolved.tzinfo is not None


class TestExtractDueDateFromText:
    def test_by_keyword(self):
        assert extract_due_date_from_text("Send the deck by tomorrow", NOW) == NOW + timedelta(days=1)

    def test_trailing_words_ignored(self):
        resolved = extract_due_date_from_text("Ship the build by December 5 to the team", NOW)
        assert resolved == datetime(2026, 12, 5, tzinfo=timezone.utc)

    def test_due_keyword(self):
        assert extract_due_date_from_text("Report due 2026-11-30.", NOW) == datetime(
            2026, 11, 30, tzinfo=timezone.utc
        )

    def test_no_phrase(self):
        assert extract_due_date_from_text("Send the deck", NOW) is None
        assert extract_due_date_from_text("", NOW) is None
