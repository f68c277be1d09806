"""
Unit tests for natural-language deadline resolution.

Tests:
- Exact Russian phrases
- "сегодня в H:MM" / "завтра в H:MM"
- Grammar fallback (mocked)
- Failure values (mocked and through the real grammar)
- is_past, format_for_display
- Quick-pick codes and options
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from taskbot.utils import date_parser
from taskbot.utils.date_parser import (
    INVALID_PLACEHOLDER,
    NOT_SET_PLACEHOLDER,
    QUICK_CHOICES,
    format_for_display,
    is_past,
    quick_options,
    resolve,
    resolve_quick_code,
)
from taskbot.utils.datetime_utils import parse_timestamp


def resolved(text, now):
    """Resolve and parse back to a naive local datetime."""
    value = resolve(text, now)
    assert value is not None, f"{text!r} did not resolve"
    return parse_timestamp(value)


class TestExactPhrases:
    """Canonical phrases resolve to fixed offsets from now."""

    @pytest.mark.parametrize("phrase,expected", [
        ("сегодня", datetime(2026, 10, 17, 18, 0)),
        ("завтра", datetime(2026, 10, 18, 18, 0)),
        ("через час", datetime(2026, 10, 17, 11, 25)),
        ("через 2 часа", datetime(2026, 10, 17, 12, 25)),
        ("через 3 часа", datetime(2026, 10, 17, 13, 25)),
        ("через день", datetime(2026, 10, 18, 18, 0)),
        ("через неделю", datetime(2026, 10, 24, 18, 0)),
    ])
    def test_phrase_offsets(self, phrase, expected):
        """Each phrase produces its documented moment, seconds zeroed."""
        now = datetime(2026, 10, 17, 10, 25, 42, 123000)
        assert resolved(phrase, now) == expected

    def test_deterministic_for_fixed_now(self, now):
        """Same input and now always give the same timestamp."""
        assert resolve("через 3 часа", now) == resolve("через 3 часа", now)

    def test_input_is_normalized(self, now):
        """Surrounding whitespace and case are ignored."""
        assert resolve("  ЗАВТРА ", now) == resolve("завтра", now)

    def test_today_is_18_even_when_past(self):
        """'сегодня' targets 18:00 even late in the evening."""
        late = datetime(2026, 10, 17, 22, 0)
        value = resolve("сегодня", late)
        assert parse_timestamp(value) == datetime(2026, 10, 17, 18, 0)
        assert is_past(value, late) is True

    def test_exact_match_not_substring(self, now):
        """A sentence containing a phrase goes to the grammar fallback."""
        with patch.object(date_parser, "_search_fallback", return_value=None) as fallback:
            assert resolve("может быть завтра", now) is None
        fallback.assert_called_once()

    def test_value_carries_offset(self, now):
        """Resolved values are ISO strings with a UTC offset."""
        value = resolve("завтра", now)
        assert datetime.fromisoformat(value).tzinfo is not None


class TestClockPhrases:
    """'сегодня в H:MM' and 'завтра в H:MM'."""

    def test_today_at(self, now):
        assert resolved("сегодня в 15:30", now) == datetime(2026, 10, 17, 15, 30)

    def test_tomorrow_at_single_digit_hour(self, now):
        assert resolved("завтра в 9:05", now) == datetime(2026, 10, 18, 9, 5)

    def test_today_at_already_passed(self):
        """Resolver returns the past moment; is_past reports it."""
        evening = datetime(2024, 1, 1, 20, 0)
        value = resolve("сегодня в 09:05", evening)
        assert parse_timestamp(value) == datetime(2024, 1, 1, 9, 5)
        assert is_past(value, evening) is True

    def test_out_of_range_time_fails(self, now):
        """25:00 is not a time of day."""
        assert resolve("сегодня в 25:00", now) is None


class TestGrammarFallback:
    """Free-form phrases go to dateparser."""

    def test_first_span_is_used(self, now):
        friday = datetime(2026, 10, 23, 0, 0)
        monday = datetime(2026, 10, 26, 0, 0)
        with patch.object(date_parser, "search_dates", return_value=[("пятницу", friday), ("понедельник", monday)]):
            assert resolved("в пятницу или понедельник", now) == friday

    def test_prefers_future(self, now):
        """The grammar is asked for future dates relative to now."""
        with patch.object(date_parser, "search_dates", return_value=None) as search:
            resolve("в пятницу", now)
        settings = search.call_args.kwargs["settings"]
        assert settings["PREFER_DATES_FROM"] == "future"
        assert settings["RELATIVE_BASE"] == now

    def test_grammar_error_is_failure(self, now):
        """Exceptions inside the grammar never reach the caller."""
        with patch.object(date_parser, "search_dates", side_effect=RuntimeError("boom")):
            assert resolve("в пятницу", now) is None


class TestFailures:
    """Unresolvable input gives None, never raises."""

    def test_nonsense(self, now):
        with patch.object(date_parser, "search_dates", return_value=None):
            assert resolve("не дата", now) is None

    @pytest.mark.parametrize("text", ["не дата", "abc", "купить молоко"])
    def test_nonsense_through_real_grammar(self, text, now):
        assert resolve(text, now) is None

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_empty_and_non_string(self, value, now):
        assert resolve(value, now) is None


class TestIsPast:
    """is_past compares against now and fails closed."""

    def test_past_and_future(self, now):
        assert is_past(now - timedelta(hours=1), now) is True
        assert is_past(now + timedelta(hours=1), now) is False

    def test_iso_strings(self, now):
        past = resolve("сегодня в 09:00", now)
        future = resolve("сегодня в 11:00", now)
        assert is_past(past, now) is True
        assert is_past(future, now) is False

    @pytest.mark.parametrize("value", ["garbage", "", None, "2026-13-45T99:00:00"])
    def test_malformed_is_never_past(self, value, now):
        assert is_past(value, now) is False


class TestFormatForDisplay:
    """Long Russian rendering and placeholders."""

    def test_long_form(self, now):
        value = resolve("сегодня", now)
        assert format_for_display(value) == "суббота, 17 октября 2026 г., 18:00"

    def test_datetime_input(self):
        assert format_for_display(datetime(2026, 3, 2, 9, 5)) == "понедельник, 2 марта 2026 г., 09:05"

    def test_placeholders(self):
        """Missing and unreadable values get different placeholder texts."""
        assert format_for_display(None) == NOT_SET_PLACEHOLDER
        assert format_for_display("") == NOT_SET_PLACEHOLDER
        assert format_for_display("когда-нибудь") == INVALID_PLACEHOLDER


class TestQuickOptions:
    """Quick-pick button codes."""

    def test_six_options_in_order(self, now):
        options = quick_options(now)
        assert [o.code for o in options] == [code for _, code in QUICK_CHOICES]
        assert [o.label for o in options] == [label for label, _ in QUICK_CHOICES]

    def test_values(self, now):
        values = [parse_timestamp(o.value) for o in quick_options(now)]
        assert values == [
            datetime(2026, 10, 17, 18, 0),
            datetime(2026, 10, 17, 21, 0),
            datetime(2026, 10, 18, 12, 0),
            datetime(2026, 10, 18, 18, 0),
            datetime(2026, 10, 17, 13, 0),
            datetime(2026, 10, 18, 18, 0),
        ]

    def test_options_not_past_when_generated(self, now):
        """Every quick value lies ahead of the now it was computed from."""
        for option in quick_options(now):
            assert is_past(option.value, now) is False

    def test_code_recomputes_from_now(self, now):
        later = now + timedelta(hours=2)
        assert parse_timestamp(resolve_quick_code("deadline:relative:3h", later)) == datetime(2026, 10, 17, 15, 0)

    @pytest.mark.parametrize("code", ["deadline:custom", "deadline:today:24:00", "other", ""])
    def test_unknown_codes(self, code, now):
        assert resolve_quick_code(code, now) is None
