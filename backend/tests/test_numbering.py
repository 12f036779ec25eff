"""
Pass numbering tests.

Verifies:
- DDMMYYYY day keys from dates, datetimes and strings
- Sequence arithmetic, restarts and widening past 9999
- Numeric (not lexical) comparison when picking the last issued number
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from gatepass.numbering import (
    FormatError,
    date_key,
    day_key_of,
    format_pass_number,
    highest_pass_number,
    next_pass_number,
    parse_sequence,
    pass_prefix,
)


MARCH_5 = date(2024, 3, 5)


class TestDateKey:
    @pytest.mark.parametrize(
        "value",
        [
            date(2024, 3, 5),
            datetime(2024, 3, 5, 23, 59),
            "2024-03-05",
            "2024-03-05T10:30:00",
            "2024-03-05T10:30:00Z",
            "05-03-2024",
            "05/03/2024",
        ],
    )
    def test_key_from_calendar_fields(self, value):
        assert date_key(value) == "05032024"

    def test_aware_datetime_uses_its_own_fields(self):
        late_utc = datetime(2024, 3, 5, 22, 0, tzinfo=timezone.utc)
        assert date_key(late_utc) == "05032024"

    def test_single_digit_day_and_month_padded(self):
        assert date_key(date(2025, 1, 9)) == "09012025"

    @pytest.mark.parametrize("value", ["", "not a date", "2024-13-45", None, 20240305])
    def test_unreadable_value_raises(self, value):
        with pytest.raises(FormatError):
            date_key(value)

    def test_format_error_is_value_error(self):
        assert issubclass(FormatError, ValueError)


class TestNextPassNumber:
    def test_first_of_day(self):
        assert next_pass_number(MARCH_5) == "SDLGP05032024-0001"

    def test_increments_last_issued(self):
        assert next_pass_number(MARCH_5, "SDLGP05032024-0007") == "SDLGP05032024-0008"

    def test_last_issued_from_other_day_restarts(self):
        assert next_pass_number(MARCH_5, "SDLGP04032024-0042") == "SDLGP05032024-0001"

    @pytest.mark.parametrize("suffix", ["abc", "", "0000", "-3", "12a", "²", "0٣"])
    def test_unusable_suffix_restarts(self, suffix):
        assert next_pass_number(MARCH_5, f"SDLGP05032024-{suffix}") == "SDLGP05032024-0001"

    def test_padding_widens_past_9999(self):
        assert next_pass_number(MARCH_5, "SDLGP05032024-9999") == "SDLGP05032024-10000"
        assert next_pass_number(MARCH_5, "SDLGP05032024-10000") == "SDLGP05032024-10001"

    def test_sequence_is_monotonic(self):
        number = None
        previous = 0
        for _ in range(25):
            number = next_pass_number(MARCH_5, number)
            sequence = parse_sequence(number, pass_prefix(MARCH_5))
            assert sequence == previous + 1
            previous = sequence

    def test_days_are_isolated(self):
        today = next_pass_number(MARCH_5, "SDLGP05032024-0500")
        tomorrow = next_pass_number(MARCH_5 + timedelta(days=1), today)
        assert today == "SDLGP05032024-0501"
        assert tomorrow == "SDLGP06032024-0001"

    @pytest.mark.parametrize("day", [date(2024, 1, 1), date(2024, 2, 29), date(2024, 12, 31)])
    def test_day_key_embedded_at_fixed_position(self, day):
        number = next_pass_number(day)
        assert number[5:13] == date_key(day)
        assert day_key_of(number) == date_key(day)


class TestHighestPassNumber:
    def test_compares_integers_not_strings(self):
        numbers = ["SDLGP05032024-9999", "SDLGP05032024-10000", "SDLGP05032024-0002"]
        assert highest_pass_number(numbers, MARCH_5) == "SDLGP05032024-10000"

    def test_ignores_other_days_and_garbage(self):
        numbers = ["SDLGP06032024-0900", "SDLGP05032024-0003", None, "", "SDLGP05032024-xx", "SDLGP05032024-²"]
        assert highest_pass_number(numbers, MARCH_5) == "SDLGP05032024-0003"

    def test_none_when_nothing_matches(self):
        assert highest_pass_number(["SDLGP06032024-0001"], MARCH_5) is None
        assert highest_pass_number([], MARCH_5) is None


def test_format_pass_number():
    assert format_pass_number("05-03-2024", 12) == "SDLGP05032024-0012"


def test_day_key_of_rejects_foreign_numbers():
    assert day_key_of("INV-0001") is None
    assert day_key_of("SDLGP0503-0001") is None
