"""Tests for duration normalization between minutes and editor values."""

from decimal import Decimal
from fractions import Fraction

import pytest

from booking_engine.engine.duration import DurationNormalizer, DurationUnit
from booking_engine.errors import ValidationError


class TestToMinutes:
    def test_hours_multiply_by_sixty(self, normalizer):
        assert normalizer.to_minutes(1.5, "hours") == 90

    def test_days_are_working_days(self, normalizer):
        assert normalizer.to_minutes(1, "days") == 480

    def test_fractional_days(self, normalizer):
        assert normalizer.to_minutes(1.25, "days") == 600

    def test_unit_enum_accepted(self, normalizer):
        assert normalizer.to_minutes(2, DurationUnit.HOURS) == 120

    def test_unit_is_case_insensitive(self, normalizer):
        assert normalizer.to_minutes(2, "HOURS") == 120

    def test_rounds_to_nearest_minute(self, normalizer):
        assert normalizer.to_minutes(Decimal("0.6"), "hours") == 36
        assert normalizer.to_minutes(0.5125, "hours") == 31

    def test_half_minute_rounds_up(self, normalizer):
        # 61/960 of a 480-minute day is exactly 30.5 minutes
        assert normalizer.to_minutes(Fraction(61, 960), "days") == 31

    def test_numeric_string_is_parsed(self, normalizer):
        assert normalizer.to_minutes("2", "hours") == 120


class TestClamping:
    def test_below_minimum_clamps_up(self, normalizer):
        assert normalizer.to_minutes(0.1, "hours") == 30

    def test_negative_clamps_to_minimum(self, normalizer):
        assert normalizer.to_minutes(-3, "hours") == 30

    def test_above_maximum_clamps_down(self, normalizer):
        assert normalizer.to_minutes(200, "days") == 10080

    def test_exact_bounds_unchanged(self, normalizer):
        assert normalizer.to_minutes(0.5, "hours") == 30
        assert normalizer.to_minutes(168, "hours") == 10080

    @pytest.mark.parametrize("value", [-1e9, -1, 0.01, 0.49, 1, 7.3, 21, 500, 1e12])
    @pytest.mark.parametrize("unit", ["hours", "days"])
    def test_never_leaves_range(self, normalizer, value, unit):
        assert 30 <= normalizer.to_minutes(value, unit) <= 10080


class TestDefaulting:
    @pytest.mark.parametrize("value", [None, "", "   ", "abc", 0, 0.0, float("nan")])
    def test_missing_or_non_numeric_defaults_to_half_hour(self, normalizer, value):
        assert normalizer.to_minutes(value, "hours") == 30

    def test_default_in_days_is_half_a_working_day(self, normalizer):
        assert normalizer.to_minutes(None, "days") == 240

    def test_infinite_value_rejected(self, normalizer):
        with pytest.raises(ValidationError) as exc:
            normalizer.to_minutes(float("inf"), "hours")
        assert exc.value.field == "duration"

    @pytest.mark.parametrize("value", [[1], {"hours": 1}, object(), True])
    def test_unsupported_types_rejected(self, normalizer, value):
        with pytest.raises(ValidationError):
            normalizer.to_minutes(value, "hours")

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("sNaN")])
    def test_decimal_nan_defaults(self, normalizer, value):
        assert normalizer.to_minutes(value, "hours") == 30

    def test_decimal_infinity_rejected(self, normalizer):
        with pytest.raises(ValidationError):
            normalizer.to_minutes(Decimal("Infinity"), "hours")

    def test_unknown_unit_rejected(self, normalizer):
        with pytest.raises(ValidationError) as exc:
            normalizer.to_minutes(1, "weeks")
        assert exc.value.field == "duration_unit"


class TestToDisplay:
    def test_hours(self, normalizer):
        assert normalizer.to_display(90, "hours") == pytest.approx(1.5)

    def test_days(self, normalizer):
        assert normalizer.to_display(600, "days") == pytest.approx(1.25)

    def test_fraction_not_rounded(self, normalizer):
        assert normalizer.to_display(100, "hours") == pytest.approx(100 / 60)

    @pytest.mark.parametrize("unit", ["hours", "days"])
    def test_round_trip_within_one_minute(self, normalizer, unit):
        for minutes in range(30, 10081, 7):
            back = normalizer.to_minutes(normalizer.to_display(minutes, unit), unit)
            assert abs(back - minutes) <= 1


class TestInferDefaultUnit:
    def test_one_working_day_is_hours(self, normalizer):
        assert normalizer.infer_default_unit(480) == DurationUnit.HOURS

    def test_just_over_a_working_day_is_days(self, normalizer):
        assert normalizer.infer_default_unit(481) == DurationUnit.DAYS

    def test_editor_state_for_ten_hour_job(self, normalizer):
        value, unit = normalizer.editor_state(600)
        assert unit == DurationUnit.DAYS
        assert value == pytest.approx(1.25)

    def test_custom_working_day(self):
        normalizer = DurationNormalizer(working_day_minutes=600)
        assert normalizer.infer_default_unit(600) == DurationUnit.HOURS
        assert normalizer.to_minutes(1, "days") == 600


class TestFormatDuration:
    @pytest.mark.parametrize(
        "minutes, label",
        [
            (45, "45m"),
            (60, "1h"),
            (90, "1h 30m"),
            (480, "1d"),
            (540, "1d 1h"),
            (600, "1d 2h"),
            (960, "2d"),
        ],
    )
    def test_labels(self, normalizer, minutes, label):
        assert normalizer.format_duration(minutes) == label
