"""
Duration normalization between canonical minutes and editor values.

Durations are stored in minutes. The editor shows them in hours or in
working days, where a day is a working day (480 minutes by default), not
a calendar day. Every value written back is rounded to the whole minute
and clamped to the configured range (30 minutes to 7 days by default).

Usage:
    normalizer = DurationNormalizer()
    normalizer.to_minutes(1.5, "hours")      # 90
    normalizer.to_display(600, "days")       # 1.25
    normalizer.infer_default_unit(600)       # DurationUnit.DAYS
"""

import logging
import math
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Optional, Union

from booking_engine.config import settings
from booking_engine.errors import ValidationError
from booking_engine.utils import round_half_up

logger = logging.getLogger(__name__)

MINUTES_PER_HOUR = 60


class DurationUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"


class DurationNormalizer:
    """Converts (value, unit) pairs to clamped minutes and back."""

    def __init__(
        self,
        min_minutes: Optional[int] = None,
        max_minutes: Optional[int] = None,
        working_day_minutes: Optional[int] = None,
        default_value: Optional[float] = None,
    ) -> None:
        cfg = settings.duration
        self.min_minutes = cfg.min_minutes if min_minutes is None else min_minutes
        self.max_minutes = cfg.max_minutes if max_minutes is None else max_minutes
        self.working_day_minutes = (
            cfg.working_day_minutes if working_day_minutes is None else working_day_minutes
        )
        self.default_value = cfg.default_value if default_value is None else default_value

    def coerce_unit(self, unit: Union[str, DurationUnit]) -> DurationUnit:
        try:
            return DurationUnit(unit.lower() if isinstance(unit, str) else unit)
        except ValueError:
            raise ValidationError("duration_unit", f"unknown unit {unit!r}") from None

    def _factor(self, unit: Union[str, DurationUnit]) -> int:
        if self.coerce_unit(unit) == DurationUnit.DAYS:
            return self.working_day_minutes
        return MINUTES_PER_HOUR

    def coerce_value(self, value: Any) -> Fraction:
        """Turn raw editor input into an exact number.

        Missing, blank, zero and non-numeric text fall back to the default
        value. Infinite numbers and unsupported types cannot be coerced.
        """
        if isinstance(value, bool):
            raise ValidationError("duration", f"unsupported value {value!r}")
        if value is None:
            return Fraction(self.default_value)
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                logger.debug("Non-numeric duration %r, using default", value)
                return Fraction(self.default_value)
        if not isinstance(value, (int, float, Decimal, Fraction)):
            raise ValidationError("duration", f"unsupported value {value!r}")
        if isinstance(value, Decimal):
            # is_nan() also covers signalling NaN, which math.isnan rejects
            if value.is_nan():
                return Fraction(self.default_value)
            if value.is_infinite():
                raise ValidationError("duration", "must be a finite number")
        elif isinstance(value, float):
            if math.isnan(value):
                return Fraction(self.default_value)
            if math.isinf(value):
                raise ValidationError("duration", "must be a finite number")
        if value == 0:
            return Fraction(self.default_value)
        return Fraction(value)

    def clamp(self, minutes: int) -> int:
        return max(self.min_minutes, min(self.max_minutes, minutes))

    def to_minutes(self, value: Any, unit: Union[str, DurationUnit]) -> int:
        """Convert an editor value to whole minutes within the allowed range."""
        factor = self._factor(unit)
        minutes = round_half_up(self.coerce_value(value) * factor)
        clamped = self.clamp(minutes)
        if clamped != minutes:
            logger.debug("Duration %d min clamped to %d", minutes, clamped)
        return clamped

    def to_display(self, minutes: int, unit: Union[str, DurationUnit]) -> float:
        """Minutes as a (possibly fractional) editor value."""
        return minutes / self._factor(unit)

    def infer_default_unit(self, minutes: int) -> DurationUnit:
        """Days for anything longer than one working day, otherwise hours."""
        return DurationUnit.DAYS if minutes > self.working_day_minutes else DurationUnit.HOURS

    def editor_state(self, minutes: int) -> tuple[float, DurationUnit]:
        """Value and unit to show when a stored duration is loaded into the editor."""
        unit = self.infer_default_unit(minutes)
        return self.to_display(minutes, unit), unit

    def format_duration(self, minutes: int) -> str:
        """Compact label such as ``45m``, ``1h 30m`` or ``1d 2h``."""
        if minutes < MINUTES_PER_HOUR:
            return f"{minutes}m"
        if minutes >= self.working_day_minutes:
            days = minutes // self.working_day_minutes
            hours = (minutes % self.working_day_minutes) // MINUTES_PER_HOUR
            return f"{days}d {hours}h" if hours else f"{days}d"
        hours, mins = divmod(minutes, MINUTES_PER_HOUR)
        return f"{hours}h {mins}m" if mins else f"{hours}h"
