"""Domain value objects for taskflow.

Value objects are immutable types that represent domain concepts with
self-validation. They raise ValueError; the application layer turns that
into ValidationException with the offending field.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar

from taskflow.domain.enums import RecurrenceFrequency


@dataclass(frozen=True)
class Priority:
    """Task priority on a 1-10 scale (higher is more urgent).

    Legacy string levels are accepted on input and mapped onto the scale.
    """

    value: int

    MIN: ClassVar[int] = 1
    MAX: ClassVar[int] = 10
    LEGACY_LEVELS: ClassVar[MappingProxyType] = MappingProxyType(
        {"low": 1, "medium": 5, "high": 10}
    )

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Priority must be an integer")
        if not self.MIN <= self.value <= self.MAX:
            raise ValueError(f"Priority must be between {self.MIN} and {self.MAX}")

    @classmethod
    def from_input(cls, raw: Any) -> "Priority":
        """Normalize raw priority input.

        Accepts an integer 1-10, a numeric string, an integral float, or one of
        the legacy levels "low"/"medium"/"high" (case-insensitive). Pure: the
        same input always yields the same output or the same error.

        Raises:
            ValueError: If the value is non-numeric, fractional, or out of range.
        """
        if isinstance(raw, bool) or raw is None:
            raise ValueError("Priority must be an integer between 1 and 10")
        if isinstance(raw, int):
            return cls(raw)
        if isinstance(raw, float):
            if not math.isfinite(raw) or not raw.is_integer():
                raise ValueError("Priority must be an integer between 1 and 10")
            return cls(int(raw))
        if isinstance(raw, str):
            text = raw.strip().lower()
            if text in cls.LEGACY_LEVELS:
                return cls(cls.LEGACY_LEVELS[text])
            if text.lstrip("+-").isdigit():
                return cls(int(text))
        raise ValueError(
            "Priority must be an integer between 1 and 10 or one of: low, medium, high"
        )


@dataclass(frozen=True)
class Recurrence:
    """Recurrence rule carried by a repeating task.

    series_id groups every task spawned from the same first task; it is
    assigned lazily the first time the series spawns a successor.
    """

    freq: RecurrenceFrequency
    interval: int = 1
    series_id: str | None = None

    def __post_init__(self) -> None:
        """Validate frequency and interval.

        Raises:
            ValueError: If freq is not a known frequency or interval is not a positive integer.
        """
        if not isinstance(self.freq, RecurrenceFrequency):
            try:
                object.__setattr__(self, "freq", RecurrenceFrequency(self.freq))
            except ValueError:
                raise ValueError(
                    f"Recurrence freq must be one of: {', '.join(RecurrenceFrequency.values())}"
                ) from None
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ValueError("Recurrence interval must be a positive integer")
        if self.interval < 1:
            raise ValueError("Recurrence interval must be a positive integer")

    def with_series_id(self, series_id: str) -> "Recurrence":
        """Return a copy bound to the given series."""
        return Recurrence(freq=self.freq, interval=self.interval, series_id=series_id)
