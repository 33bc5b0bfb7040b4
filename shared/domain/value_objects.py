"""
Common Value Objects

- Money: monetary amount with currency
- DateRange: half-open range of dates ``[start_date, end_date)``
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidRangeError

SUPPORTED_CURRENCIES = ('BGN', 'EUR', 'USD')


@dataclass(frozen=True)
class Money(ValueObject):
    amount: Decimal
    currency: str = 'BGN'

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by an integer or Decimal")
        return Money(self.amount * factor, self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    ``start_date`` is included, ``end_date`` is excluded, so a rental
    returned on the 5th and another picked up on the 5th do not collide.
    Construction fails with ``InvalidRangeError`` unless start < end.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date is None or self.end_date is None:
            raise InvalidRangeError("Both start and end dates are required")
        if self.start_date >= self.end_date:
            raise InvalidRangeError(
                f"Start date ({self.start_date}) must be before end date ({self.end_date})",
                start_date=self.start_date,
                end_date=self.end_date,
            )

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Half-open overlap: start1 < end2 AND end1 > start2

        Examples:
            - DateRange(1, 5) overlaps DateRange(4, 6) -> True
            - DateRange(1, 5) overlaps DateRange(5, 10) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date < other.end_date and self.end_date > other.start_date

    def __len__(self) -> int:
        """Number of rental days"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"[{self.start_date.isoformat()}, {self.end_date.isoformat()})"
