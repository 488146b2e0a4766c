"""Status, tier and frequency enums."""

from enum import Enum
from typing import Optional


class Status(Enum):
    """Maintenance status categories. Lower value = more urgent."""

    OVERDUE = 1
    WARNING = 2
    GOOD = 3
    UNKNOWN = 4  # No service record, or no interval to measure against

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def is_alertable(self) -> bool:
        return self in (Status.OVERDUE, Status.WARNING)

    @classmethod
    def parse(cls, value: str) -> "Status":
        return cls[value.strip().upper()]


def most_urgent(*statuses: Status) -> Status:
    """Pick the most urgent of the given statuses."""
    return min(statuses, key=lambda s: s.value)


class Tier(Enum):
    """Subscription tier. Gates warning status and user-specified due points."""

    FREE = "free"
    PERSONAL = "personal"
    BUSINESS = "business"

    @property
    def is_paid(self) -> bool:
        return self is not Tier.FREE

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tier":
        """Parse a stored plan name. Missing plans are free; 'family' is personal."""
        if not value:
            return cls.FREE
        normalized = value.strip().lower()
        if normalized == "family":
            return cls.PERSONAL
        return cls(normalized)


class Frequency(Enum):
    """How often a paid account may be re-alerted about the same overdue item."""

    DAILY = 1
    WEEKLY = 7
    MONTHLY = 30

    @property
    def days(self) -> int:
        return self.value

    @classmethod
    def parse(cls, value: Optional[str]) -> "Frequency":
        """Parse a stored frequency name, defaulting to weekly."""
        if not value:
            return cls.WEEKLY
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return cls.WEEKLY
