"""MaintenanceItemType class for interval definitions."""
from typing import Optional

DEFAULT_WARNING_FRACTION = 0.8
DEFAULT_OVERDUE_FRACTION = 1.0


class MaintenanceItemType:
    """A category of vehicle upkeep and its expected renewal interval."""

    def __init__(
            self,
            key: str,
            label: Optional[str] = None,
            interval_months: Optional[float] = None,
            interval_distance: Optional[float] = None,
            warning_fraction: float = DEFAULT_WARNING_FRACTION,
            overdue_fraction: float = DEFAULT_OVERDUE_FRACTION,
    ):
        self.key = key
        self.label = label or key.replace("_", " ").title()
        self.interval_months = interval_months
        self.interval_distance = interval_distance
        self.warning_fraction = warning_fraction
        self.overdue_fraction = overdue_fraction

    @property
    def is_classifiable(self) -> bool:
        """True when at least one interval is defined."""
        return bool(self.interval_months) or bool(self.interval_distance)

    def __repr__(self) -> str:
        return f"MaintenanceItemType({self.key!r})"
