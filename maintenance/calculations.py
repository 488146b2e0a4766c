"""Helper functions for threshold checks and remaining-amount formatting."""

import math
from datetime import date

from .status import Status

# Average month length. Alert timing depends on this exact value.
AVG_DAYS_PER_MONTH = 30.44

# Lead time for user-specified due points (paid tiers only)
DUE_DATE_WARNING_DAYS = 30
DUE_DISTANCE_WARNING = 1000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def months_between(start: date, end: date) -> float:
    """Elapsed months from start to end using the average month length."""
    return (end - start).days / AVG_DAYS_PER_MONTH


def check_progress(
    progress: float,
    warning_fraction: float,
    overdue_fraction: float,
    allow_warning: bool = True,
) -> Status:
    """Determine status from the fraction of an interval already used."""
    if progress >= overdue_fraction:
        return Status.OVERDUE
    if allow_warning and progress >= warning_fraction:
        return Status.WARNING
    return Status.GOOD


def check_remaining(remaining: float, warning_threshold: float) -> Status:
    """Determine status from the amount left before a fixed due point."""
    if remaining <= 0:
        return Status.OVERDUE
    if remaining <= warning_threshold:
        return Status.WARNING
    return Status.GOOD


def format_days(days: int) -> str:
    """Format a signed day count, e.g. '12 days remaining' or '3 days overdue'."""
    if days == 0:
        return "due today"
    unit = "day" if abs(days) == 1 else "days"
    if days < 0:
        return f"{abs(days)} {unit} overdue"
    return f"{days} {unit} remaining"


def format_months(months: float) -> str:
    """
    Format a signed month count, e.g. '~2 mo remaining'.

    Less than a whole month overdue is shown in days. Any time still
    remaining rounds to at least one month.
    """
    if -1 < months <= 0:
        return format_days(round_half_up(months * AVG_DAYS_PER_MONTH))
    count = max(1, round_half_up(abs(months)))
    if months < 0:
        return f"~{count} mo overdue"
    return f"~{count} mo remaining"


def format_distance(distance: float) -> str:
    """Format a signed distance, e.g. '1,000 mi remaining'."""
    count = round_half_up(abs(distance))
    if count == 0:
        return "due now"
    if distance < 0:
        return f"{count:,} mi overdue"
    return f"{count:,} mi remaining"
