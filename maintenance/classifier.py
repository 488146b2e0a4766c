"""
Status classification for one (vehicle, item type) pair.

Two independent checks are made, time and distance, and the more urgent
one wins. Each check prefers a user-specified due point on paid tiers and
otherwise falls back to the item type's default interval. Free tier never
sees WARNING.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .calculations import (
    DUE_DATE_WARNING_DAYS,
    DUE_DISTANCE_WARNING,
    check_progress,
    check_remaining,
    format_days,
    format_distance,
    format_months,
    months_between,
)
from .item_type import MaintenanceItemType
from .service_record import ServiceRecord
from .status import Status, Tier, most_urgent


@dataclass
class Check:
    """Outcome of a single time or distance check."""

    status: Status
    detail: str


@dataclass
class Classification:
    """Derived health of one item on one vehicle."""

    item_type: MaintenanceItemType
    status: Status
    detail: str = ""
    time_check: Optional[Check] = None
    distance_check: Optional[Check] = None


def check_time(
    item_type: MaintenanceItemType,
    record: ServiceRecord,
    tier: Tier,
    today: date,
) -> Optional[Check]:
    """Time check. None when neither a due date nor a month interval applies."""
    if record.next_due_date is not None and tier.is_paid:
        days_until = (record.next_due_date - today).days
        return Check(
            check_remaining(days_until, DUE_DATE_WARNING_DAYS),
            format_days(days_until),
        )

    if item_type.interval_months:
        elapsed = months_between(record.service_date, today)
        progress = elapsed / item_type.interval_months
        remaining = item_type.interval_months * item_type.overdue_fraction - elapsed
        return Check(
            check_progress(
                progress,
                item_type.warning_fraction,
                item_type.overdue_fraction,
                allow_warning=tier.is_paid,
            ),
            format_months(remaining),
        )

    return None


def check_distance(
    item_type: MaintenanceItemType,
    record: ServiceRecord,
    current_odometer: Optional[float],
    tier: Tier,
) -> Optional[Check]:
    """Distance check. None when the current odometer is unknown."""
    if current_odometer is None:
        return None

    if record.next_due_distance is not None and tier.is_paid:
        remaining = record.next_due_distance - current_odometer
        return Check(
            check_remaining(remaining, DUE_DISTANCE_WARNING),
            format_distance(remaining),
        )

    if item_type.interval_distance and record.odometer is not None:
        elapsed = current_odometer - record.odometer
        progress = elapsed / item_type.interval_distance
        remaining = item_type.interval_distance * item_type.overdue_fraction - elapsed
        return Check(
            check_progress(
                progress,
                item_type.warning_fraction,
                item_type.overdue_fraction,
                allow_warning=tier.is_paid,
            ),
            format_distance(remaining),
        )

    return None


def classify(
    item_type: MaintenanceItemType,
    record: Optional[ServiceRecord],
    current_odometer: Optional[float],
    tier: Tier,
    today: Optional[date] = None,
) -> Classification:
    """
    Classify one item as GOOD, WARNING, OVERDUE or UNKNOWN.

    Args:
        record: Most recent service record of this item type, if any
        current_odometer: Vehicle's current reading, None if unknown
        today: Evaluation date, defaults to today
    """
    if record is None or not item_type.is_classifiable:
        return Classification(item_type=item_type, status=Status.UNKNOWN)

    today = today or date.today()
    time_check = check_time(item_type, record, tier, today)
    distance_check = check_distance(item_type, record, current_odometer, tier)

    checks: List[Check] = [c for c in (time_check, distance_check) if c is not None]
    if not checks:
        # Distance-only item on a vehicle with no odometer reading
        return Classification(item_type=item_type, status=Status.GOOD)

    status = most_urgent(*(c.status for c in checks))
    detail = ", ".join(c.detail for c in checks if c.status == status)

    return Classification(
        item_type=item_type,
        status=status,
        detail=detail,
        time_check=time_check,
        distance_check=distance_check,
    )
