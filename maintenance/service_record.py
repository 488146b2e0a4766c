"""ServiceRecord class for performed maintenance."""

from datetime import date
from typing import Iterable, Optional


class ServiceRecord:
    """A record of maintenance performed on one vehicle."""

    def __init__(
            self,
            vehicle_id: str,
            item_type: str,
            service_date: date,
            odometer: Optional[float] = None,
            next_due_date: Optional[date] = None,
            next_due_distance: Optional[float] = None,
    ):
        self.vehicle_id = vehicle_id
        self.item_type = item_type
        self.service_date = service_date
        self.odometer = odometer
        self.next_due_date = next_due_date
        self.next_due_distance = next_due_distance


def latest_record(
    records: Iterable[ServiceRecord], item_type: str
) -> Optional[ServiceRecord]:
    """Get the most recent record of the given item type, by service date."""
    matching = [r for r in records if r.item_type == item_type]
    if not matching:
        return None
    return max(matching, key=lambda r: r.service_date)
