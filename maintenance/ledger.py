"""
Notification ledger and the alert decision for one item.

The ledger holds one entry per (account, vehicle, item type, status) that
has been alerted on, with the time of the last alert. decide_action maps
the current status and any prior entries to what the job should do; it
has no I/O so the policy can be tested on its own.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .status import Frequency, Status, Tier

SECONDS_PER_DAY = 86400


class Action(Enum):
    """What to do for one (vehicle, item type) on this run."""

    NONE = "none"
    ALERT = "alert"  # first alert for this status
    ALERT_REFRESH = "alert_refresh"  # repeat alert, refresh the timestamp
    CLEAR = "clear"  # drop ledger entries, no alert

    @property
    def sends(self) -> bool:
        return self in (Action.ALERT, Action.ALERT_REFRESH)


@dataclass(frozen=True)
class LedgerKey:
    account_id: str
    vehicle_id: str
    item_type: str
    status: Status


@dataclass
class LedgerEntry:
    """When an alert for this key was last sent."""

    account_id: str
    vehicle_id: str
    item_type: str
    status: Status
    last_notified_at: datetime

    @property
    def key(self) -> LedgerKey:
        return LedgerKey(self.account_id, self.vehicle_id, self.item_type, self.status)

    @classmethod
    def from_key(cls, key: LedgerKey, last_notified_at: datetime) -> "LedgerEntry":
        return cls(key.account_id, key.vehicle_id, key.item_type, key.status, last_notified_at)


def days_since(then: datetime, now: datetime) -> float:
    """Elapsed days between two timestamps, fractional."""
    return (now - then).total_seconds() / SECONDS_PER_DAY


def index_ledger(
    entries: Iterable[LedgerEntry],
) -> Dict[Tuple[str, str], Dict[Status, LedgerEntry]]:
    """Group ledger entries by (vehicle id, item type), then by status."""
    index: Dict[Tuple[str, str], Dict[Status, LedgerEntry]] = {}
    for entry in entries:
        index.setdefault((entry.vehicle_id, entry.item_type), {})[entry.status] = entry
    return index


def repeat_allowed(
    entry: LedgerEntry, tier: Tier, frequency: Frequency, now: datetime
) -> bool:
    """Overdue alerts repeat on paid tiers once the account's frequency has elapsed."""
    if tier is Tier.FREE:
        return False
    if tier in (Tier.PERSONAL, Tier.BUSINESS):
        return days_since(entry.last_notified_at, now) >= frequency.days
    raise ValueError(f"Unhandled tier: {tier}")


def decide_action(
    status: Status,
    prior: Optional[Mapping[Status, LedgerEntry]],
    tier: Tier,
    frequency: Frequency,
    now: datetime,
    warnings_enabled: bool = True,
) -> Action:
    """
    Decide whether to alert, clear or do nothing for one item.

    - GOOD/UNKNOWN: clear any prior entries so a later relapse alerts fresh
    - OVERDUE: alert the first time; repeat only per repeat_allowed
    - WARNING: alert once, never repeat; paid tiers with warnings enabled only

    Args:
        prior: Existing ledger entries for this item keyed by status
    """
    prior = prior or {}

    if status in (Status.GOOD, Status.UNKNOWN):
        return Action.CLEAR if prior else Action.NONE

    if status is Status.OVERDUE:
        entry = prior.get(Status.OVERDUE)
        if entry is None:
            return Action.ALERT
        if repeat_allowed(entry, tier, frequency, now):
            return Action.ALERT_REFRESH
        return Action.NONE

    if status is Status.WARNING:
        if not (tier.is_paid and warnings_enabled):
            return Action.NONE
        if Status.WARNING in prior:
            return Action.NONE
        return Action.ALERT

    raise ValueError(f"Unhandled status: {status}")
