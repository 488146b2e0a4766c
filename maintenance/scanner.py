"""
Fleet scanning: statuses and alert decisions for every account.

For each account with notifications enabled, every vehicle is checked
against every known item type. The result per account is the list of
alerts that are due and the ledger entries that have gone stale.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .account import Account
from .classifier import Classification, classify
from .digest import AlertItem, Digest
from .errors import StoreError
from .item_type import MaintenanceItemType
from .ledger import Action, decide_action, index_ledger
from .service_record import ServiceRecord, latest_record
from .store import RecordStore
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class VehicleStatus:
    """All item classifications for one vehicle."""

    vehicle: Vehicle
    items: List[Classification]


@dataclass
class AccountScan:
    """Scan result for one account."""

    account: Account
    vehicles: List[VehicleStatus] = field(default_factory=list)
    alerts: List[AlertItem] = field(default_factory=list)
    # (vehicle id, item type) pairs whose ledger entries should be dropped
    clears: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def digest(self) -> Optional[Digest]:
        if not self.alerts:
            return None
        return Digest(self.account, self.alerts)


@dataclass
class FleetScan:
    scans: List[AccountScan] = field(default_factory=list)
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def digests(self) -> List[Digest]:
        return [s.digest for s in self.scans if s.digest is not None]


def classify_vehicle(
    vehicle: Vehicle,
    records: Sequence[ServiceRecord],
    item_types: Sequence[MaintenanceItemType],
    account: Account,
    now: datetime,
) -> VehicleStatus:
    """Classify every item type for one vehicle."""
    items = [
        classify(
            item_type,
            latest_record(records, item_type.key),
            vehicle.current_odometer,
            account.tier,
            now.date(),
        )
        for item_type in item_types
    ]
    return VehicleStatus(vehicle=vehicle, items=items)


def scan_account(
    store: RecordStore,
    account: Account,
    item_types: Sequence[MaintenanceItemType],
    now: datetime,
) -> AccountScan:
    """
    Scan one account's vehicles.

    Raises StoreError if vehicles, records or ledger entries can't be read.
    """
    scan = AccountScan(account=account)
    vehicles = store.get_vehicles(account.id)
    if not vehicles:
        return scan

    records = store.get_service_records([v.id for v in vehicles])
    ledger = index_ledger(store.get_ledger_entries(account.id))

    for vehicle in vehicles:
        vehicle_records = [r for r in records if r.vehicle_id == vehicle.id]
        vehicle_status = classify_vehicle(
            vehicle, vehicle_records, item_types, account, now
        )
        scan.vehicles.append(vehicle_status)

        for result in vehicle_status.items:
            action = decide_action(
                result.status,
                ledger.get((vehicle.id, result.item_type.key)),
                account.tier,
                account.frequency,
                now,
                warnings_enabled=account.wants_warnings,
            )
            if action is Action.CLEAR:
                scan.clears.append((vehicle.id, result.item_type.key))
            elif action.sends:
                scan.alerts.append(
                    AlertItem(
                        account_id=account.id,
                        vehicle_id=vehicle.id,
                        vehicle_label=vehicle.label,
                        item_type=result.item_type.key,
                        label=result.item_type.label,
                        status=result.status,
                        detail=result.detail,
                        action=action,
                    )
                )
    return scan


def scan_fleet(
    store: RecordStore,
    item_types: Sequence[MaintenanceItemType],
    now: datetime,
) -> FleetScan:
    """
    Scan every account with notifications enabled.

    Per-account read failures skip that account and are reported in errors;
    they never abort the scan.
    """
    fleet = FleetScan()
    row_errors: List[str] = []
    try:
        accounts = store.list_accounts(enabled_only=True, errors=row_errors)
    except StoreError as e:
        logger.error("Failed to fetch accounts: %s", e)
        fleet.errors.append(f"Failed to fetch accounts: {e}")
        return fleet

    for error in row_errors:
        logger.warning("Skipping account: %s", error)
        fleet.errors.append(error)
        fleet.skipped += 1

    for account in accounts:
        if not account.email:
            logger.warning("Skipping account %s: no email address", account.id)
            fleet.errors.append(f"No email for user {account.id}")
            fleet.skipped += 1
            continue

        try:
            scan = scan_account(store, account, item_types, now)
        except StoreError as e:
            logger.warning("Skipping account %s: %s", account.id, e)
            fleet.errors.append(f"Failed to fetch records for user {account.id}: {e}")
            fleet.skipped += 1
            continue

        fleet.scans.append(scan)
        if not scan.alerts:
            fleet.skipped += 1

    return fleet
