"""
Record store access.

RecordStore is the interface the job reads fleet data from and writes the
notification ledger to. YamlRecordStore keeps everything in one YAML file
with camelCase keys, the same layout validate_fleet_file checks.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from dateutil.parser import isoparse

from .account import Account
from .errors import StoreError
from .ledger import LedgerEntry
from .service_record import ServiceRecord
from .status import Frequency, Status, Tier
from .vehicle import Vehicle


class RecordStore(ABC):
    """Queryable source of accounts, vehicles and records; owner of the ledger."""

    @abstractmethod
    def list_accounts(
        self, enabled_only: bool = True, errors: Optional[List[str]] = None
    ) -> List[Account]:
        """
        List accounts, optionally only those with notifications enabled.

        With an errors list, a malformed account row is reported there and
        left out. Without one it raises StoreError.
        """

    @abstractmethod
    def get_vehicles(self, account_id: str) -> List[Vehicle]:
        ...

    @abstractmethod
    def get_service_records(self, vehicle_ids: Iterable[str]) -> List[ServiceRecord]:
        ...

    @abstractmethod
    def get_ledger_entries(self, account_id: str) -> List[LedgerEntry]:
        ...

    @abstractmethod
    def upsert_ledger_entry(self, entry: LedgerEntry) -> None:
        """Insert the entry, or refresh last_notified_at if the key exists."""

    @abstractmethod
    def delete_ledger_entries(
        self, account_id: str, vehicle_id: str, item_type: str
    ) -> None:
        """Remove the WARNING and OVERDUE entries for one item."""

    @abstractmethod
    def mark_notified(self, account_id: str, when: datetime) -> None:
        ...

    @abstractmethod
    def set_notifications_enabled(self, account_id: str, enabled: bool) -> None:
        ...


# =============================================================================
# Value parsing
# =============================================================================


def parse_date(value: Any) -> Optional[date]:
    """Parse a date that YAML may already have turned into a date object."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(str(value)).date()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp, assuming UTC when no offset is given."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime(value.year, value.month, value.day)
    else:
        ts = isoparse(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_account(dct: Dict[str, Any]) -> Account:
    return Account(
        dct["id"],
        dct.get("email"),
        Tier.parse(dct.get("tier")),
        bool(dct.get("notificationsEnabled", False)),
        Frequency.parse(dct.get("notificationFrequency")),
        bool(dct.get("warningEnabled", True)),
        parse_timestamp(dct.get("lastNotificationSentAt")),
    )


def _parse_vehicle(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        dct["id"],
        dct["accountId"],
        dct.get("make"),
        dct.get("model"),
        dct.get("year"),
        dct.get("nickname"),
        dct.get("currentOdometer"),
    )


def _parse_record(dct: Dict[str, Any]) -> ServiceRecord:
    return ServiceRecord(
        dct["vehicleId"],
        dct["itemType"],
        parse_date(dct["serviceDate"]),
        dct.get("odometer"),
        parse_date(dct.get("nextDueDate")),
        dct.get("nextDueDistance"),
    )


def _parse_ledger_entry(dct: Dict[str, Any]) -> LedgerEntry:
    return LedgerEntry(
        dct["accountId"],
        dct["vehicleId"],
        dct["itemType"],
        Status.parse(dct["status"]),
        parse_timestamp(dct["lastNotifiedAt"]),
    )


def _ledger_entry_to_dict(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "accountId": entry.account_id,
        "vehicleId": entry.vehicle_id,
        "itemType": entry.item_type,
        "status": entry.status.label,
        "lastNotifiedAt": entry.last_notified_at.isoformat(),
    }


# =============================================================================
# YAML-backed store
# =============================================================================


class YamlRecordStore(RecordStore):
    """Record store backed by a single fleet YAML file."""

    def __init__(self, filename: Union[str, Path]):
        self.path = Path(filename)

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        for section in ("accounts", "vehicles", "serviceRecords", "ledger"):
            if data.get(section) is None:
                data[section] = []
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        """Write to a temporary file beside the target, then swap it in."""
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
            os.replace(tmp_name, self.path)
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _parse_rows(self, rows, parser) -> list:
        try:
            return [parser(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed row in {self.path}: {e!r}") from e

    def list_accounts(
        self, enabled_only: bool = True, errors: Optional[List[str]] = None
    ) -> List[Account]:
        accounts = []
        for i, row in enumerate(self._load()["accounts"]):
            if enabled_only and isinstance(row, dict) and not row.get("notificationsEnabled"):
                continue
            try:
                accounts.append(_parse_account(row))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                name = row.get("id", f"#{i}") if isinstance(row, dict) else f"#{i}"
                message = f"Malformed account {name} in {self.path}: {e!r}"
                if errors is None:
                    raise StoreError(message) from e
                errors.append(message)
        return accounts

    def get_vehicles(self, account_id: str) -> List[Vehicle]:
        rows = [v for v in self._load()["vehicles"] if v.get("accountId") == account_id]
        return self._parse_rows(rows, _parse_vehicle)

    def get_service_records(self, vehicle_ids: Iterable[str]) -> List[ServiceRecord]:
        ids = set(vehicle_ids)
        rows = [r for r in self._load()["serviceRecords"] if r.get("vehicleId") in ids]
        return self._parse_rows(rows, _parse_record)

    def get_ledger_entries(self, account_id: str) -> List[LedgerEntry]:
        rows = [e for e in self._load()["ledger"] if e.get("accountId") == account_id]
        return self._parse_rows(rows, _parse_ledger_entry)

    def upsert_ledger_entry(self, entry: LedgerEntry) -> None:
        data = self._load()
        row = _ledger_entry_to_dict(entry)
        for i, existing in enumerate(data["ledger"]):
            if (
                existing.get("accountId") == entry.account_id
                and existing.get("vehicleId") == entry.vehicle_id
                and existing.get("itemType") == entry.item_type
                and existing.get("status") == entry.status.label
            ):
                data["ledger"][i] = row
                break
        else:
            data["ledger"].append(row)
        self._save(data)

    def delete_ledger_entries(
        self, account_id: str, vehicle_id: str, item_type: str
    ) -> None:
        data = self._load()
        data["ledger"] = [
            e
            for e in data["ledger"]
            if not (
                e.get("accountId") == account_id
                and e.get("vehicleId") == vehicle_id
                and e.get("itemType") == item_type
            )
        ]
        self._save(data)

    def _update_account(self, account_id: str, field: str, value: Any) -> None:
        data = self._load()
        for account in data["accounts"]:
            if account.get("id") == account_id:
                account[field] = value
                break
        else:
            raise StoreError(f"Unknown account: {account_id}")
        self._save(data)

    def mark_notified(self, account_id: str, when: datetime) -> None:
        self._update_account(account_id, "lastNotificationSentAt", when.isoformat())

    def set_notifications_enabled(self, account_id: str, enabled: bool) -> None:
        self._update_account(account_id, "notificationsEnabled", enabled)
