"""Shared fixtures: in-memory record store, recording mailer, fixed clock."""

from datetime import datetime, timezone

import pytest

from maintenance import (
    Account,
    Config,
    Frequency,
    LedgerEntry,
    Mailer,
    RecordStore,
    SendResult,
    StoreError,
    Tier,
    Vehicle,
    load_item_types,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


class InMemoryStore(RecordStore):
    """RecordStore fake with switchable failures."""

    def __init__(self):
        self.accounts = {}
        self.vehicles = []
        self.records = []
        self.ledger = {}
        self.notified = {}
        self.fail_reads_for = set()
        self.fail_list = False
        self.fail_upsert = False
        self.fail_delete = False
        self.fail_mark = False
        self.malformed = []

    def add_account(self, id="user-1", email="driver@example.com", tier=Tier.PERSONAL,
                    frequency=Frequency.WEEKLY, warning_enabled=True, enabled=True):
        account = Account(id, email, tier, enabled, frequency, warning_enabled)
        self.accounts[id] = account
        return account

    def add_vehicle(self, id="car-1", account_id="user-1", odometer=None, **kwargs):
        vehicle = Vehicle(id, account_id, current_odometer=odometer, **kwargs)
        self.vehicles.append(vehicle)
        return vehicle

    def add_record(self, record):
        self.records.append(record)
        return record

    def list_accounts(self, enabled_only=True, errors=None):
        if self.fail_list:
            raise StoreError("accounts unavailable")
        if self.malformed:
            if errors is None:
                raise StoreError(self.malformed[0])
            errors.extend(self.malformed)
        return [a for a in self.accounts.values() if a.notifications_enabled or not enabled_only]

    def get_vehicles(self, account_id):
        if account_id in self.fail_reads_for:
            raise StoreError("vehicles unavailable")
        return [v for v in self.vehicles if v.account_id == account_id]

    def get_service_records(self, vehicle_ids):
        ids = set(vehicle_ids)
        return [r for r in self.records if r.vehicle_id in ids]

    def get_ledger_entries(self, account_id):
        return [e for e in self.ledger.values() if e.account_id == account_id]

    def upsert_ledger_entry(self, entry):
        if self.fail_upsert:
            raise StoreError("ledger write failed")
        self.ledger[entry.key] = LedgerEntry(
            entry.account_id, entry.vehicle_id, entry.item_type, entry.status,
            entry.last_notified_at,
        )

    def delete_ledger_entries(self, account_id, vehicle_id, item_type):
        if self.fail_delete:
            raise StoreError("ledger delete failed")
        for key in list(self.ledger):
            if (key.account_id, key.vehicle_id, key.item_type) == (account_id, vehicle_id, item_type):
                del self.ledger[key]

    def mark_notified(self, account_id, when):
        if self.fail_mark:
            raise StoreError("profile update failed")
        self.notified[account_id] = when

    def set_notifications_enabled(self, account_id, enabled):
        if account_id not in self.accounts:
            raise StoreError(f"Unknown account: {account_id}")
        self.accounts[account_id].notifications_enabled = enabled


class RecordingMailer(Mailer):
    """Mailer fake that records messages and can be told to fail."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, to, subject, html, headers=None):
        if to in self.fail_for:
            return SendResult(False, "rejected")
        self.sent.append({"to": to, "subject": subject, "html": html, "headers": headers})
        return SendResult(True)


@pytest.fixture
def item_types():
    return load_item_types()


@pytest.fixture
def oil_change(item_types):
    return next(t for t in item_types if t.key == "oil_change")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def config():
    return Config(
        cron_secret="cron-secret",
        resend_api_key="re_test",
        unsubscribe_secret="unsub-secret",
        site_url="https://fleet.example.com",
        app_name="FleetReq",
    )
