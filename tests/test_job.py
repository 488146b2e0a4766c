#!/usr/bin/env python3
"""
Tests for NotificationJob preview and execute.

Includes multi-run scenarios with the ledger carried between runs.
"""

import logging
from datetime import timedelta

import pytest

from conftest import NOW, TODAY, RecordingMailer
from maintenance import (
    Config,
    ConfigError,
    LedgerEntry,
    LedgerKey,
    NotificationJob,
    ServiceRecord,
    Status,
    Tier,
)


def overdue_oil(vehicle_id="car-1"):
    return ServiceRecord(vehicle_id, "oil_change", TODAY - timedelta(days=213))


@pytest.fixture
def fleet(store):
    store.add_account("user-1")
    store.add_vehicle("car-1", "user-1")
    store.add_record(overdue_oil())
    return store


@pytest.fixture
def job(fleet, item_types, mailer, config):
    return NotificationJob(fleet, item_types, mailer, config, clock=lambda: NOW)


class TestPreview:
    """Preview has no side effects."""

    def test_reports_digests(self, job):
        result = job.preview().to_dict()
        assert result["mode"] == "preview"
        assert result["emailsToSend"] == 1
        assert result["skippedUsers"] == 0
        assert result["errors"] == []
        assert result["digests"][0]["alerts"] == ["car-1: Oil Change (overdue)"]
        assert result["digests"][0]["overdueCount"] == 1

    def test_is_idempotent(self, job, fleet, mailer):
        first = job.preview().to_dict()
        second = job.preview().to_dict()
        assert first == second
        assert mailer.sent == []
        assert fleet.ledger == {}
        assert fleet.notified == {}

    def test_works_without_mailer(self, fleet, item_types):
        job = NotificationJob(fleet, item_types, clock=lambda: NOW)
        assert job.preview().to_dict()["emailsToSend"] == 1


class TestExecute:
    """Execute sends and commits the ledger."""

    def test_sends_and_records(self, job, fleet, mailer):
        result = job.execute().to_dict()
        assert result["mode"] == "send"
        assert (result["sent"], result["failed"], result["skippedUsers"]) == (1, 0, 0)
        assert len(mailer.sent) == 1
        message = mailer.sent[0]
        assert message["to"] == "driver@example.com"
        assert message["subject"] == "1 overdue - FleetReq Weekly Summary"
        assert message["headers"]["List-Unsubscribe-Post"] == "List-Unsubscribe=One-Click"
        assert "uid=user-1" in message["headers"]["List-Unsubscribe"]
        key = LedgerKey("user-1", "car-1", "oil_change", Status.OVERDUE)
        assert fleet.ledger[key].last_notified_at == NOW
        assert fleet.notified["user-1"] == NOW

    def test_second_run_is_suppressed(self, job, mailer):
        job.execute()
        result = job.execute(NOW + timedelta(days=1))
        assert result.sent == 0
        assert result.skipped == 1
        assert len(mailer.sent) == 1

    def test_paid_repeat_after_frequency(self, job, fleet, mailer):
        job.execute()
        later = NOW + timedelta(days=7)
        assert job.execute(later).sent == 1
        key = LedgerKey("user-1", "car-1", "oil_change", Status.OVERDUE)
        assert fleet.ledger[key].last_notified_at == later

    def test_free_tier_one_shot(self, job, fleet, mailer):
        fleet.accounts["user-1"].tier = Tier.FREE
        job.execute()
        assert job.execute(NOW + timedelta(days=90)).sent == 0
        assert len(mailer.sent) == 1
        assert "Upgrade to Personal" in mailer.sent[0]["html"]

    def test_send_failure_leaves_ledger_untouched(self, fleet, item_types, config):
        mailer = RecordingMailer(fail_for={"driver@example.com"})
        job = NotificationJob(fleet, item_types, mailer, config, clock=lambda: NOW)
        result = job.execute()
        assert (result.sent, result.failed) == (0, 1)
        assert result.errors == ["Failed to send to driver@example.com: rejected"]
        assert fleet.ledger == {}
        assert fleet.notified == {}

        # Next run retries
        mailer.fail_for.clear()
        assert job.execute().sent == 1

    def test_one_failed_account_does_not_stop_others(self, fleet, item_types, config):
        fleet.add_account("user-2", email="other@example.com")
        fleet.add_vehicle("car-2", "user-2")
        fleet.add_record(overdue_oil("car-2"))
        mailer = RecordingMailer(fail_for={"driver@example.com"})
        job = NotificationJob(fleet, item_types, mailer, config, clock=lambda: NOW)
        result = job.execute()
        assert (result.sent, result.failed) == (1, 1)
        assert [m["to"] for m in mailer.sent] == ["other@example.com"]

    def test_ledger_write_failure_logged_critical(self, job, fleet, caplog):
        fleet.fail_upsert = True
        with caplog.at_level(logging.CRITICAL, logger="maintenance"):
            result = job.execute()
        assert result.sent == 1
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert any("Failed to record alert" in e for e in result.errors)
        # Not recorded, so the next run sends again
        fleet.fail_upsert = False
        assert job.execute(NOW + timedelta(hours=1)).sent == 1

    def test_timestamp_update_failure_is_reported(self, job, fleet):
        fleet.fail_mark = True
        result = job.execute()
        assert result.sent == 1
        assert result.errors == ["Failed to update timestamp for user-1: profile update failed"]

    def test_clear_failure_is_not_fatal(self, job, fleet):
        fleet.records = [ServiceRecord("car-1", "oil_change", TODAY)]
        fleet.upsert_ledger_entry(
            LedgerEntry("user-1", "car-1", "oil_change", Status.OVERDUE, NOW - timedelta(days=40))
        )
        fleet.fail_delete = True
        result = job.execute()
        assert result.failed == 0
        assert any("Failed to clear ledger" in e for e in result.errors)

    def test_clears_applied_for_accounts_without_alerts(self, job, fleet, mailer):
        job.execute()
        fleet.records.append(ServiceRecord("car-1", "oil_change", TODAY))
        result = job.execute(NOW + timedelta(days=1))
        assert result.sent == 0
        assert fleet.ledger == {}

    def test_missing_unsubscribe_secret_aborts(self, fleet, item_types, mailer):
        job = NotificationJob(fleet, item_types, mailer, Config(), clock=lambda: NOW)
        with pytest.raises(ConfigError):
            job.execute()
        assert mailer.sent == []

    def test_missing_mailer_aborts(self, fleet, item_types, config):
        job = NotificationJob(fleet, item_types, None, config, clock=lambda: NOW)
        with pytest.raises(ConfigError):
            job.execute()


class TestTransitions:
    """Ledger behavior across consecutive runs."""

    def test_good_overdue_good_overdue(self, store, item_types, mailer, config):
        """Alerts on the first overdue, and again after a clear."""
        store.add_account("user-1")
        store.add_vehicle("car-1", "user-1")
        job = NotificationJob(store, item_types, mailer, config)

        # Run 1: overdue for the first time
        store.records = [overdue_oil()]
        assert job.execute(NOW).sent == 1

        # Run 2: still overdue, frequency not elapsed
        assert job.execute(NOW + timedelta(days=1)).sent == 0

        # Run 3: serviced, good again
        serviced = TODAY + timedelta(days=2)
        store.records.append(ServiceRecord("car-1", "oil_change", serviced))
        assert job.execute(NOW + timedelta(days=2)).sent == 0
        assert store.ledger == {}

        # Run 4: overdue again, fresh alert even though a repeat wouldn't be due
        run4 = NOW + timedelta(days=2 + 200)
        assert job.execute(run4).sent == 1
        assert len(mailer.sent) == 2

    def test_warning_then_overdue(self, store, item_types, mailer, config):
        """Warning alerts once; escalating to overdue alerts again."""
        store.add_account("user-1")
        store.add_vehicle("car-1", "user-1")
        store.records = [ServiceRecord("car-1", "oil_change", TODAY - timedelta(days=160))]
        job = NotificationJob(store, item_types, mailer, config)

        assert job.execute(NOW).sent == 1
        assert "1 upcoming" in mailer.sent[0]["subject"]
        assert job.execute(NOW + timedelta(days=8)).sent == 0
        assert job.execute(NOW + timedelta(days=30)).sent == 1
        assert "1 overdue" in mailer.sent[1]["subject"]
