#!/usr/bin/env python3
"""Tests for the ledger-driven alert decision."""

from datetime import timedelta

import pytest

from conftest import NOW
from maintenance import Action, Frequency, LedgerEntry, LedgerKey, Status, Tier, decide_action
from maintenance.ledger import days_since, index_ledger, repeat_allowed


def entry(status, days_ago, vehicle_id="car-1", item_type="oil_change"):
    return LedgerEntry("user-1", vehicle_id, item_type, status, NOW - timedelta(days=days_ago))


def prior(*entries):
    return {e.status: e for e in entries}


class TestLedgerEntry:
    def test_key(self):
        e = entry(Status.OVERDUE, 1)
        assert e.key == LedgerKey("user-1", "car-1", "oil_change", Status.OVERDUE)

    def test_from_key(self):
        key = LedgerKey("user-1", "car-1", "wipers", Status.WARNING)
        e = LedgerEntry.from_key(key, NOW)
        assert e.key == key
        assert e.last_notified_at == NOW

    def test_days_since_is_fractional(self):
        assert days_since(NOW - timedelta(hours=36), NOW) == 1.5

    def test_index_ledger_groups_by_item(self):
        entries = [
            entry(Status.OVERDUE, 1),
            entry(Status.WARNING, 9),
            entry(Status.OVERDUE, 2, item_type="wipers"),
        ]
        index = index_ledger(entries)
        assert set(index) == {("car-1", "oil_change"), ("car-1", "wipers")}
        assert set(index[("car-1", "oil_change")]) == {Status.OVERDUE, Status.WARNING}


class TestClear:
    """GOOD/UNKNOWN clear prior entries."""

    @pytest.mark.parametrize("status", [Status.GOOD, Status.UNKNOWN])
    def test_nothing_to_clear(self, status):
        assert decide_action(status, None, Tier.PERSONAL, Frequency.WEEKLY, NOW) == Action.NONE
        assert decide_action(status, {}, Tier.FREE, Frequency.WEEKLY, NOW) == Action.NONE

    @pytest.mark.parametrize("status", [Status.GOOD, Status.UNKNOWN])
    def test_clears_prior_entries(self, status):
        for p in (prior(entry(Status.OVERDUE, 3)), prior(entry(Status.WARNING, 3))):
            assert decide_action(status, p, Tier.PERSONAL, Frequency.WEEKLY, NOW) == Action.CLEAR


class TestOverdue:
    """First overdue always alerts; repeats follow tier and frequency."""

    @pytest.mark.parametrize("tier", list(Tier))
    def test_first_time_alerts(self, tier):
        assert decide_action(Status.OVERDUE, None, tier, Frequency.MONTHLY, NOW) == Action.ALERT

    def test_prior_warning_does_not_count(self):
        p = prior(entry(Status.WARNING, 0))
        assert decide_action(Status.OVERDUE, p, Tier.PERSONAL, Frequency.WEEKLY, NOW) == Action.ALERT

    @pytest.mark.parametrize("tier", list(Tier))
    def test_recent_entry_suppresses(self, tier):
        p = prior(entry(Status.OVERDUE, 3))
        assert decide_action(Status.OVERDUE, p, tier, Frequency.WEEKLY, NOW) == Action.NONE

    @pytest.mark.parametrize(
        "frequency,days_ago,expected",
        [
            (Frequency.DAILY, 1, Action.ALERT_REFRESH),
            (Frequency.DAILY, 0.5, Action.NONE),
            (Frequency.WEEKLY, 7, Action.ALERT_REFRESH),
            (Frequency.WEEKLY, 6.9, Action.NONE),
            (Frequency.MONTHLY, 30, Action.ALERT_REFRESH),
            (Frequency.MONTHLY, 29.9, Action.NONE),
        ],
    )
    def test_paid_repeat_after_frequency(self, frequency, days_ago, expected):
        p = prior(entry(Status.OVERDUE, days_ago))
        assert decide_action(Status.OVERDUE, p, Tier.BUSINESS, frequency, NOW) == expected

    def test_free_tier_never_repeats(self):
        p = prior(entry(Status.OVERDUE, 365))
        assert decide_action(Status.OVERDUE, p, Tier.FREE, Frequency.DAILY, NOW) == Action.NONE

    def test_repeat_allowed(self):
        old = entry(Status.OVERDUE, 8)
        assert repeat_allowed(old, Tier.PERSONAL, Frequency.WEEKLY, NOW)
        assert not repeat_allowed(old, Tier.FREE, Frequency.WEEKLY, NOW)


class TestWarning:
    """Warnings alert once, paid tiers with warnings enabled only."""

    def test_first_warning_alerts(self):
        assert decide_action(Status.WARNING, None, Tier.PERSONAL, Frequency.WEEKLY, NOW) == Action.ALERT

    def test_never_repeats(self):
        p = prior(entry(Status.WARNING, 400))
        assert decide_action(Status.WARNING, p, Tier.BUSINESS, Frequency.DAILY, NOW) == Action.NONE

    def test_free_tier_no_alert(self):
        assert decide_action(Status.WARNING, None, Tier.FREE, Frequency.WEEKLY, NOW) == Action.NONE

    def test_disabled_warnings_no_alert(self):
        action = decide_action(
            Status.WARNING, None, Tier.PERSONAL, Frequency.WEEKLY, NOW, warnings_enabled=False
        )
        assert action == Action.NONE


class TestAction:
    def test_sends(self):
        assert Action.ALERT.sends
        assert Action.ALERT_REFRESH.sends
        assert not Action.CLEAR.sends
        assert not Action.NONE.sends
