"""
The notification job: preview and execute.

Preview scans the fleet and reports what would be sent, with no side
effects. Execute clears stale ledger entries, sends one digest per account
and, only after a digest is accepted by the mailer, records each of its
alerts in the ledger. A failed send leaves the ledger alone so the next
run retries the whole digest.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .config import Config
from .digest import Digest, build_subject, render_html
from .errors import ConfigError, StoreError
from .item_type import MaintenanceItemType
from .ledger import LedgerEntry
from .mailer import Mailer
from .scanner import AccountScan, FleetScan, scan_fleet
from .store import RecordStore
from .unsubscribe import build_unsubscribe_url

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PreviewResult:
    timestamp: datetime
    digests: List[Digest] = field(default_factory=list)
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mode": "preview",
            "timestamp": self.timestamp.isoformat(),
            "emailsToSend": len(self.digests),
            "skippedUsers": self.skipped,
            "errors": list(self.errors),
            "digests": [d.to_preview() for d in self.digests],
        }


@dataclass
class ExecuteResult:
    timestamp: datetime
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mode": "send",
            "timestamp": self.timestamp.isoformat(),
            "sent": self.sent,
            "failed": self.failed,
            "skippedUsers": self.skipped,
            "errors": list(self.errors),
        }


class NotificationJob:
    """Runs one pass of the maintenance notification digest."""

    def __init__(
        self,
        store: RecordStore,
        item_types: Sequence[MaintenanceItemType],
        mailer: Optional[Mailer] = None,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.item_types = list(item_types)
        self.mailer = mailer
        self.config = config or Config()
        self.clock = clock

    def scan(self, now: Optional[datetime] = None) -> FleetScan:
        return scan_fleet(self.store, self.item_types, now or self.clock())

    def preview(self, now: Optional[datetime] = None) -> PreviewResult:
        """Compute the digests that would be sent. Touches nothing."""
        now = now or self.clock()
        fleet = self.scan(now)
        return PreviewResult(
            timestamp=now,
            digests=fleet.digests,
            skipped=fleet.skipped,
            errors=fleet.errors,
        )

    def execute(self, now: Optional[datetime] = None) -> ExecuteResult:
        """
        Send every due digest and commit the ledger.

        Raises ConfigError before touching any account if the mailer or
        unsubscribe secret is missing.
        """
        self.config.require("unsubscribe_secret")
        if self.mailer is None:
            raise ConfigError("No mail transport configured")

        now = now or self.clock()
        fleet = self.scan(now)
        result = ExecuteResult(timestamp=now, skipped=fleet.skipped, errors=fleet.errors)

        for scan in fleet.scans:
            self._apply_clears(scan, result)
            digest = scan.digest
            if digest is not None:
                self._send_digest(digest, now, result)

        logger.info(
            "Maintenance notifications: sent %d, failed %d, skipped %d",
            result.sent,
            result.failed,
            result.skipped,
        )
        return result

    def _apply_clears(self, scan: AccountScan, result: ExecuteResult) -> None:
        for vehicle_id, item_type in scan.clears:
            try:
                self.store.delete_ledger_entries(scan.account.id, vehicle_id, item_type)
            except StoreError as e:
                logger.warning(
                    "Failed to clear ledger for %s/%s/%s: %s",
                    scan.account.id,
                    vehicle_id,
                    item_type,
                    e,
                )
                result.errors.append(
                    f"Failed to clear ledger for {scan.account.id}/{vehicle_id}/{item_type}: {e}"
                )

    def _send_digest(self, digest: Digest, now: datetime, result: ExecuteResult) -> None:
        account = digest.account
        unsubscribe_url = build_unsubscribe_url(
            self.config.site_url, account.id, self.config.unsubscribe_secret
        )
        subject = build_subject(digest, self.config.app_name)
        html = render_html(digest, unsubscribe_url, self.config.site_url, self.config.app_name)

        send = self.mailer.send(
            digest.email,
            subject,
            html,
            headers={
                "List-Unsubscribe": f"<{unsubscribe_url}>",
                "List-Unsubscribe-Post": "List-Unsubscribe=One-Click",
            },
        )
        if not send.success:
            result.failed += 1
            logger.error("Failed to send to %s: %s", digest.email, send.error)
            result.errors.append(f"Failed to send to {digest.email}: {send.error}")
            return

        result.sent += 1
        for alert in digest.alerts:
            entry = LedgerEntry.from_key(alert.ledger_key, now)
            try:
                self.store.upsert_ledger_entry(entry)
            except StoreError as e:
                # The email went out but isn't recorded: next run resends it
                logger.critical(
                    "Sent alert not recorded, will be resent next run: %s/%s/%s (%s): %s",
                    alert.account_id,
                    alert.vehicle_id,
                    alert.item_type,
                    alert.status.label,
                    e,
                )
                result.errors.append(
                    f"Failed to record alert {alert.describe()} for {account.id}: {e}"
                )

        try:
            self.store.mark_notified(account.id, now)
        except StoreError as e:
            logger.error("Failed to update timestamp for %s: %s", account.id, e)
            result.errors.append(f"Failed to update timestamp for {account.id}: {e}")
