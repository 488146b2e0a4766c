#!/usr/bin/env python3
"""
Command-line runner for maintenance notifications.

Commands:
  status    - Show every item's status for each notifiable account
  preview   - Show the digests that would be sent (no side effects)
  execute   - Send digests and update the notification ledger
  validate  - Check a fleet data file against the schema
"""

import argparse
import sys
from datetime import date, datetime, time, timezone
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from maintenance import (
    Config,
    ConfigError,
    NotificationJob,
    ResendMailer,
    Status,
    YamlRecordStore,
    load_item_types,
    validate_fleet_file,
)
from maintenance.classifier import Classification
from maintenance.logging_config import setup_logging
from maintenance.scanner import VehicleStatus

# =============================================================================
# Formatting helpers
# =============================================================================


def format_miles(miles: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{miles:,.0f}" if miles is not None else "-"


def format_status(status: Status) -> str:
    """Format a status for display."""
    return status.label.upper()


def format_timestamp(ts: Optional[datetime]) -> str:
    """Format a notification timestamp for display."""
    if ts is None:
        return "never"
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def parse_as_of(value: Optional[str]) -> Optional[datetime]:
    """Turn a YYYY-MM-DD argument into a UTC timestamp at midnight."""
    if not value:
        return None
    return datetime.combine(date.fromisoformat(value), time(), tzinfo=timezone.utc)


def make_status_table(items: List[Classification]) -> List[List[str]]:
    """Convert classifications to table rows, most urgent first."""
    rows = []
    for result in sorted(items, key=lambda c: (c.status.value, c.item_type.key)):
        rows.append(
            [result.item_type.label, format_status(result.status), result.detail or "-"]
        )
    return rows


def print_vehicle_status(vehicle_status: VehicleStatus, show_unknown: bool) -> None:
    vehicle = vehicle_status.vehicle
    items = vehicle_status.items
    if not show_unknown:
        items = [c for c in items if c.status != Status.UNKNOWN]
    print(f"  {vehicle.label} ({format_miles(vehicle.current_odometer)} mi)")
    if not items:
        print("    No service history.")
        return
    table = tabulate(
        make_status_table(items), headers=["Item", "Status", "Detail"], tablefmt="simple"
    )
    for line in table.splitlines():
        print(f"    {line}")


# =============================================================================
# Commands
# =============================================================================


def build_job(args, config: Config, send: bool = False) -> NotificationJob:
    item_types = load_item_types(args.intervals or config.intervals_file)
    mailer = None
    if send:
        config.require("resend_api_key", "mail_from")
        mailer = ResendMailer(config.resend_api_key, config.mail_from)
    return NotificationJob(YamlRecordStore(args.data_file), item_types, mailer, config)


def cmd_status(args, config: Config):
    """Show every item's status for each notifiable account."""
    job = build_job(args, config)
    fleet = job.scan(parse_as_of(args.as_of) or job.clock())

    for scan in fleet.scans:
        account = scan.account
        print(f"Account: {account.id} <{account.email}> [{account.tier.value}]")
        print(f"  Last notified: {format_timestamp(account.last_notification_sent_at)}")
        if not scan.vehicles:
            print("  No vehicles.")
        for vehicle_status in scan.vehicles:
            print_vehicle_status(vehicle_status, args.show_unknown)
        print()

    for error in fleet.errors:
        print(f"Error: {error}")
    return 0


def cmd_preview(args, config: Config):
    """Show the digests that would be sent."""
    job = build_job(args, config)
    result = job.preview(parse_as_of(args.as_of))

    print(f"Emails to send: {len(result.digests)}")
    print(f"Skipped users: {result.skipped}")
    print()

    for digest in result.digests:
        print(
            f"{digest.email} [{digest.account.tier.value}]: "
            f"{digest.overdue_count} overdue, {digest.warning_count} upcoming"
        )
        rows = [
            [a.vehicle_label, a.label, format_status(a.status), a.detail or "-", a.action.value]
            for a in digest.alerts
        ]
        print(
            tabulate(
                rows,
                headers=["Vehicle", "Item", "Status", "Detail", "Action"],
                tablefmt="simple",
            )
        )
        print()

    for error in result.errors:
        print(f"Error: {error}")
    return 0


def cmd_execute(args, config: Config):
    """Send digests and commit the ledger."""
    job = build_job(args, config, send=True)
    result = job.execute(parse_as_of(args.as_of))

    print(f"Sent: {result.sent}")
    print(f"Failed: {result.failed}")
    print(f"Skipped users: {result.skipped}")
    for error in result.errors:
        print(f"Error: {error}")
    return 1 if result.failed else 0


def cmd_validate(args, config: Config):
    """Validate the fleet data file and the interval table."""
    all_valid = True

    errors = validate_fleet_file(args.data_file)
    if errors:
        print(f"FAIL: {args.data_file.name}")
        for error in errors:
            print(f"  {error}")
        all_valid = False
    else:
        print(f"OK: {args.data_file.name}")

    try:
        item_types = load_item_types(args.intervals or config.intervals_file)
        print(f"OK: interval table ({len(item_types)} item types)")
    except ConfigError as e:
        print("FAIL: interval table")
        print(f"  {e}")
        all_valid = False

    return 0 if all_valid else 1


# =============================================================================
# Main
# =============================================================================


def main():
    parser = argparse.ArgumentParser(description="Maintenance notification runner")
    parser.add_argument(
        "data_file",
        type=Path,
        help="Path to fleet YAML file (e.g., fleet.yaml)",
    )
    parser.add_argument(
        "--intervals",
        type=Path,
        help="Interval table YAML (default: bundled table)",
    )
    parser.add_argument(
        "--as-of",
        type=str,
        help="Evaluate as of date YYYY-MM-DD (default: now)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser(
        "status", help="Show every item's status for each notifiable account"
    )
    status_parser.add_argument(
        "--show-unknown",
        action="store_true",
        help="Include item types with no service history",
    )
    subparsers.add_parser("preview", help="Show digests that would be sent")
    subparsers.add_parser("execute", help="Send digests and update the ledger")
    subparsers.add_parser("validate", help="Validate the fleet file and interval table")

    args = parser.parse_args()

    # Validate data file exists
    if not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    config = Config.from_env()
    setup_logging(config.log_level)

    commands = {
        "status": cmd_status,
        "preview": cmd_preview,
        "execute": cmd_execute,
        "validate": cmd_validate,
    }
    try:
        return commands[args.command](args, config)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
