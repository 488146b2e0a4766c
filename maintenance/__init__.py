"""
Maintenance status and notification digest engine.

This package derives a health status for every (vehicle, item type) pair
and turns a fleet of statuses into deduplicated email digests:
- Status/Tier/Frequency: urgency levels, subscription tiers, repeat cadence
- MaintenanceItemType: renewal interval definitions (intervals.yaml)
- classify: time/distance status classification
- decide_action: ledger-driven alert/clear decision
- scan_fleet: statuses and alerts for every notifiable account
- NotificationJob: preview and execute runs
"""

from .status import Status, Tier, Frequency, most_urgent
from .errors import MaintenanceError, ConfigError, StoreError
from .item_type import MaintenanceItemType
from .service_record import ServiceRecord, latest_record
from .vehicle import Vehicle
from .account import Account
from .intervals import load_item_types
from .classifier import Classification, classify
from .ledger import Action, LedgerEntry, LedgerKey, decide_action
from .digest import AlertItem, Digest, build_subject, render_html
from .store import RecordStore, YamlRecordStore
from .scanner import scan_account, scan_fleet
from .mailer import Mailer, ResendMailer, SendResult
from .config import Config
from .job import NotificationJob, PreviewResult, ExecuteResult
from .validation import validate_fleet_file

__all__ = [
    "Status",
    "Tier",
    "Frequency",
    "most_urgent",
    "MaintenanceError",
    "ConfigError",
    "StoreError",
    "MaintenanceItemType",
    "ServiceRecord",
    "latest_record",
    "Vehicle",
    "Account",
    "load_item_types",
    "Classification",
    "classify",
    "Action",
    "LedgerEntry",
    "LedgerKey",
    "decide_action",
    "AlertItem",
    "Digest",
    "build_subject",
    "render_html",
    "RecordStore",
    "YamlRecordStore",
    "scan_account",
    "scan_fleet",
    "Mailer",
    "ResendMailer",
    "SendResult",
    "Config",
    "NotificationJob",
    "PreviewResult",
    "ExecuteResult",
    "validate_fleet_file",
]
