"""Digest assembly and rendering: one outbound message per account."""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from .account import Account
from .ledger import Action, LedgerKey
from .status import Frequency, Status

_env = Environment(
    loader=PackageLoader("maintenance", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class AlertItem:
    """One item on one vehicle that is due an alert."""

    account_id: str
    vehicle_id: str
    vehicle_label: str
    item_type: str
    label: str
    status: Status
    detail: str = ""
    action: Action = Action.ALERT

    @property
    def ledger_key(self) -> LedgerKey:
        return LedgerKey(self.account_id, self.vehicle_id, self.item_type, self.status)

    def describe(self) -> str:
        return f"{self.vehicle_label}: {self.label} ({self.status.label})"


class Digest:
    """All alerts for one account, sent as a single message."""

    def __init__(self, account: Account, alerts: List[AlertItem]):
        self.account = account
        self.alerts = alerts

    @property
    def email(self) -> Optional[str]:
        return self.account.email

    @property
    def overdue(self) -> List[AlertItem]:
        return [a for a in self.alerts if a.status == Status.OVERDUE]

    @property
    def warnings(self) -> List[AlertItem]:
        return [a for a in self.alerts if a.status == Status.WARNING]

    @property
    def overdue_count(self) -> int:
        return len(self.overdue)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def to_preview(self) -> dict:
        """Preview representation, as returned by the cron preview endpoint."""
        return {
            "userId": self.account.id,
            "email": self.email,
            "plan": self.account.tier.value,
            "overdueCount": self.overdue_count,
            "warningCount": self.warning_count,
            "alerts": [a.describe() for a in self.alerts],
        }


def group_by_vehicle(alerts: List[AlertItem]) -> Dict[str, List[AlertItem]]:
    """Group alerts by vehicle label, keeping first-seen order."""
    grouped: Dict[str, List[AlertItem]] = OrderedDict()
    for alert in alerts:
        grouped.setdefault(alert.vehicle_label, []).append(alert)
    return grouped


def summary_name(account: Account) -> str:
    """'Daily', 'Weekly' or 'Monthly'. Free accounts are always weekly."""
    frequency = account.frequency if account.tier.is_paid else Frequency.WEEKLY
    return frequency.name.capitalize()


def build_subject(digest: Digest, app_name: str = "FleetReq") -> str:
    """Subject line with overdue/upcoming counts, e.g. '2 overdue, 1 upcoming - ...'."""
    parts = []
    if digest.overdue_count:
        parts.append(f"{digest.overdue_count} overdue")
    if digest.warning_count:
        parts.append(f"{digest.warning_count} upcoming")
    return f"{', '.join(parts)} - {app_name} {summary_name(digest.account)} Summary"


def render_html(
    digest: Digest,
    unsubscribe_url: str,
    site_url: str,
    app_name: str = "FleetReq",
) -> str:
    """Render the HTML body for a digest."""
    site_url = site_url.rstrip("/")
    template = _env.get_template("digest.html")
    return template.render(
        app_name=app_name,
        summary_name=summary_name(digest.account),
        overdue=group_by_vehicle(digest.overdue),
        warnings=group_by_vehicle(digest.warnings),
        show_upgrade=not digest.account.tier.is_paid,
        dashboard_url=f"{site_url}/dashboard",
        pricing_url=f"{site_url}/pricing",
        unsubscribe_url=unsubscribe_url,
    )
