"""Account class: notification preferences and plan for one user."""

from datetime import datetime
from typing import Optional

from .status import Frequency, Tier


class Account:
    """A user account as seen by the notification job."""

    def __init__(
        self,
        id: str,
        email: Optional[str] = None,
        tier: Tier = Tier.FREE,
        notifications_enabled: bool = False,
        frequency: Frequency = Frequency.WEEKLY,
        warning_enabled: bool = True,
        last_notification_sent_at: Optional[datetime] = None,
    ):
        self.id = id
        self.email = email
        self.tier = tier
        self.notifications_enabled = notifications_enabled
        self.frequency = frequency
        self.warning_enabled = warning_enabled
        self.last_notification_sent_at = last_notification_sent_at

    @property
    def wants_warnings(self) -> bool:
        """Warnings are a paid feature and can be switched off."""
        return self.tier.is_paid and self.warning_enabled
