"""Runtime configuration from environment variables."""

import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

# Config field -> environment variable
ENV_VARS = {
    "cron_secret": "CRON_SECRET",
    "data_file": "FLEET_DATA_FILE",
    "intervals_file": "INTERVALS_FILE",
    "resend_api_key": "RESEND_API_KEY",
    "mail_from": "MAIL_FROM",
    "unsubscribe_secret": "UNSUBSCRIBE_SECRET",
    "site_url": "SITE_URL",
    "app_name": "APP_NAME",
    "log_level": "LOG_LEVEL",
}


@dataclass
class Config:
    cron_secret: Optional[str] = None
    data_file: Optional[str] = None
    intervals_file: Optional[str] = None
    resend_api_key: Optional[str] = None
    mail_from: Optional[str] = "FleetReq <onboarding@resend.dev>"
    unsubscribe_secret: Optional[str] = None
    site_url: str = "https://fleetreq.vercel.app"
    app_name: str = "FleetReq"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Config":
        """Build a Config from the environment, reading .env first if present."""
        if load_dotenv_file:
            load_dotenv()
        values = {}
        for f in fields(cls):
            raw = os.environ.get(ENV_VARS[f.name])
            if raw:
                values[f.name] = raw
        return cls(**values)

    def require(self, *names: str) -> None:
        """Raise ConfigError naming every listed setting that is empty."""
        missing = [ENV_VARS[n] for n in names if not getattr(self, n)]
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")
