"""Outbound mail transport."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class SendResult:
    success: bool
    error: Optional[str] = None


class Mailer(ABC):
    """Sends one message and reports whether it was accepted."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        html: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> SendResult:
        ...


class ResendMailer(Mailer):
    """Mailer backed by the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self.api_key = api_key
        self.sender = sender
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, to, subject, html, headers=None) -> SendResult:
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if headers:
            payload["headers"] = headers

        try:
            response = self.session.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return SendResult(False, f"Resend request failed: {e}")

        if not response.ok:
            return SendResult(False, f"Resend {response.status_code}: {response.text}")
        logger.debug("Sent '%s' to %s", subject, to)
        return SendResult(True)
