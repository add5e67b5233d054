"""Resend email adapter: delivers broadcasts through the Resend HTTP API."""

import os

import requests

from newsletter.channel.email_port import EmailPort
from newsletter.domain import logger

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailAdapter(EmailPort):
    def __init__(self, api_key: str | None = None, from_email: str | None = None, timeout: float = 10.0):
        self.api_key = api_key or os.environ.get("RESEND_API_KEY", "")
        self.from_email = from_email or os.environ.get("BROADCAST_FROM_EMAIL", "")
        self.timeout = timeout
        self.session = requests.Session()

    def send(self, to: str, subject: str, html: str) -> dict:
        if not self.api_key or not self.from_email:
            return {"message_id": None, "status": "failed", "error": "Email transport is not configured"}

        try:
            response = self.session.post(
                RESEND_API_URL,
                json={"from": self.from_email, "to": [to], "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Resend request failed", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.status_code >= 400:
            return {
                "message_id": None,
                "status": "failed",
                "error": f"Resend returned {response.status_code}: {response.text[:200]}",
            }

        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass
        return {"message_id": message_id, "status": "sent"}
