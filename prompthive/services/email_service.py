"""Mock mail delivery for welcome and password reset messages.

Nothing leaves the machine: each message is appended as one line to
``EMAIL_LOG_FILE`` and logged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from prompthive.core.config import settings


logger = logging.getLogger("prompthive.services.email")


class EmailService:
    """Writes outgoing mail to a log file instead of sending it."""

    def __init__(self, log_file: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self.log_file = Path(log_file or settings.EMAIL_LOG_FILE)
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")

    def _append(self, line: str) -> bool:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as fh:
                fh.write(f"[{timestamp}] {line}\n")
        except OSError as exc:
            # Mail is best effort; registration must not fail on it
            logger.error("Failed to write email log %s: %s", self.log_file, exc)
            return False
        return True

    def reset_link(self, token: str) -> str:
        return f"{self.base_url}/reset-password?token={token}"

    def send_welcome_email(self, to_email: str) -> bool:
        sent = self._append(f"[WELCOME EMAIL] To: {to_email} | Subject: Welcome to PromptHive!")
        if sent:
            logger.info("[Mock Email] Welcome email sent to %s", to_email)
        return sent

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        sent = self._append(f"[RESET PASSWORD] To: {to_email} | Link: {self.reset_link(token)}")
        if sent:
            logger.info("[Mock Email] Reset email sent to %s", to_email)
        return sent


email_service = EmailService()
