from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Iterable

logger = logging.getLogger(__name__)


class SmtpNotifier:
    def __init__(self, sender: str, host: str = "localhost", port: int = 25, timeout: int = 60):
        self.sender = sender
        self.host = host
        self.port = port
        self.timeout = timeout

    def send(self, report: str, recipients: Iterable[str], subject: str) -> None:
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [r for r in recipients if r]
        if not recipients:
            logger.info("No notification recipients configured; report not sent")
            return

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.set_content(report)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.send_message(msg)
        logger.info("Sent report '%s' to %s", subject, ", ".join(recipients))


def notifier_from_config(cfg) -> SmtpNotifier:
    n = cfg.notification
    return SmtpNotifier(sender=n.sender, host=n.smtp_host, port=n.smtp_port)
