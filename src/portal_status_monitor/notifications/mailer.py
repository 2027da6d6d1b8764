from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

from ..config import SmtpConfig
from ..models import NotificationPayload


logger = logging.getLogger(__name__)


class SmtpMailTransport:
    """
    SMTP delivery with one authenticated connection per run.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS when the server offers it.
    """

    def __init__(self, cfg: SmtpConfig) -> None:
        self.cfg = cfg
        self._client: Optional[smtplib.SMTP] = None

    def verify(self) -> bool:
        if not self.cfg.is_complete:
            logger.error("SMTP configuration incomplete (need SMTP_HOST, SMTP_USER, SMTP_PASS and SMTP_FROM)")
            return False
        if self._client is not None:
            return True

        try:
            self._client = self._connect()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP verification failed (%s:%s): %s", self.cfg.host, self.cfg.port, e)
            return False

        logger.info("SMTP connection verified (%s:%s)", self.cfg.host, self.cfg.port)
        return True

    def _connect(self) -> smtplib.SMTP:
        cfg = self.cfg
        context = ssl.create_default_context()
        client: smtplib.SMTP
        if cfg.use_ssl:
            client = smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout_seconds, context=context)
        else:
            client = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds)
        try:
            client.ehlo()
            if not cfg.use_ssl and client.has_extn("starttls"):
                client.starttls(context=context)
                client.ehlo()
            client.login(cfg.user, cfg.password)
        except (smtplib.SMTPException, OSError):
            client.close()
            raise
        return client

    def send(self, payload: NotificationPayload, sender: str) -> str:
        if self._client is None:
            raise RuntimeError("SMTP transport is not verified; call verify() first.")

        msg = EmailMessage()
        msg["Subject"] = payload.subject
        msg["From"] = sender
        msg["To"] = ", ".join(payload.recipients)
        msg["Message-ID"] = make_msgid()
        msg.set_content(payload.text_body)
        msg.add_alternative(payload.html_body, subtype="html")

        self._client.send_message(msg)
        return str(msg["Message-ID"])

    def close(self) -> None:
        if self._client is None:
            return
        try:
            self._client.quit()
        except (smtplib.SMTPException, OSError):
            logger.debug("SMTP quit failed.", exc_info=True)
        self._client = None
