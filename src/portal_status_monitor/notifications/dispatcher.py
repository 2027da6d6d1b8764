from __future__ import annotations

import logging
import smtplib
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..config import DEFAULT_REPORT_TIMEZONE, DEFAULT_SERVICE_NAME
from ..models import AnalysisResult, DispatchStatus, FailureReport, NotificationPayload
from ..util.dates import format_report_timestamp
from .templates import build_error_alert, build_state_alert


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Renders and delivers alert e-mails through a mail transport.

    The transport is verified lazily, once, before the first send. A missing recipient list or a
    transport that fails verification yields SKIPPED; a failed send yields FAILED. Neither raises.
    """

    def __init__(
        self,
        transport: Any,
        *,
        sender: str,
        recipients: Iterable[str],
        service_name: str = DEFAULT_SERVICE_NAME,
        report_timezone: str = DEFAULT_REPORT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.transport = transport
        self.sender = sender
        self.recipients = tuple(recipients)
        self.service_name = service_name
        self.report_timezone = report_timezone
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._verified = False

    def dispatch_state_alert(self, result: AnalysisResult) -> DispatchStatus:
        payload = build_state_alert(
            result,
            service_name=self.service_name,
            recipients=self.recipients,
            generated_at=format_report_timestamp(self._clock(), self.report_timezone),
        )
        return self._deliver(payload)

    def dispatch_error_alert(self, report: FailureReport) -> DispatchStatus:
        payload = build_error_alert(
            report,
            service_name=self.service_name,
            recipients=self.recipients,
            generated_at=format_report_timestamp(report.occurred_at, self.report_timezone),
        )
        return self._deliver(payload)

    def _ensure_verified(self) -> bool:
        if not self._verified:
            self._verified = bool(self.transport.verify())
        return self._verified

    def _deliver(self, payload: NotificationPayload) -> DispatchStatus:
        if not payload.recipients:
            logger.error("No recipients configured (EMAIL_RECIPIENTS); skipping %s e-mail", payload.kind)
            return DispatchStatus.SKIPPED

        if not self._ensure_verified():
            logger.error("Mail transport could not be verified; skipping %s e-mail", payload.kind)
            return DispatchStatus.SKIPPED

        logger.info("Sending %s e-mail to %d recipient(s)", payload.kind, len(payload.recipients))
        try:
            message_id = self.transport.send(payload, self.sender)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %s e-mail: %s", payload.kind, e)
            return DispatchStatus.FAILED

        logger.info("E-mail sent (message_id=%s, recipients=%s)", message_id, ", ".join(payload.recipients))
        return DispatchStatus.DELIVERED

    def close(self) -> None:
        self.transport.close()
        self._verified = False
