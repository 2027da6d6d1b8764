from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from .models import FailureKind, FailureReport


logger = logging.getLogger(__name__)

SIMULATED_TIMEOUT_MARKER = "Simulated timeout"

# Substrings that mark a connectivity problem rather than a bug or a portal change.
TIMEOUT_MARKERS: tuple[str, ...] = (
    "Navigation timeout",
    "net::ERR",
    "Protocol error",
    SIMULATED_TIMEOUT_MARKER,
)


class SimulatedTimeoutError(TimeoutError):
    """
    Raised during login when SIMULATE_TIMEOUT is enabled, to drill the error-alert path.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message or f"{SIMULATED_TIMEOUT_MARKER}: portal did not respond (SIMULATE_TIMEOUT=true)")


def is_timeout_error(exc: BaseException) -> bool:
    message = str(exc)
    if "timeout" in message.lower():
        return True
    if any(marker in message for marker in TIMEOUT_MARKERS):
        return True
    # Playwright's TimeoutError and the builtin share the name.
    return type(exc).__name__ == "TimeoutError"


def classify_failure(exc: BaseException, *, now: Optional[datetime] = None) -> FailureReport:
    """
    Classify an error raised while reaching or logging into the portal.

    Only classifies; FATAL errors must still be re-raised by the caller.
    """
    kind = FailureKind.TIMEOUT if is_timeout_error(exc) else FailureKind.FATAL
    report = FailureReport(
        kind=kind,
        message=str(exc),
        error_type=type(exc).__name__,
        occurred_at=now or datetime.now(timezone.utc),
    )
    logger.info("Classified %s as %s: %s", report.error_type, kind.value, report.message)
    return report
