from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import AppConfig
from .failures import classify_failure
from .models import AnalysisResult, DispatchStatus, FailureKind, FailureReport, ServiceState
from .notifications import NotificationDispatcher, SmtpMailTransport
from .portal import (
    Authenticator,
    BrowserOptions,
    BrowserSession,
    PortalCredentials,
    StateAnalyzer,
    merge_results,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOutcome:
    exit_code: int
    state: ServiceState = ServiceState.UNKNOWN
    sync_timestamp: Optional[str] = None
    failure: Optional[FailureReport] = None
    notification: Optional[DispatchStatus] = None


def build_session(cfg: AppConfig, *, headless: Optional[bool] = None, slow_mo_ms: int = 0) -> BrowserSession:
    return BrowserSession(
        BrowserOptions(
            headless=cfg.portal.headless if headless is None else headless,
            slow_mo_ms=slow_mo_ms,
        )
    )


def build_authenticator(cfg: AppConfig, *, simulate_timeout: Optional[bool] = None) -> Authenticator:
    return Authenticator(
        base_url=cfg.portal.base_url,
        creds=PortalCredentials(username=cfg.portal.username, password=cfg.portal.password),
        simulate_timeout=cfg.portal.simulate_timeout if simulate_timeout is None else simulate_timeout,
        navigation_timeout_ms=cfg.portal.navigation_timeout_ms,
    )


def build_dispatcher(cfg: AppConfig) -> NotificationDispatcher:
    return NotificationDispatcher(
        SmtpMailTransport(cfg.smtp),
        sender=cfg.smtp.from_addr,
        recipients=cfg.smtp.recipients,
        service_name=cfg.portal.service_name,
        report_timezone=cfg.report.timezone,
    )


def analyze_page(session: Any, analyzer: StateAnalyzer) -> AnalysisResult:
    """
    Run both classifiers (content first, then elements) and merge them.
    """
    content = analyzer.analyze_content(session)
    logger.info("Searching status elements")
    elements = analyzer.analyze_elements(session)

    final = merge_results(content, elements)
    if final.found:
        logger.info(
            "Summary: service %s, last sync %s",
            final.state.value.upper(),
            final.sync_timestamp or "not found",
        )
    else:
        logger.warning("Summary: could not determine the service state")
    return final


class MonitorRun:
    """
    One monitoring pass: login, classify, and alert when warranted.

    Alerts go out only for a timeout while reaching the portal (error variant) or an INACTIVE
    service (state variant). Fatal errors propagate after the session and transport are closed.
    """

    def __init__(
        self,
        *,
        session: Any,
        authenticator: Authenticator,
        analyzer: StateAnalyzer,
        dispatcher: NotificationDispatcher,
        debug_dir: Optional[str] = "data/debug",
        post_login_timeout_ms: int = 15_000,
    ) -> None:
        self.session = session
        self.authenticator = authenticator
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.debug_dir = debug_dir
        self.post_login_timeout_ms = post_login_timeout_ms

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        headless: Optional[bool] = None,
        simulate_timeout: Optional[bool] = None,
        slow_mo_ms: int = 0,
    ) -> "MonitorRun":
        return cls(
            session=build_session(cfg, headless=headless, slow_mo_ms=slow_mo_ms),
            authenticator=build_authenticator(cfg, simulate_timeout=simulate_timeout),
            analyzer=StateAnalyzer(service_name=cfg.portal.service_name),
            dispatcher=build_dispatcher(cfg),
            debug_dir=cfg.debug.dir if cfg.debug.save_artifacts else None,
        )

    def execute(self) -> RunOutcome:
        try:
            return self._execute()
        finally:
            self.dispatcher.close()
            self.session.close()

    def _execute(self) -> RunOutcome:
        if not self.session.initialize():
            logger.error("Browser could not be initialized")
            return RunOutcome(exit_code=1)

        logger.info("--- Phase 1: login ---")
        try:
            logged_in = self.authenticator.authenticate(self.session)
        except Exception as exc:
            report = classify_failure(exc)
            if report.kind is FailureKind.FATAL:
                logger.error("Login aborted by an unexpected error: %s", exc)
                raise
            return self._handle_timeout(report)

        if not logged_in:
            logger.error("Login failed; cannot continue")
            self._save_debug("login_failed")
            return RunOutcome(exit_code=1)

        if not self.session.wait_for_load(self.post_login_timeout_ms):
            logger.info("No pending navigation after login; continuing")

        logger.info("--- Phase 2: analysis ---")
        final = analyze_page(self.session, self.analyzer)

        logger.info("--- Phase 3: notification ---")
        status: Optional[DispatchStatus] = None
        if final.state is ServiceState.INACTIVE:
            logger.warning("Service INACTIVE; sending alert e-mail")
            status = self.dispatcher.dispatch_state_alert(final)
            if status is not DispatchStatus.DELIVERED:
                logger.warning("Alert e-mail was not delivered (%s); check the SMTP settings", status.value)
        elif final.state is ServiceState.ACTIVE:
            logger.info("Service ACTIVE; no e-mail sent (alerts only go out when inactive)")
        else:
            logger.warning("Service state unknown; no e-mail sent")
            self._save_debug("unknown_state")

        logger.info("Run completed")
        return RunOutcome(
            exit_code=0,
            state=final.state,
            sync_timestamp=final.sync_timestamp,
            notification=status,
        )

    def _handle_timeout(self, report: FailureReport) -> RunOutcome:
        logger.error("Portal unreachable or timed out: %s", report.message)
        self._save_debug("connection_timeout")

        logger.info("Sending connectivity alert e-mail")
        status = self.dispatcher.dispatch_error_alert(report)
        if status is DispatchStatus.DELIVERED:
            logger.info("Connectivity alert sent")
        else:
            logger.warning("Connectivity alert was not delivered (%s)", status.value)
        return RunOutcome(exit_code=1, failure=report, notification=status)

    def _save_debug(self, name_prefix: str) -> None:
        if self.debug_dir:
            self.session.save_debug(self.debug_dir, name_prefix)
