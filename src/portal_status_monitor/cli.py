from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .logging_config import configure_from_config, configure_logging
from .models import AnalysisResult, DispatchStatus, ServiceState
from .portal import StateAnalyzer
from .runner import MonitorRun, analyze_page, build_authenticator, build_dispatcher, build_session
from .util.dates import format_report_timestamp


logger = logging.getLogger("portal_status_monitor")


def _add_browser_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    p.add_argument("--headful", action="store_true", help="Show the browser window (overrides HEADLESS)")
    p.add_argument("--slowmo-ms", type=int, default=0, help="Playwright slow motion in milliseconds (debug).")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="portal_status_monitor")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Log into the portal, read the service status and e-mail an alert if needed")
    _add_browser_args(run)
    run.add_argument(
        "--simulate-timeout",
        action="store_true",
        help="Raise a simulated timeout during login to test the connectivity alert e-mail (same as SIMULATE_TIMEOUT=true).",
    )

    login = sub.add_parser("login", help="Only log into the portal (checks credentials and selectors)")
    _add_browser_args(login)

    analyze = sub.add_parser("analyze", help="Log in and print the detected service status; never sends e-mail")
    _add_browser_args(analyze)

    test_email = sub.add_parser("test-email", help="Send a sample status report to EMAIL_RECIPIENTS")
    test_email.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")

    return p


def _load(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    configure_from_config(cfg.logging)
    return cfg


def _print_result(result: AnalysisResult) -> None:
    print(f"state: {result.state.value}")
    print(f"last sync: {result.sync_timestamp or '-'}")
    print(f"signals: {', '.join(result.matched_signals) or '-'}")
    for key, value in sorted(result.diagnostics.items()):
        print(f"  {key}: {value}")


def _login_only(cfg: AppConfig, args: argparse.Namespace, *, analyze: bool) -> int:
    session = build_session(cfg, headless=False if args.headful else None, slow_mo_ms=args.slowmo_ms)
    if not session.initialize():
        logger.error("Browser could not be initialized")
        return 1
    try:
        if not build_authenticator(cfg, simulate_timeout=False).authenticate(session):
            logger.error("Login failed")
            return 1
        if not analyze:
            return 0

        session.wait_for_load(15_000)
        result = analyze_page(session, StateAnalyzer(service_name=cfg.portal.service_name))
        _print_result(result)
        return 0
    finally:
        session.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"), quiet_level=os.getenv("NOISY_LOG_LEVEL", "WARNING"))

    if args.cmd == "run":
        cfg = _load(args)
        logger.info("Starting monitoring run (portal=%s service=%s)", cfg.portal.base_url, cfg.portal.service_name)
        outcome = MonitorRun.from_config(
            cfg,
            headless=False if args.headful else None,
            simulate_timeout=True if args.simulate_timeout else None,
            slow_mo_ms=args.slowmo_ms,
        ).execute()
        logger.info(
            "Run finished (exit=%d state=%s notification=%s)",
            outcome.exit_code,
            outcome.state.value,
            outcome.notification.value if outcome.notification else "none",
        )
        return outcome.exit_code

    if args.cmd == "login":
        return _login_only(_load(args), args, analyze=False)

    if args.cmd == "analyze":
        return _login_only(_load(args), args, analyze=True)

    if args.cmd == "test-email":
        cfg = _load(args)
        dispatcher = build_dispatcher(cfg)
        sample = AnalysisResult(
            strategy="combined",
            state=ServiceState.ACTIVE,
            sync_timestamp=format_report_timestamp(tz_name=cfg.report.timezone).replace(",", ""),
        )
        try:
            status = dispatcher.dispatch_state_alert(sample)
        finally:
            dispatcher.close()
        if status is not DispatchStatus.DELIVERED:
            logger.error("Test e-mail not delivered (%s)", status.value)
            return 1
        logger.info("Test e-mail delivered")
        return 0

    raise SystemExit(f"Unknown command: {args.cmd}")
