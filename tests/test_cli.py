from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from fakes import FakeTransport, login_page_session
from portal_status_monitor import cli, runner
from portal_status_monitor.notifications import NotificationDispatcher
from portal_status_monitor.notifications.templates import CONNECTIVITY_ERROR, STATE_ALERT


@pytest.fixture(autouse=True)
def _reset_logging():
    # main() installs root handlers bound to the captured streams and the tmp log file.
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def cli_env(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    clean_env.setenv("PORTAL_USERNAME", "u@example.com")
    clean_env.setenv("PORTAL_PASSWORD", "p")
    clean_env.setenv("EMAIL_RECIPIENTS", "ops@example.com")
    clean_env.setenv("SMTP_FROM", "monitor@example.com")
    clean_env.setenv("LOG_FILE", str(tmp_path / "monitor.log"))
    clean_env.setenv("DEBUG_DIR", str(tmp_path / "debug"))
    clean_env.chdir(tmp_path)
    return clean_env


def _install_transport(monkeypatch: pytest.MonkeyPatch, transport: FakeTransport) -> None:
    def fake_build_dispatcher(cfg):
        return NotificationDispatcher(
            transport,
            sender=cfg.smtp.from_addr,
            recipients=cfg.smtp.recipients,
            service_name=cfg.portal.service_name,
            report_timezone=cfg.report.timezone,
            clock=lambda: datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
        )

    monkeypatch.setattr(cli, "build_dispatcher", fake_build_dispatcher)
    monkeypatch.setattr(runner, "build_dispatcher", fake_build_dispatcher)


def test_test_email_delivers(cli_env: pytest.MonkeyPatch) -> None:
    transport = FakeTransport()
    _install_transport(cli_env, transport)

    assert cli.main(["test-email"]) == 0
    payload, sender = transport.sent[0]
    assert payload.kind == STATE_ALERT
    assert payload.subject == "[Tango Tiendas] Estado del Servicio: ACTIVO"
    assert sender == "monitor@example.com"
    assert transport.closed


def test_test_email_reports_skipped(cli_env: pytest.MonkeyPatch) -> None:
    _install_transport(cli_env, FakeTransport(verify_ok=False))
    assert cli.main(["test-email"]) == 1


def test_run_with_simulated_timeout_sends_error_alert(cli_env: pytest.MonkeyPatch) -> None:
    transport = FakeTransport()
    session = login_page_session()
    _install_transport(cli_env, transport)
    cli_env.setattr(runner, "build_session", lambda cfg, **kwargs: session)

    assert cli.main(["run", "--simulate-timeout"]) == 1
    assert transport.sent[0][0].kind == CONNECTIVITY_ERROR
    assert session.navigations == []
    assert session.closed


def test_run_active_exits_0(cli_env: pytest.MonkeyPatch) -> None:
    transport = FakeTransport()
    session = login_page_session(markup='<div class="alert alert-success">se encuentra activo</div>')
    _install_transport(cli_env, transport)
    cli_env.setattr(runner, "build_session", lambda cfg, **kwargs: session)

    assert cli.main(["run"]) == 0
    assert transport.sent == []


def test_analyze_prints_state(cli_env: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    session = login_page_session(markup='<div class="alert alert-danger">se encuentra inactivo 15/03/2024 09:30:00</div>')
    cli_env.setattr(cli, "build_session", lambda cfg, **kwargs: session)

    assert cli.main(["analyze"]) == 0
    out = capsys.readouterr().out
    assert "state: inactive" in out
    assert "last sync: 15/03/2024 09:30:00" in out
    assert session.closed


def test_login_failure_exits_1(cli_env: pytest.MonkeyPatch) -> None:
    session = login_page_session()
    session.visible.clear()
    cli_env.setattr(cli, "build_session", lambda cfg, **kwargs: session)
    assert cli.main(["login"]) == 1
