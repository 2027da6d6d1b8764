from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from portal_status_monitor.config import DEFAULT_BASE_URL, DEFAULT_REPORT_TIMEZONE, load_config, parse_recipients


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def _portal_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTAL_USERNAME", "u@example.com")
    monkeypatch.setenv("PORTAL_PASSWORD", "p")


def test_env_only_config(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    clean_env.setenv("SMTP_HOST", "smtp.example.com")
    clean_env.setenv("SMTP_USER", "mailer")
    clean_env.setenv("SMTP_PASS", "secret")
    clean_env.setenv("SMTP_FROM", "monitor@example.com")
    clean_env.setenv("EMAIL_RECIPIENTS", "a@x.com, b@x.com")

    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.portal.base_url == DEFAULT_BASE_URL
    assert cfg.portal.service_name == "Tango Tiendas"
    assert cfg.portal.headless is True
    assert cfg.portal.simulate_timeout is False
    assert cfg.smtp.port == 587
    assert cfg.smtp.use_ssl is False
    assert cfg.smtp.is_complete
    assert cfg.smtp.recipients == ["a@x.com", "b@x.com"]
    assert cfg.report.timezone == DEFAULT_REPORT_TIMEZONE
    assert cfg.logging.file_path == "data/monitor.log"
    assert cfg.debug.dir == "data/debug"


def test_password_not_in_repr(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    clean_env.setenv("PORTAL_PASSWORD", "hunter2")
    cfg = load_config(tmp_path / "missing.yaml")
    assert "hunter2" not in repr(cfg.portal)


def test_parse_recipients() -> None:
    assert parse_recipients(" a@x.com ,, b@x.com ,") == ["a@x.com", "b@x.com"]
    assert parse_recipients(["a@x.com", " a@x.com "]) == ["a@x.com", "a@x.com"]
    assert parse_recipients("") == []
    assert parse_recipients(None) == []


def test_env_flags(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    clean_env.setenv("HEADLESS", "false")
    clean_env.setenv("SIMULATE_TIMEOUT", "true")
    clean_env.setenv("SMTP_PORT", "465")
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.portal.headless is False
    assert cfg.portal.simulate_timeout is True
    assert cfg.smtp.port == 465
    assert cfg.smtp.use_ssl is True


def test_yaml_overrides_env_and_expands_vars(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    clean_env.setenv("ALERT_LIST", "ops@example.com")
    cfg_path = _write(
        tmp_path,
        "cfg.yaml",
        """
portal:
  base_url: "https://tiendas.example.com/"
  service_name: "Mi Tienda"
smtp:
  recipients:
    - "${ALERT_LIST}"
    - "boss@example.com"
report:
  timezone: "UTC"
""",
    )
    cfg = load_config(cfg_path)
    assert cfg.portal.base_url == "https://tiendas.example.com"
    assert cfg.portal.service_name == "Mi Tienda"
    # untouched keys still come from env
    assert cfg.portal.username == "u@example.com"
    assert cfg.smtp.recipients == ["ops@example.com", "boss@example.com"]
    assert cfg.report.timezone == "UTC"


def test_missing_credentials_rejected(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("PORTAL_USERNAME", "u")
    with pytest.raises(ValidationError, match="PORTAL_PASSWORD"):
        load_config(tmp_path / "missing.yaml")


def test_base_url_must_be_absolute(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    clean_env.setenv("PORTAL_BASE_URL", "tiendas.axoft.com")
    with pytest.raises(ValidationError, match="full URL"):
        load_config(tmp_path / "missing.yaml")


def test_empty_yaml_file_is_ignored(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _portal_env(clean_env)
    cfg = load_config(_write(tmp_path, "cfg.yaml", ""))
    assert cfg.portal.username == "u@example.com"
