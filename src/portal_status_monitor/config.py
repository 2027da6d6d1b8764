from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_BASE_URL = "https://tiendas.axoft.com"
DEFAULT_SERVICE_NAME = "Tango Tiendas"
DEFAULT_REPORT_TIMEZONE = "America/Argentina/Buenos_Aires"
DEFAULT_QUIET_LOGGERS = ("playwright", "urllib3", "asyncio")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def parse_recipients(value: object) -> list[str]:
    """
    Accept "a@x.com, b@x.com" (env style) or a YAML list.

    Entries are trimmed and blanks dropped; duplicates are kept as given.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = [str(value)]
    return [item.strip() for item in items if item and item.strip()]


def _default_config_from_env() -> dict:
    """
    Env-only config so a plain `.env` is enough; YAML is an optional override.
    """
    return {
        "portal": {
            "base_url": os.getenv("PORTAL_BASE_URL", DEFAULT_BASE_URL),
            "username": os.getenv("PORTAL_USERNAME", ""),
            "password": os.getenv("PORTAL_PASSWORD", ""),
            "service_name": os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME),
            "headless": _env_bool("HEADLESS", default=True),
            "simulate_timeout": _env_bool("SIMULATE_TIMEOUT", default=False),
        },
        "smtp": {
            "host": os.getenv("SMTP_HOST", ""),
            "port": os.getenv("SMTP_PORT", "") or 587,
            "user": os.getenv("SMTP_USER", ""),
            "password": os.getenv("SMTP_PASS", ""),
            "from_addr": os.getenv("SMTP_FROM", ""),
            "recipients": os.getenv("EMAIL_RECIPIENTS", ""),
        },
        "report": {
            "timezone": os.getenv("REPORT_TIMEZONE", DEFAULT_REPORT_TIMEZONE),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", "data/monitor.log"),
            "quiet_level": os.getenv("NOISY_LOG_LEVEL", "WARNING"),
        },
        "debug": {
            "dir": os.getenv("DEBUG_DIR", "data/debug"),
        },
    }


class PortalConfig(BaseModel):
    """
    The monitored portal and the service whose status banner we read.
    """

    base_url: str = DEFAULT_BASE_URL
    username: str
    password: str = Field(repr=False)
    service_name: str = DEFAULT_SERVICE_NAME
    headless: bool = True
    navigation_timeout_ms: int = 30_000
    # Raise a fake timeout during login so the error-alert path can be drilled.
    simulate_timeout: bool = False

    @model_validator(mode="after")
    def _validate(self) -> "PortalConfig":
        if not self.username or not self.password:
            raise ValueError("portal.username and portal.password are required (PORTAL_USERNAME / PORTAL_PASSWORD)")

        base_url = (self.base_url or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"portal.base_url must be a full URL like '{DEFAULT_BASE_URL}'")
        self.base_url = base_url
        return self


class SmtpConfig(BaseModel):
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = Field(default="", repr=False)
    from_addr: str = ""
    recipients: list[str] = Field(default_factory=list)
    timeout_seconds: float = 20.0

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, value: object) -> list[str]:
        return parse_recipients(value)

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.user and self.password and self.from_addr)

    @property
    def use_ssl(self) -> bool:
        return self.port == 465


class ReportConfig(BaseModel):
    timezone: str = DEFAULT_REPORT_TIMEZONE


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = "data/monitor.log"
    # Third-party loggers held at `quiet_level`; Playwright logs every protocol message at DEBUG.
    quiet_loggers: list[str] = Field(default_factory=lambda: list(DEFAULT_QUIET_LOGGERS))
    quiet_level: str = "WARNING"


class DebugConfig(BaseModel):
    dir: str = "data/debug"
    save_artifacts: bool = True


class AppConfig(BaseModel):
    portal: PortalConfig
    smtp: SmtpConfig = SmtpConfig()
    report: ReportConfig = ReportConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: DebugConfig = DebugConfig()


def load_config(path: Union[str, Path]) -> AppConfig:
    p = Path(path)
    raw: dict = {}
    if p.exists():
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
