from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    # "content", "elements" or "combined"
    strategy: str
    state: ServiceState = ServiceState.UNKNOWN
    matched_signals: tuple[str, ...] = ()
    sync_timestamp: Optional[str] = None
    diagnostics: Mapping[str, bool] = Field(default_factory=dict, validate_default=True)

    # Element strategy only: text of the element that decided the state.
    element_text: Optional[str] = None
    # Set when the attempt failed and was recovered into UNKNOWN.
    error: Optional[str] = None

    @field_validator("diagnostics", mode="after")
    @classmethod
    def _freeze_diagnostics(cls, value: Mapping[str, bool]) -> Mapping[str, bool]:
        return MappingProxyType(dict(value))

    @property
    def found(self) -> bool:
        return self.state is not ServiceState.UNKNOWN


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    FATAL = "fatal"


class FailureReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    error_type: str = ""
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    # "state-alert" or "connectivity-error"
    kind: str
    subject: str
    text_body: str
    html_body: str
    recipients: tuple[str, ...] = ()


class DispatchStatus(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"
