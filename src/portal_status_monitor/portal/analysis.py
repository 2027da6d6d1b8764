from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from playwright.sync_api import Error as PlaywrightError

from ..config import DEFAULT_SERVICE_NAME
from ..models import AnalysisResult, ServiceState
from ..util.dates import find_sync_timestamp
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)

ALERT_SUCCESS = "alert-success"
ALERT_DANGER = "alert-danger"
ACTIVE_TEXT = "se encuentra activo"
INACTIVE_TEXT = "se encuentra inactivo"

_READY_STATE_JS = "() => document.readyState === 'complete'"
_BODY_TEXT_JS = "() => document.body ? document.body.innerText : ''"

# A client-side redirect can replace the page while we read it.
_CONTEXT_LOST_MARKERS = ("Execution context was destroyed", "Target closed")

# "inactivo" contains "activo", so match whole words and check the negative first.
_INACTIVE_WORD_RE = re.compile(r"\binactivo\b", re.I)
_ACTIVE_WORD_RE = re.compile(r"\bactivo\b", re.I)


@dataclass(frozen=True)
class PageSnapshot:
    markup: str
    text: str

    def contains(self, needle: str) -> bool:
        return needle in self.text or needle in self.markup


def active_indicators(service_name: str) -> tuple[str, ...]:
    return (ALERT_SUCCESS, f"El servicio de {service_name} {ACTIVE_TEXT}", ACTIVE_TEXT)


def inactive_indicators(service_name: str) -> tuple[str, ...]:
    return (ALERT_DANGER, f"El servicio de {service_name} {INACTIVE_TEXT}", INACTIVE_TEXT)


def classify_content(snapshot: PageSnapshot, service_name: str = DEFAULT_SERVICE_NAME) -> AnalysisResult:
    """
    Classify the page from its markup and rendered text.

    Active indicators are checked first and the first hit wins; inactive indicators are only
    consulted when nothing active matched. The diagnostics flags are computed regardless.
    """
    state = ServiceState.UNKNOWN
    matched: list[str] = []

    for indicator in active_indicators(service_name):
        if snapshot.contains(indicator):
            state = ServiceState.ACTIVE
            matched.append(indicator)
            break

    if state is ServiceState.UNKNOWN:
        for indicator in inactive_indicators(service_name):
            if snapshot.contains(indicator):
                state = ServiceState.INACTIVE
                matched.append(indicator)
                break

    diagnostics = {
        "has_alert_success": snapshot.contains(ALERT_SUCCESS),
        "has_alert_danger": snapshot.contains(ALERT_DANGER),
        "has_active_text": snapshot.contains(ACTIVE_TEXT),
        "has_inactive_text": snapshot.contains(INACTIVE_TEXT),
    }

    return AnalysisResult(
        strategy="content",
        state=state,
        matched_signals=tuple(matched),
        sync_timestamp=find_sync_timestamp(snapshot.text, snapshot.markup),
        diagnostics=diagnostics,
    )


def classify_elements(
    element_texts: Mapping[str, Optional[str]],
    selectors: Optional[PortalSelectors] = None,
) -> AnalysisResult:
    """
    Classify from the status elements present on the page.

    `element_texts` maps each selector that matched an element to that element's text content.
    Priority: success alert, danger alert, then the generic status column (which needs the words
    "activo"/"inactivo" in its text to decide anything).
    """
    sel = selectors or PortalSelectors()
    diagnostics = {
        "has_alert_success": sel.alert_success in element_texts,
        "has_alert_danger": sel.alert_danger in element_texts,
        "has_status_column": sel.status_column in element_texts,
    }

    for selector in (sel.alert_success, sel.alert_danger, sel.status_column):
        if selector not in element_texts:
            continue

        text = element_texts[selector] or ""
        if selector == sel.alert_success:
            state = ServiceState.ACTIVE
        elif selector == sel.alert_danger:
            state = ServiceState.INACTIVE
        elif _INACTIVE_WORD_RE.search(text):
            state = ServiceState.INACTIVE
        elif _ACTIVE_WORD_RE.search(text):
            state = ServiceState.ACTIVE
        else:
            state = ServiceState.UNKNOWN

        return AnalysisResult(
            strategy="elements",
            state=state,
            matched_signals=(selector,) if state is not ServiceState.UNKNOWN else (),
            sync_timestamp=find_sync_timestamp(text),
            diagnostics=diagnostics,
            element_text=text or None,
        )

    return AnalysisResult(strategy="elements", diagnostics=diagnostics)


def merge_results(content: AnalysisResult, elements: AnalysisResult) -> AnalysisResult:
    """
    Content result wins whenever it found a state; the element result is only a fallback.
    The sync timestamp falls back independently.
    """
    winner = content if content.found else elements
    return AnalysisResult(
        strategy="combined",
        state=winner.state,
        matched_signals=winner.matched_signals,
        sync_timestamp=content.sync_timestamp or elements.sync_timestamp,
        diagnostics=dict(content.diagnostics),
        element_text=elements.element_text,
        error=content.error or elements.error,
    )


class StateAnalyzer:
    """
    Reads the post-login status page through a browser session and classifies it.
    """

    def __init__(
        self,
        *,
        service_name: str = DEFAULT_SERVICE_NAME,
        selectors: Optional[PortalSelectors] = None,
        pre_analysis_settle_ms: int = 3_000,
        ready_timeout_ms: int = 10_000,
        ready_fallback_ms: int = 2_000,
        content_settle_ms: int = 1_000,
        context_retry_ms: int = 2_000,
        element_settle_ms: int = 1_000,
    ) -> None:
        self.service_name = service_name
        self.selectors = selectors or PortalSelectors()
        self.pre_analysis_settle_ms = pre_analysis_settle_ms
        self.ready_timeout_ms = ready_timeout_ms
        self.ready_fallback_ms = ready_fallback_ms
        self.content_settle_ms = content_settle_ms
        self.context_retry_ms = context_retry_ms
        self.element_settle_ms = element_settle_ms

    def analyze_content(self, session: Any) -> AnalysisResult:
        try:
            snapshot = self.capture(session)
        except PlaywrightError as e:
            logger.error("Content analysis failed: %s", e)
            return AnalysisResult(strategy="content", error=str(e))

        result = classify_content(snapshot, self.service_name)
        _log_result(result)
        return result

    def capture(self, session: Any) -> PageSnapshot:
        session.wait(self.pre_analysis_settle_ms)

        logger.info("Waiting for the page to finish loading")
        if not session.wait_for_function(_READY_STATE_JS, self.ready_timeout_ms):
            logger.info("Page did not report readyState=complete; waiting a little longer")
            session.wait(self.ready_fallback_ms)
        session.wait(self.content_settle_ms)

        try:
            return self._snapshot(session)
        except PlaywrightError as e:
            if not any(marker in str(e) for marker in _CONTEXT_LOST_MARKERS):
                raise
            logger.warning("Page context was replaced while reading it; retrying once")
            session.wait(self.context_retry_ms)
            return self._snapshot(session)

    def _snapshot(self, session: Any) -> PageSnapshot:
        markup = session.content()
        text = session.evaluate(_BODY_TEXT_JS) or ""
        return PageSnapshot(markup=markup, text=text)

    def analyze_elements(self, session: Any) -> AnalysisResult:
        sel = self.selectors
        element_texts: dict[str, Optional[str]] = {}
        try:
            session.wait(self.element_settle_ms)
            for selector in (sel.alert_success, sel.alert_danger, sel.status_column):
                handle = session.query(selector)
                if handle is not None:
                    element_texts[selector] = handle.text_content()
        except PlaywrightError as e:
            logger.error("Element analysis failed: %s", e)
            return AnalysisResult(strategy="elements", error=str(e))

        result = classify_elements(element_texts, sel)
        _log_result(result)
        return result


def _log_result(result: AnalysisResult) -> None:
    if result.found:
        logger.info(
            "[%s] Service state: %s (signals=%s, last sync=%s)",
            result.strategy,
            result.state.value.upper(),
            ",".join(result.matched_signals),
            result.sync_timestamp or "not found",
        )
    else:
        logger.warning("[%s] Could not determine the service state (diagnostics=%s)", result.strategy, result.diagnostics)
