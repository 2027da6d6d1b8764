"""
In-process stand-ins for the browser session and the mail transport.
"""

from __future__ import annotations

from typing import Any, Optional

from portal_status_monitor.portal.selectors import PortalSelectors


class FakeElement:
    def __init__(self, name: str, *, label: str = "", text: str = "") -> None:
        self.name = name
        self.label = label
        self.text = text
        self.actions: list[tuple] = []

    def click(self, **kwargs: Any) -> None:
        self.actions.append(("click", kwargs))

    def type(self, text: str, delay: int = 0) -> None:
        self.actions.append(("type", text, delay))

    def press(self, key: str) -> None:
        self.actions.append(("press", key))

    def evaluate(self, expression: str, arg: Any = None) -> str:
        return self.label

    def text_content(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"FakeElement({self.name!r})"


class FakeSession:
    def __init__(
        self,
        *,
        visible: Optional[dict[str, FakeElement]] = None,
        elements: Optional[dict[str, FakeElement]] = None,
        scan: Optional[list[FakeElement]] = None,
        markup: str = "",
        text: str = "",
        init_ok: bool = True,
        navigate_error: Optional[BaseException] = None,
        content_errors: Optional[list[BaseException]] = None,
        ready: bool = True,
        url: str = "https://portal.test/Home",
    ) -> None:
        self.visible = dict(visible or {})
        self.elements = dict(elements or {})
        self.scan = list(scan or [])
        self.markup = markup
        self.text = text
        self.init_ok = init_ok
        self.navigate_error = navigate_error
        self.content_errors = list(content_errors or [])
        self.ready = ready
        self.url = url

        self.initialized = False
        self.closed = False
        self.navigations: list[str] = []
        self.waited_for: list[tuple[str, int]] = []
        self.waits: list[int] = []
        self.debug_saved: list[str] = []

    def initialize(self) -> bool:
        self.initialized = True
        return self.init_ok

    def navigate(self, url: str, *, wait_until: str = "networkidle", timeout_ms: int = 30_000) -> bool:
        self.navigations.append(url)
        if self.navigate_error is not None:
            raise self.navigate_error
        return True

    def current_url(self) -> str:
        return self.url

    def wait_for_visible(self, selector: str, timeout_ms: int = 10_000) -> Optional[FakeElement]:
        self.waited_for.append((selector, timeout_ms))
        return self.visible.get(selector)

    def query(self, selector: str) -> Optional[FakeElement]:
        return self.elements.get(selector)

    def query_all(self, selector: str) -> list[FakeElement]:
        return list(self.scan)

    def evaluate(self, expression: str, arg: Any = None) -> str:
        return self.text

    def wait_for_function(self, expression: str, timeout_ms: int = 10_000) -> bool:
        return self.ready

    def wait_for_load(self, timeout_ms: int = 15_000) -> bool:
        return True

    def content(self) -> str:
        if self.content_errors:
            raise self.content_errors.pop(0)
        return self.markup

    def save_debug(self, debug_dir: str, name_prefix: str) -> None:
        self.debug_saved.append(name_prefix)

    def wait(self, ms: int) -> None:
        self.waits.append(ms)

    def close(self) -> None:
        self.closed = True


def login_page_session(**kwargs: Any) -> FakeSession:
    """
    A session whose login form matches the first username/password/submit selectors.
    """
    sel = PortalSelectors()
    visible = {
        sel.username_inputs[0]: FakeElement("username"),
        sel.password_inputs[0]: FakeElement("password"),
        sel.submit_buttons[0]: FakeElement("submit"),
    }
    visible.update(kwargs.pop("visible", {}) or {})
    return FakeSession(visible=visible, **kwargs)


class FakeTransport:
    def __init__(self, *, verify_ok: bool = True, send_error: Optional[BaseException] = None) -> None:
        self.verify_ok = verify_ok
        self.send_error = send_error
        self.verify_calls = 0
        self.sent: list[tuple] = []
        self.closed = False

    def verify(self) -> bool:
        self.verify_calls += 1
        return self.verify_ok

    def send(self, payload: Any, sender: str) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((payload, sender))
        return f"<msg-{len(self.sent)}@test>"

    def close(self) -> None:
        self.closed = True
