from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.sync_api import Error as PlaywrightError

from ..failures import SimulatedTimeoutError
from .discovery import candidates_for, find_element
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalCredentials:
    username: str
    password: str


class Authenticator:
    """
    Logs into the portal's username/password form.

    `authenticate()` returns False when the form cannot be found. Navigation errors are not caught here:
    they reach the caller unchanged so timeouts can be told apart from real failures.
    """

    def __init__(
        self,
        *,
        base_url: str,
        creds: PortalCredentials,
        selectors: Optional[PortalSelectors] = None,
        simulate_timeout: bool = False,
        navigation_timeout_ms: int = 30_000,
        page_settle_ms: int = 2_000,
        submit_settle_ms: int = 3_000,
        post_login_settle_ms: int = 3_000,
        keystroke_delay_ms: int = 100,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.creds = creds
        self.selectors = selectors or PortalSelectors()
        self.simulate_timeout = simulate_timeout
        self.navigation_timeout_ms = navigation_timeout_ms
        self.page_settle_ms = page_settle_ms
        self.submit_settle_ms = submit_settle_ms
        self.post_login_settle_ms = post_login_settle_ms
        self.keystroke_delay_ms = keystroke_delay_ms

    def authenticate(self, session: Any) -> bool:
        if self.simulate_timeout:
            logger.warning("SIMULATE_TIMEOUT is enabled; raising a simulated timeout instead of logging in.")
            raise SimulatedTimeoutError()

        logger.info("Opening login page")
        if not session.navigate(self.base_url, wait_until="networkidle", timeout_ms=self.navigation_timeout_ms):
            logger.error("Could not open login page: %s", self.base_url)
            return False

        # Client-side rendering sometimes swaps the form right after load.
        session.wait(self.page_settle_ms)

        sel = self.selectors
        logger.info("Looking for username field")
        user_input = find_element(session, candidates_for(sel.username_inputs, sel.field_timeout_ms))
        if user_input is None:
            logger.error("Username field not found")
            return False
        self._type_into(user_input, self.creds.username)
        logger.info("Username entered")

        logger.info("Looking for password field")
        pwd_input = find_element(session, candidates_for(sel.password_inputs, sel.field_timeout_ms))
        if pwd_input is None:
            logger.error("Password field not found")
            return False
        self._type_into(pwd_input, self.creds.password)
        logger.info("Password entered")

        tier = self._submit(session, pwd_input)
        logger.info("Login form submitted (via %s)", tier)

        session.wait(self.submit_settle_ms)
        # Logged for diagnostics only; the portal keeps the same URL on some failed logins.
        logger.info("Current URL after submit: %s", session.current_url())
        session.wait(self.post_login_settle_ms)

        logger.info("Login completed")
        return True

    def _type_into(self, handle: Any, text: str) -> None:
        # Triple-click selects any prefilled value so typing replaces it.
        handle.click(click_count=3)
        handle.type(text, delay=self.keystroke_delay_ms)

    def _submit(self, session: Any, pwd_input: Any) -> str:
        """
        Submit the form: known selectors, then any submit control by label, then Enter.

        Returns which tier was used ("selector", "label" or "enter").
        """
        sel = self.selectors
        logger.info("Looking for login button")
        button = find_element(session, candidates_for(sel.submit_buttons, sel.submit_timeout_ms))
        tier = "selector"

        if button is None:
            button = self._find_submit_by_label(session)
            tier = "label"
            if button is not None:
                logger.info("Login button found by label")

        if button is None:
            logger.info("Login button not found; pressing Enter in the password field")
            pwd_input.press("Enter")
            return "enter"

        button.click()
        logger.info("Login button clicked")
        return tier

    def _find_submit_by_label(self, session: Any) -> Optional[Any]:
        keywords = self.selectors.submit_keywords
        try:
            buttons = session.query_all(self.selectors.submit_scan_selector)
        except PlaywrightError:
            logger.debug("Submit control scan failed.", exc_info=True)
            return None

        for btn in buttons:
            try:
                label = btn.evaluate("el => el.value || el.textContent || ''")
            except PlaywrightError:
                continue
            if label and any(k in label for k in keywords):
                return btn
        return None
