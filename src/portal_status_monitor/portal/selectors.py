from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    The portal's markup drifts between releases; keep every selector and text hook here.

    Candidate tuples are ordered: the first visible match wins.
    """

    # Login form
    username_inputs: tuple[str, ...] = ("#UserName", 'input[name="UserName"]', 'input[type="email"]')
    password_inputs: tuple[str, ...] = ("#Password", 'input[name="Password"]', 'input[type="password"]')
    field_timeout_ms: int = 10_000

    # Most specific first, the generic submit input last.
    submit_buttons: tuple[str, ...] = (
        'input[type="submit"].axnexo-btn-login',
        "input.btn.axnexo-btn-login",
        "input.axnexo-btn-login",
        'input[type="submit"]',
    )
    submit_timeout_ms: int = 2_000
    # Second tier: any submit control whose label contains one of these words.
    submit_scan_selector: str = 'input[type="submit"], button[type="submit"]'
    submit_keywords: tuple[str, ...] = ("Iniciar",)

    # Status page
    alert_success: str = ".alert-success"
    alert_danger: str = ".alert-danger"
    status_column: str = ".col-md-10"
