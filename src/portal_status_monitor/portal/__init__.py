from .analysis import PageSnapshot, StateAnalyzer, classify_content, classify_elements, merge_results
from .discovery import ElementCandidate, candidates_for, find_element
from .login import Authenticator, PortalCredentials
from .selectors import PortalSelectors
from .session import BrowserOptions, BrowserSession

__all__ = [
    "Authenticator",
    "BrowserOptions",
    "BrowserSession",
    "ElementCandidate",
    "PageSnapshot",
    "PortalCredentials",
    "PortalSelectors",
    "StateAnalyzer",
    "candidates_for",
    "classify_content",
    "classify_elements",
    "find_element",
    "merge_results",
]
