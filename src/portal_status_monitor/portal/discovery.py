from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


@dataclass(frozen=True)
class ElementCandidate:
    selector: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS


def candidates_for(selectors: Iterable[str], timeout_ms: int = DEFAULT_TIMEOUT_MS) -> list[ElementCandidate]:
    return [ElementCandidate(selector=s, timeout_ms=timeout_ms) for s in selectors]


def find_element(session: Any, candidates: Sequence[ElementCandidate]) -> Optional[Any]:
    """
    Return the handle for the first candidate that becomes visible, or None when all are exhausted.

    Candidates are tried strictly in order; later ones are never waited on once one matches.
    """
    for candidate in candidates:
        handle = session.wait_for_visible(candidate.selector, candidate.timeout_ms)
        if handle is not None:
            logger.info("Element found with selector: %s", candidate.selector)
            return handle
    logger.info("No element matched any of: %s", ", ".join(c.selector for c in candidates))
    return None
