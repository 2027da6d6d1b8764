from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import tz as date_tz


# The portal renders the last sync as e.g. "15/03/2024 09:30:00".
SYNC_TIMESTAMP_RE = re.compile(r"(\d{2}/\d{2}/\d{4}\s+\d{2}:\d{2}:\d{2})")

REPORT_TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


def find_sync_timestamp(*texts: Optional[str]) -> Optional[str]:
    """
    Return the first sync timestamp found, scanning `texts` in order.
    """
    for text in texts:
        if not text:
            continue
        m = SYNC_TIMESTAMP_RE.search(text)
        if m:
            return m.group(1)
    return None


def format_report_timestamp(moment: Optional[datetime] = None, tz_name: str = "America/Argentina/Buenos_Aires") -> str:
    """
    Format `moment` (default: now) for report bodies, e.g. "15/03/2024, 09:30:00".

    Naive datetimes are taken as UTC. Unknown zone names fall back to UTC.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    zone = date_tz.gettz(tz_name) or timezone.utc
    return moment.astimezone(zone).strftime(REPORT_TIMESTAMP_FORMAT)
