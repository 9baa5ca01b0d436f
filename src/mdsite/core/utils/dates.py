"""Publication date parsing for front-matter `date` values"""

import datetime as dt
import logging
from typing import Optional


logger = logging.getLogger(__name__)


def parse_date(value: object, source: str = "<string>") -> Optional[dt.datetime]:
    """Parse an ISO date or date-time string into a naive UTC datetime, else None."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    else:
        text = (value or "").strip() if isinstance(value, str) else ""
        if not text:
            return None
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            logger.warning("%s: unparseable date %r, treating as undated", source, text)
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return parsed
