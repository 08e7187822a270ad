# lambdas/datadog_forwarder/extract_fields.py
import re
from typing import Optional

from .models import LogEvent, LogRecord, NOT_AVAILABLE
from .severity import DEFAULT_LEVEL, is_known_level

# "INFO\tthe actual message" as written by the Lambda runtime's console logger.
LEVEL_PREFIX = re.compile(r"^([A-Za-z]+)\t(.*)$", re.DOTALL)


def split_level(text: str) -> tuple[Optional[str], str]:
    """Splits a leading `LEVEL<tab>` token off `text`. Returns (None, text) when there is none."""
    match = LEVEL_PREFIX.match(text)
    if not match:
        return None, text
    return match.group(1), match.group(2)


def extract_fields(event: LogEvent) -> Optional[LogRecord]:
    """
    Builds a normalized record from one subscription log event.

    Returns None when the event carries no `extractedFields`, i.e. the
    subscription filter had no pattern and the line cannot be classified.
    """
    fields = event.extracted_fields
    if not fields:
        return None

    text = fields.get("event") or ""
    candidate = fields.get("level")
    if candidate:
        message = text
    else:
        candidate, message = split_level(text)
        if not candidate:
            candidate = DEFAULT_LEVEL

    level = candidate.upper()
    return LogRecord(
        level=level if is_known_level(level) else DEFAULT_LEVEL,
        raw_level=candidate.lower(),
        message=message.rstrip(),
        timestamp=event.timestamp,
        request_id=fields.get("request_id") or NOT_AVAILABLE,
        origin_timestamp=fields.get("timestamp"),
    )
