# lambdas/datadog_forwarder/severity.py
from .models import LogRecord

# Ascending order; a record is sent when its level is at or above the threshold.
LOG_LEVELS = ["TRACE", "SILLY", "DEBUG", "VERBOSE", "INFO", "WARN", "ERROR"]
DEFAULT_LEVEL = "INFO"


def is_known_level(level: str) -> bool:
    return level in LOG_LEVELS


def level_index(level: str) -> int:
    """Position of `level` on the scale; unknown levels rank as INFO."""
    level = (level or "").upper()
    if level not in LOG_LEVELS:
        level = DEFAULT_LEVEL
    return LOG_LEVELS.index(level)


def threshold_index(configured: str) -> int:
    """Resolves a configured threshold such as 'debug' or 'warn'. Unknown values fall back to INFO."""
    return level_index(configured)


def passes(record: LogRecord, threshold: str) -> bool:
    return level_index(record.level) >= threshold_index(threshold)
