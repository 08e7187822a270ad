# lambdas/datadog_forwarder/models.py
"""
Plain-dataclass models for the DataDog forwarder.

The shapes mirror the CloudWatch Logs subscription payload:

    {"logGroup": str, "logStream": str,
     "logEvents": [{"id"?, "timestamp": int, "message"?: str,
                    "extractedFields"?: {"event", "level", "request_id", "timestamp"}}]}
"""
from dataclasses import dataclass, field
from typing import List, Optional

NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class LogEvent:
    """One line of a subscription batch, exactly as CloudWatch delivered it."""
    timestamp: int
    message: Optional[str] = None
    extracted_fields: Optional[dict] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "LogEvent":
        return cls(
            timestamp=data.get("timestamp"),
            message=data.get("message"),
            extracted_fields=data.get("extractedFields"),
            id=data.get("id"),
        )

    def to_dict(self) -> dict:
        """Returns the original wire shape, used when dead-lettering the event."""
        data = {"timestamp": self.timestamp}
        if self.id is not None:
            data["id"] = self.id
        if self.message is not None:
            data["message"] = self.message
        if self.extracted_fields is not None:
            data["extractedFields"] = self.extracted_fields
        return data


@dataclass(frozen=True)
class LogRecord:
    """
    A normalized log line.

    `level` is always one of the known severities and drives filtering;
    `raw_level` is the lower-cased level as it appeared in the line.
    """
    level: str
    raw_level: str
    message: str
    timestamp: int
    request_id: str = NOT_AVAILABLE
    origin_timestamp: Optional[str] = None


@dataclass(frozen=True)
class AliasResolution:
    """Human readable identity of a function version."""
    short_alias: Optional[str] = None
    version_tag: Optional[str] = None

    @property
    def has_short_alias(self) -> bool:
        return self.short_alias is not None

    @property
    def has_version_tag(self) -> bool:
        return self.version_tag is not None


@dataclass
class LogBatch:
    log_group: str
    log_stream: str
    events: List[LogEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "LogBatch":
        return cls(
            log_group=data.get("logGroup", ""),
            log_stream=data.get("logStream", ""),
            events=[LogEvent.from_dict(e) for e in data.get("logEvents") or []],
        )
