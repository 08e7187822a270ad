# lambdas/datadog_forwarder/pipeline.py
"""
Drives one CloudWatch Logs subscription batch through the forwarder:

    decode -> resolve aliases -> extract fields -> filter -> deliver -> dead-letter

Lines that cannot be classified, and lines DataDog could not take, end up in
the dead-letter queue instead of being dropped.
"""
import base64
import gzip
import json
from typing import Optional

from .alias import LATEST, AliasResolver, function_path, parse_revision, unit_name
from .datadog_client import DataDogClient, base_entry, format_entry
from .dead_letter import DeadLetterQueue
from .errors import DeadLetterForwardingError
from .extract_fields import extract_fields
from .models import LogBatch, LogEvent, LogRecord
from .severity import passes


def decode_payload(event: Optional[dict]) -> Optional[dict]:
    """
    Returns the subscription document carried by a Lambda event, or None if there is none.

    Accepts the CloudWatch form `{"awslogs": {"data": base64(gzip(json))}}`, a
    document passed directly (`{"logEvents": [...], ...}`), and an HTTP event whose
    `body` holds the JSON document. Decompression and parse errors are not caught.
    """
    if not event:
        return None

    awslogs = event.get("awslogs")
    if awslogs is not None:
        data = awslogs.get("data")
        if not data:
            return None
        return json.loads(gzip.decompress(base64.b64decode(data)))

    if "logEvents" in event:
        return event

    body = event.get("body")
    if not body:
        return None
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body)
    return json.loads(body)


def service_prefix_for(function_arn: str) -> str:
    """`arn:aws:lambda:us-east-1:123:function:feeder:1_2_3` -> `arn:aws:lambda:us-east-1:123:function:`"""
    return ":".join(function_arn.split(":")[:6]) + ":"


class LogForwarder:
    """Runs subscription batches through extraction, filtering, delivery and dead-lettering."""

    def __init__(self, client: DataDogClient, resolver: AliasResolver, dead_letter: DeadLetterQueue,
                 service_prefix: str, level: str = "info", log=print):
        self.client = client
        self.resolver = resolver
        self.dead_letter = dead_letter
        self.service_prefix = service_prefix
        self.level = level
        self.log = log

    def run(self, event: Optional[dict]) -> dict:
        document = decode_payload(event)
        if not document:
            self.log("ℹ️ No log events in payload. Nothing to forward.")
            return {"rejected": 0, "sent": 0}
        batch = LogBatch.from_dict(document)

        unit = unit_name(batch.log_group)
        revision = parse_revision(batch.log_stream) or LATEST
        resolution = self.resolver.resolve(unit, revision)
        path = function_path(unit, revision, resolution)

        accepted, rejected = self.extract(batch.events)
        records = [record for record in accepted if passes(record, self.level)]

        shared = base_entry(self.service_prefix + unit, resolution.version_tag)
        entries = [{**format_entry(record, path, batch.log_stream), **shared} for record in records]
        unclassified = [line.to_dict() for line in rejected]

        self.log(f"Processing {len(batch.events)} event(s) from {batch.log_group} as {path}: "
                 f"{len(entries)} to send, {len(accepted) - len(records)} filtered, {len(rejected)} rejected")
        try:
            self.client.deliver(entries)
        except Exception as e:
            self.log(f"❌ Failed to send {len(entries)} entries to DataDog: {e}")
            self._forward_dead_letters(unclassified + entries)
            raise

        self._forward_dead_letters(unclassified)
        return {"rejected": len(rejected), "sent": len(entries)}

    def extract(self, events: list[LogEvent]) -> tuple[list[LogRecord], list[LogEvent]]:
        """Splits events into normalized records and events that could not be classified."""
        accepted, rejected = [], []
        for event in events:
            record = extract_fields(event)
            if record is None:
                self.log(f"⚠️ Unable to extract fields from: {json.dumps(event.to_dict(), indent=2)}")
                rejected.append(event)
            else:
                accepted.append(record)
        return accepted, rejected

    def _forward_dead_letters(self, items: list[dict]) -> None:
        # A dead-letter failure never replaces a pending delivery error, nor fails a successful run.
        try:
            self.dead_letter.forward(items)
        except DeadLetterForwardingError as e:
            self.log(f"❌ CRITICAL: {e}")
