# tests/test_extract_fields.py
import pytest

from lambdas.datadog_forwarder.extract_fields import extract_fields, split_level
from lambdas.datadog_forwarder.models import LogEvent, LogRecord

TS = 1668084827204


def make_event(**fields) -> LogEvent:
    return LogEvent(timestamp=TS, extracted_fields=fields)


def test_level_prefix_is_split_from_message():
    record = extract_fields(make_event(
        event="INFO\tthis\nis\na\nmessage\n",
        request_id="1aa49921-c9b8-401c-9f3a-f22989ab8505",
        timestamp="2022-10-25T14:26:45.982Z",
    ))

    assert record == LogRecord(
        level="INFO",
        raw_level="info",
        message="this\nis\na\nmessage",
        timestamp=TS,
        request_id="1aa49921-c9b8-401c-9f3a-f22989ab8505",
        origin_timestamp="2022-10-25T14:26:45.982Z",
    )


def test_explicit_level_field_wins_over_prefix():
    record = extract_fields(make_event(event="neither should this be visible\n", level="debug"))

    assert record.level == "DEBUG"
    assert record.raw_level == "debug"
    assert record.message == "neither should this be visible"


def test_message_without_prefix_defaults_to_info():
    record = extract_fields(make_event(event="Task timed out after 60.07 seconds\n\n"))

    assert record.level == "INFO"
    assert record.raw_level == "info"
    assert record.message == "Task timed out after 60.07 seconds"


def test_unknown_level_is_kept_lowercased_but_routed_as_info():
    record = extract_fields(make_event(event="BLEEP\tthis should end up as INFO message\n"))

    assert record.level == "INFO"
    assert record.raw_level == "bleep"
    assert record.message == "this should end up as INFO message"


def test_missing_request_id_and_timestamp():
    record = extract_fields(make_event(event="WARN\tcareful\n"))

    assert record.request_id == "n/a"
    assert record.origin_timestamp is None


def test_event_without_extracted_fields_is_rejected():
    event = LogEvent(timestamp=TS, message="This message has no known pattern and will be discarded\n")

    assert extract_fields(event) is None


@pytest.mark.parametrize("event", [
    LogEvent(timestamp=TS, message="opaque"),
    LogEvent(timestamp=TS, extracted_fields={"event": "ERROR\tboom"}),
    LogEvent(timestamp=TS, extracted_fields={"event": ""}),
])
def test_every_event_yields_record_or_failure(event):
    result = extract_fields(event)
    assert result is None or isinstance(result, LogRecord)


def test_split_level_requires_tab():
    assert split_level("INFO message") == (None, "INFO message")
    assert split_level("ERROR\tfailed\twith tabs") == ("ERROR", "failed\twith tabs")
