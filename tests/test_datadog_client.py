# tests/test_datadog_client.py
import gzip
import json
import pytest
import requests
from unittest.mock import MagicMock

from lambdas.datadog_forwarder.datadog_client import (
    DataDogClient, Outcome, RetryState, base_entry, format_entry,
)
from lambdas.datadog_forwarder.errors import DeliveryRejectedError, DeliveryTransportError
from lambdas.datadog_forwarder.models import LogRecord

ENTRY = {"timestamp": 1, "message": "{}", "level": "INFO", "service": "svc", "ddsource": "aws-lambda", "hostname": "lambda"}


def response(status: int, text: str = "") -> MagicMock:
    return MagicMock(ok=200 <= status < 300, status_code=status, text=text)


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(session, sleep) -> DataDogClient:
    return DataDogClient(api_key="foo-id", session=session, sleep=sleep, log=MagicMock())


def test_posts_gzipped_json_to_intake(client, session):
    session.post.return_value = response(202)

    assert client.deliver([ENTRY]) == {}

    session.post.assert_called_once()
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == "https://http-intake.logs.datadoghq.com/api/v2/logs"
    assert kwargs["headers"] == {
        "content-type": "application/json",
        "content-encoding": "gzip",
        "DD-API-KEY": "foo-id",
    }
    assert json.loads(gzip.decompress(kwargs["data"])) == [ENTRY]


def test_custom_api_url(session):
    session.post.return_value = response(200)
    client = DataDogClient(api_key="k", api_url="https://www.example.com/", session=session, log=MagicMock())

    client.deliver([ENTRY])

    assert session.post.call_args.args[0] == "https://www.example.com/api/v2/logs"


def test_empty_batch_sends_nothing(client, session):
    assert client.deliver([]) == {}
    session.post.assert_not_called()


def test_retries_transport_errors_until_success(client, session, sleep):
    session.post.side_effect = [requests.exceptions.ConnectionError("that went wrong"), response(200)]

    client.deliver([ENTRY])

    assert session.post.call_count == 2
    sleep.assert_called_once_with(1.0)


def test_raises_last_transport_error_when_retries_are_exhausted(client, session, sleep):
    session.post.side_effect = [
        requests.exceptions.ConnectionError("first"),
        requests.exceptions.Timeout("second"),
        requests.exceptions.ConnectionError("that went wrong"),
    ]

    with pytest.raises(DeliveryTransportError, match="that went wrong"):
        client.deliver([ENTRY])

    assert session.post.call_count == 3
    assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]


def test_bad_status_is_not_retried(client, session, sleep):
    session.post.return_value = response(400, "input malformed")

    with pytest.raises(DeliveryRejectedError, match="Failed to send logs with status 400: input malformed") as exc:
        client.deliver([ENTRY])

    assert exc.value.status == 400
    assert session.post.call_count == 1
    sleep.assert_not_called()


def test_unexpected_errors_propagate_unmodified(client, session):
    session.post.side_effect = TypeError("something went wrong")

    with pytest.raises(TypeError, match="something went wrong"):
        client.deliver([ENTRY])
    assert session.post.call_count == 1


def test_retry_state_backoff_doubles():
    state = RetryState(max_retries=3, backoff_base=1.0)

    assert [state.advance() for _ in range(3)] == [1.0, 2.0, 4.0]
    assert state.classify(None, requests.exceptions.Timeout()) is Outcome.FAIL


def test_retry_state_classifies_outcomes():
    state = RetryState()

    assert state.classify(response(204), None) is Outcome.SUCCEED
    assert state.classify(response(500, "oops"), None) is Outcome.FAIL
    assert state.classify(None, requests.exceptions.ConnectionError()) is Outcome.RETRY
    assert state.classify(None, ValueError()) is Outcome.FAIL


def test_format_entry_builds_inner_message():
    record = LogRecord(
        level="INFO", raw_level="bleep", message="this should end up as INFO message", timestamp=1668084827204,
        request_id="d12ddc0c-1f6b-51d7-be22-83b52c83d6da", origin_timestamp="2024-11-21T13:12:30.462Z",
    )

    entry = format_entry(record, "/services/func/v1")

    assert entry == {
        "timestamp": 1668084827204,
        "level": "INFO",
        "message": '{"inv":{"invocationId":"d12ddc0c-1f6b-51d7-be22-83b52c83d6da","functionName":"/services/func/v1"},'
                   '"message":"this should end up as INFO message","level":"bleep","timestamp":"2024-11-21T13:12:30.462Z"}',
    }


def test_format_entry_omits_absent_fields_and_adds_log_stream():
    record = LogRecord(level="WARN", raw_level="warn", message="careful", timestamp=1)

    inner = json.loads(format_entry(record, "/a/b/356", "2022/10/28/[356]abc")["message"])

    assert inner == {
        "inv": {"invocationId": "n/a", "functionName": "/a/b/356"},
        "message": "careful",
        "level": "warn",
        "logStream": "2022/10/28/[356]abc",
    }


def test_base_entry_tags_version_when_known():
    assert base_entry("svc", "4.3.47")["ddtags"] == "version:4.3.47"
    assert "ddtags" not in base_entry("svc")
