# lambdas/datadog_forwarder/datadog_client.py
import gzip
import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from .errors import DeliveryRejectedError, DeliveryTransportError
from .models import LogRecord

DEFAULT_API_URL = "https://http-intake.logs.datadoghq.com"
LOGS_PATH = "/api/v2/logs"

# Connection resets, DNS failures and timeouts are worth another attempt.
RETRYABLE_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class Outcome(Enum):
    SUCCEED = "succeed"
    RETRY = "retry"
    FAIL = "fail"


@dataclass
class RetryState:
    """
    Attempt counter for one delivery.

    `max_retries` is the number of retries after the first attempt, so the
    default of 2 allows 3 requests, waiting 1s and 2s in between.
    """
    max_retries: int = 2
    backoff_base: float = 1.0
    attempt: int = 0

    def next_delay(self) -> float:
        return self.backoff_base * (2 ** self.attempt)

    def classify(self, response: Optional[requests.Response], error: Optional[Exception]) -> Outcome:
        if error is not None:
            if isinstance(error, RETRYABLE_ERRORS) and self.attempt < self.max_retries:
                return Outcome.RETRY
            return Outcome.FAIL
        if response is not None and response.ok:
            return Outcome.SUCCEED
        return Outcome.FAIL

    def advance(self) -> float:
        delay = self.next_delay()
        self.attempt += 1
        return delay


def format_entry(record: LogRecord, function_path: str, log_stream: Optional[str] = None) -> dict:
    """
    Converts a normalized record into a DataDog log entry (without the shared
    `service`/`ddsource`/`hostname`/`ddtags` fields).
    """
    text = {
        "inv": {
            "invocationId": record.request_id,
            "functionName": function_path,
        },
        "message": record.message,
        "level": record.raw_level,
    }
    if record.origin_timestamp is not None:
        text["timestamp"] = record.origin_timestamp
    if log_stream:
        text["logStream"] = log_stream
    return {
        "timestamp": record.timestamp,
        "message": json.dumps(text, separators=(",", ":"), ensure_ascii=False),
        "level": record.level,
    }


def base_entry(service: str, version: Optional[str] = None) -> dict:
    """Fields shared by every entry of a batch."""
    entry = {
        "service": service,
        "ddsource": "aws-lambda",
        "hostname": "lambda",
    }
    if version:
        entry["ddtags"] = f"version:{version}"
    return entry


class DataDogClient:
    """
    Posts gzip-compressed log batches to the DataDog logs intake API.
    """

    def __init__(self, api_key: str, api_url: str = DEFAULT_API_URL, session: requests.Session = None,
                 max_retries: int = 2, backoff_base: float = 1.0, timeout: float = 10,
                 sleep=time.sleep, log=print):
        self.api_key = api_key
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.timeout = timeout
        self.sleep = sleep
        self.log = log

    @property
    def url(self) -> str:
        return f"{self.api_url}{LOGS_PATH}"

    def deliver(self, entries: list[dict]) -> dict:
        """
        Sends `entries` in a single request.

        Raises:
            DeliveryTransportError: the network kept failing after all retries.
            DeliveryRejectedError: DataDog answered with a non-2xx status.
        """
        if not entries:
            return {}

        body = gzip.compress(json.dumps(entries).encode("utf-8"))
        headers = {
            "content-type": "application/json",
            "content-encoding": "gzip",
            "DD-API-KEY": self.api_key,
        }
        state = RetryState(max_retries=self.max_retries, backoff_base=self.backoff_base)

        while True:
            response, error = None, None
            try:
                response = self.session.post(self.url, data=body, headers=headers, timeout=self.timeout)
            except RETRYABLE_ERRORS as e:
                error = e

            outcome = state.classify(response, error)
            if outcome is Outcome.SUCCEED:
                self.log(f"✅ Sent {len(entries)} log entries to DataDog (attempt {state.attempt + 1}).")
                return {}
            if outcome is Outcome.RETRY:
                delay = state.advance()
                self.log(f"⚠️ Sending logs failed: {error}. Retrying in {delay:g}s ({state.attempt}/{self.max_retries})")
                self.sleep(delay)
                continue
            if error is not None:
                raise DeliveryTransportError(str(error), cause=error) from error
            raise DeliveryRejectedError(response.status_code, response.text)
