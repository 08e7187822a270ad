# lambdas/datadog_forwarder/config.py
"""
Settings for the DataDog forwarder, loaded from the Lambda environment.
"""
import os
from typing import Mapping, Optional

from .datadog_client import DEFAULT_API_URL
from .errors import ConfigurationError


class Settings:
    """
    Loads configuration directly from environment variables, providing
    defaults for everything except the DataDog API key.

    Numeric settings are parsed on first access, so a missing API key is
    always reported before a malformed number.
    """
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._env = os.environ if environ is None else environ
        self.api_key: Optional[str] = self._env.get("DATADOG_API_KEY") or None
        self.api_url: str = self._env.get("DATADOG_API_URL") or DEFAULT_API_URL
        self.log_level: str = self._env.get("DATADOG_LOG_LEVEL") or "info"
        self.dead_letter_queue_url: Optional[str] = self._env.get("DEAD_LETTER_QUEUE_URL") or None
        self.aws_region: str = self._env.get("AWS_REGION") or "us-east-1"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("No DATADOG_API_KEY set")
        return self.api_key

    @property
    def max_retries(self) -> int:
        return self._number("DATADOG_MAX_RETRIES", "2", int)

    @property
    def timeout(self) -> float:
        return self._number("DATADOG_TIMEOUT", "10", float)

    def _number(self, name: str, default: str, convert):
        value = self._env.get(name) or default
        try:
            return convert(value)
        except ValueError:
            raise ConfigurationError(f"Invalid {name}: {value!r}")
