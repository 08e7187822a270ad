# lambdas/datadog_forwarder/errors.py


class ForwarderError(Exception):
    """Base class for errors raised by the DataDog forwarder."""
    pass


class ConfigurationError(ForwarderError):
    """A required secret or credential is missing."""
    pass


class DeliveryError(ForwarderError):
    """Sending a batch to DataDog failed."""
    pass


class DeliveryTransportError(DeliveryError):
    """Network-level failure (connection reset, timeout, DNS). Retryable."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class DeliveryRejectedError(DeliveryError):
    """DataDog answered with a non-2xx status. Never retried."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Failed to send logs with status {status}: {body}")
        self.status = status
        self.body = body


class DeadLetterForwardingError(ForwarderError):
    """The dead-letter queue did not accept the envelope."""
    pass
