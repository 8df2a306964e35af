"""
Error types for logship.

Every error is delivered through the completion callback or the returned
DeliveryResult; none of them is raised out of LogglyClient.send().
"""

import httpx


class LogShipError(Exception):
    """Base class for all logship errors."""


class ValidationError(LogShipError, ValueError):
    """Message or token missing; detected before any I/O."""


class EncodingError(LogShipError, ValueError):
    """Structured record could not be serialized to JSON."""


class DeliveryError(LogShipError):
    """
    Terminal failure after the retry ceiling was reached.

    Attributes:
        status_code: Last HTTP status observed, or None if the last attempt
            failed at the transport level
        attempts: Total number of network attempts made
        last_error: Last transport exception, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 0,
        last_error: httpx.HTTPError | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts
        self.last_error = last_error
