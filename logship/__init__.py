"""
logship - Client library for shipping logs to Loggly-style HTTP endpoints.

This package provides:
- LogglyClient: Non-blocking text/JSON log delivery with exponential backoff
- LogglyHandler: Standard logging handler backed by a LogglyClient
- resilience: Retry ceiling and backoff calculation

Usage:
    from logship import LogglyClient

    client = LogglyClient(token="abc123", default_tags=["env:prod"])
    client.send("hello", tags=["svc:api"], on_complete=lambda result, error: ...)
"""

from .client import (
    DeliveryResult,
    LogglyClient,
    from_env,
    reset_shared_client,
    shared_client,
)
from .encoding import CONTENT_TYPE_RECORD, CONTENT_TYPE_TEXT, LogRequest
from .endpoint import DEFAULT_ENDPOINT, resolve_url
from .errors import DeliveryError, EncodingError, LogShipError, ValidationError
from .handler import LogglyHandler, setup_logging
from .resilience import MAX_RETRIES, RETRY_BASE_SECONDS, RetryConfig, RetryPolicy

__all__ = [
    # Client
    "LogglyClient",
    "DeliveryResult",
    "shared_client",
    "reset_shared_client",
    "from_env",
    # Wire format
    "DEFAULT_ENDPOINT",
    "resolve_url",
    "LogRequest",
    "CONTENT_TYPE_TEXT",
    "CONTENT_TYPE_RECORD",
    # Errors
    "LogShipError",
    "ValidationError",
    "EncodingError",
    "DeliveryError",
    # Logging
    "LogglyHandler",
    "setup_logging",
    # Resilience
    "RetryConfig",
    "RetryPolicy",
    "MAX_RETRIES",
    "RETRY_BASE_SECONDS",
]

__version__ = "1.0.0"
