"""
Python logging integration for logship.

Ships every ``logging.LogRecord`` as a structured record, so existing
``logger.info(...)`` calls reach Loggly without code changes.
"""

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from .client import LogglyClient

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        "asctime",
    }
)


class LogglyHandler(logging.Handler):
    """
    Logging handler that sends records through a LogglyClient.

    Records are shipped one per request; the client's retry loop applies to
    each of them independently.
    """

    def __init__(
        self,
        client: LogglyClient,
        tags: Iterable[str] | None = None,
        min_level: int = logging.INFO,
    ):
        """
        Initialize the handler.

        Args:
            client: LogglyClient instance
            tags: Per-record tags added after the client's default tags
            min_level: Minimum log level to ship (default: INFO)
        """
        super().__init__(level=min_level)
        self.client = client
        self.tags = list(tags) if tags else []

    def to_record(self, record: logging.LogRecord) -> dict:
        """Convert a LogRecord into a JSON-serializable dict."""
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.format(record),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in entry:
                continue
            # Only include serializable values
            if isinstance(value, str | int | float | bool | type(None)):
                entry[key] = value
            elif isinstance(value, list | dict):
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    pass

        return entry

    def emit(self, record: logging.LogRecord):
        """Emit a log record."""
        # Records produced by logship itself would loop back through here
        if record.name.startswith("logship"):
            return
        try:
            self.client.send(self.to_record(record), tags=self.tags)
        except Exception:
            self.handleError(record)


def setup_logging(
    token: str,
    tags: Iterable[str] | None = None,
    min_level: int = logging.INFO,
    also_console: bool = True,
    **client_kwargs,
) -> LogglyClient:
    """
    Set up Python logging to ship logs to Loggly.

    Args:
        token: Loggly account token
        tags: Default tags for every shipped record
        min_level: Minimum log level to ship
        also_console: Also log to console (default: True)
        **client_kwargs: Additional args passed to LogglyClient

    Returns:
        LogglyClient instance (for stats/close)

    Example:
        from logship import setup_logging
        import logging

        client = setup_logging(token=os.environ["LOGGLY_TOKEN"], tags=["env:prod"])

        logger = logging.getLogger(__name__)
        logger.error("Payment failed", extra={"user_id": "u123"})
    """
    client = LogglyClient(token=token, default_tags=tags, **client_kwargs)

    handler = LogglyHandler(client, min_level=min_level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    if also_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger.addHandler(console_handler)

    # Set level if not already set
    if root_logger.level == logging.NOTSET:
        root_logger.setLevel(min_level)

    return client
