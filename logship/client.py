"""
logship client - non-blocking delivery of log events to Loggly-style endpoints.

Each send is resolved, encoded and validated on the caller's thread, then
handed to a background asyncio loop that POSTs it and retries with
exponential backoff until the endpoint answers 200 or the retry ceiling is
reached. The completion callback fires exactly once per send.

Usage:
    from logship import LogglyClient

    # Option 1: Callback style (fire-and-forget when on_complete is omitted)
    client = LogglyClient(token="abc123", default_tags=["env:prod"])
    client.send("hello", tags=["svc:api"])
    client.send({"level": "error", "msg": "boom"}, on_complete=print)

    # Option 2: Awaitable
    outcome = await client.deliver({"level": "info", "msg": "started"})
    if outcome.error:
        ...

    # Option 3: Process-wide shared client
    from logship import shared_client

    shared_client().token = "abc123"
    shared_client().send("hello")
"""

import asyncio
import atexit
import concurrent.futures
import functools
import logging
import os
import threading
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from .encoding import LogRequest, encode_message, validate
from .endpoint import DEFAULT_ENDPOINT, as_tag_list, check_url, resolve_url
from .errors import DeliveryError, EncodingError, LogShipError, ValidationError
from .resilience import RetryConfig, RetryPolicy

logger = logging.getLogger(__name__)

# Completion callback: (response body, error) - exactly one of them is set
Completion = Callable[[bytes | None, Exception | None], None]

Message = str | Mapping[str, Any]

# Retries must always reach the origin, never a cached response
NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}

DEFAULT_TIMEOUT = 60.0
SHUTDOWN_TIMEOUT = 5.0


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send: response body on success, error otherwise."""

    result: bytes | None = None
    error: LogShipError | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class LogglyClient:
    """
    Log shipping client for a single Loggly account.

    Configuration (``token``, ``default_tags``) is read without locking by
    in-flight sends; set it before sending and do not change it while
    deliveries are running.
    """

    def __init__(
        self,
        token: str | None = None,
        default_tags: Iterable[str] | None = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        """
        Initialize the client.

        Args:
            token: Account token from Loggly (required before sending)
            default_tags: Tags prepended to every submission
            endpoint: Base ingestion URL, the token is appended to it
            timeout: Per-attempt HTTP timeout in seconds
            retry: Retry ceiling and backoff settings
            transport: Custom httpx transport (tests, proxies)
            sleep: Coroutine function used to wait out backoff delays
        """
        self.token = token
        self.default_tags = default_tags
        self.endpoint = endpoint
        self.timeout = timeout
        self.retry_policy = RetryPolicy(retry)

        self._transport = transport
        self._sleep = sleep or asyncio.sleep

        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: threading.Thread | None = None
        self._pending: set[concurrent.futures.Future] = set()

        # Stats
        self._sent_count = 0
        self._failed_count = 0
        self._rejected_count = 0
        self._last_error: str | None = None

    @property
    def token(self) -> str | None:
        return self._token

    @token.setter
    def token(self, value: str | None):
        self._token = value

    @property
    def default_tags(self) -> list[str]:
        return self._default_tags

    @default_tags.setter
    def default_tags(self, value: Iterable[str] | str | None):
        self._default_tags = as_tag_list(value)

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        with self._lock:
            return len(self._pending)

    def url_for(self, tags: Iterable[str] | None = None) -> str:
        """Resolve the destination URL for the given per-call tags."""
        return resolve_url(self.token, self.default_tags, tags, endpoint=self.endpoint)

    def prepare(self, message: Message, tags: Iterable[str] | None = None) -> LogRequest:
        """
        Validate and encode a message into a request.

        Raises:
            ValidationError: message is None, of an unsupported type, no token
                is set, or the token/tags do not form a sendable URL
            EncodingError: structured record is not JSON serializable
        """
        validate(message, self.token)
        return encode_message(message, check_url(self.url_for(tags)))

    def send(
        self,
        message: Message,
        tags: Iterable[str] | None = None,
        on_complete: Completion | None = None,
    ) -> concurrent.futures.Future | None:
        """
        Ship a message or structured record without blocking.

        ``on_complete(result, error)`` is called exactly once: on the calling
        thread when validation or encoding fails, otherwise on the client's
        background thread once delivery succeeds or the retries run out.
        Errors are dropped when no callback is given.

        Background callbacks run on the single ``logship-delivery`` thread
        that drives every delivery of this client; keep them short and never
        block in them (for example on ``send(...).result()``), or all
        in-flight deliveries stall with them.

        Returns:
            Future resolving to a DeliveryResult, or None if the message was
            rejected before scheduling.
        """
        try:
            request = self.prepare(message, tags)
        except (ValidationError, EncodingError) as e:
            self._record_rejected(e)
            self._complete(on_complete, None, e)
            return None

        future = asyncio.run_coroutine_threadsafe(
            self._deliver_request(request), self._ensure_loop()
        )
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(functools.partial(self._on_delivery_done, on_complete))
        return future

    def log_message(
        self,
        message: str,
        tags: Iterable[str] | None = None,
        on_complete: Completion | None = None,
    ) -> concurrent.futures.Future | None:
        """Ship a plain-text message."""
        if message is not None and not isinstance(message, str):
            return self._reject(on_complete, f"Expected str message, got {type(message).__name__}")
        return self.send(message, tags, on_complete)

    def log_record(
        self,
        record: Mapping[str, Any],
        tags: Iterable[str] | None = None,
        on_complete: Completion | None = None,
    ) -> concurrent.futures.Future | None:
        """Ship a structured record as JSON."""
        if record is not None and not isinstance(record, Mapping):
            return self._reject(on_complete, f"Expected mapping record, got {type(record).__name__}")
        return self.send(record, tags, on_complete)

    async def deliver(self, message: Message, tags: Iterable[str] | None = None) -> DeliveryResult:
        """
        Ship a message on the running event loop and return the outcome.

        Never raises for validation, encoding or delivery failures; they are
        reported through ``DeliveryResult.error``.
        """
        try:
            request = self.prepare(message, tags)
        except (ValidationError, EncodingError) as e:
            self._record_rejected(e)
            return DeliveryResult(error=e)
        return await self._deliver_request(request)

    async def _deliver_request(self, request: LogRequest) -> DeliveryResult:
        """Send ``request`` until it gets a 200 or the retry ceiling is hit."""
        policy = self.retry_policy
        status_code: int | None = None
        last_error: httpx.HTTPError | None = None
        attempts = 0

        http = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers=NO_CACHE_HEADERS,
        )
        try:
            retry = 0
            while True:
                attempts += 1
                logger.debug(f"Delivery attempt {attempts}/{policy.total_attempts} to {request.url}")

                try:
                    response = await http.request(
                        request.method,
                        request.url,
                        content=request.body,
                        headers=request.headers,
                    )
                except httpx.HTTPError as e:
                    status_code = None
                    last_error = e
                    reason = str(e) or type(e).__name__
                else:
                    if response.status_code == 200:
                        with self._lock:
                            self._sent_count += 1
                        return DeliveryResult(result=response.content, attempts=attempts)
                    status_code = response.status_code
                    last_error = None
                    reason = f"HTTP {status_code}"

                if not policy.should_retry(retry):
                    break

                delay = policy.schedule(retry)
                logger.warning(f"Delivery attempt {attempts} failed ({reason}), retrying in {delay:.1f}s")
                await self._sleep(delay)
                retry += 1
        finally:
            # A caller-supplied transport outlives this delivery
            if self._transport is None:
                await http.aclose()

        policy.record_exhausted()
        logger.error(f"Delivery failed after {attempts} attempts: {reason}")

        error = DeliveryError(
            f"Delivery failed after {attempts} attempts: {reason}",
            status_code=status_code,
            attempts=attempts,
            last_error=last_error,
        )
        error.__cause__ = last_error
        with self._lock:
            self._failed_count += 1
            self._last_error = str(error)
        return DeliveryResult(error=error, attempts=attempts)

    def _on_delivery_done(self, on_complete: Completion | None, future: concurrent.futures.Future):
        with self._lock:
            self._pending.discard(future)

        try:
            outcome = future.result()
        except Exception as e:
            # Cancelled at shutdown, or an unexpected failure inside the loop
            logger.error(f"Delivery aborted: {e!r}")
            error = DeliveryError(f"Delivery aborted: {e!r}")
            error.__cause__ = e
            outcome = DeliveryResult(error=error)

        self._complete(on_complete, outcome.result, outcome.error)

    def _complete(self, on_complete: Completion | None, result: bytes | None, error: Exception | None):
        if on_complete is None:
            return
        try:
            on_complete(result, error)
        except Exception:
            logger.warning("Completion callback raised", exc_info=True)

    def _reject(self, on_complete: Completion | None, message: str) -> None:
        error = ValidationError(message)
        self._record_rejected(error)
        self._complete(on_complete, None, error)
        return None

    def _record_rejected(self, error: LogShipError):
        logger.debug(f"Rejected log submission: {error}")
        with self._lock:
            self._rejected_count += 1
            self._last_error = str(error)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the background delivery loop on first use."""
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=_run_loop, args=(loop,), name="logship-delivery", daemon=True
                )
                thread.start()
                self._loop = loop
                self._loop_thread = thread
                # Unregistered by close()
                atexit.register(self.close, timeout=SHUTDOWN_TIMEOUT)
            return self._loop

    def get_stats(self) -> dict:
        """Get shipping statistics."""
        with self._lock:
            stats = {
                "sent_count": self._sent_count,
                "failed_count": self._failed_count,
                "rejected_count": self._rejected_count,
                "pending": len(self._pending),
                "last_error": self._last_error,
            }
        stats["retry"] = self.retry_policy.get_stats()
        return stats

    def close(self, timeout: float | None = None):
        """
        Wait for in-flight deliveries, then stop the background loop.

        Deliveries still running after ``timeout`` seconds are aborted and
        their callbacks receive a DeliveryError.
        """
        atexit.unregister(self.close)

        with self._lock:
            pending = list(self._pending)

        if pending:
            _, not_done = concurrent.futures.wait(pending, timeout=timeout)
            for future in not_done:
                future.cancel()

        with self._lock:
            loop, thread = self._loop, self._loop_thread
            self._loop = None
            self._loop_thread = None

        if loop is not None:
            loop.call_soon_threadsafe(loop.stop)
            if thread is not None:
                thread.join(timeout=SHUTDOWN_TIMEOUT)


def _run_loop(loop: asyncio.AbstractEventLoop):
    """Background thread body: run until stopped, then cancel leftovers."""
    asyncio.set_event_loop(loop)
    try:
        loop.run_forever()
    finally:
        tasks = asyncio.all_tasks(loop)
        for task in tasks:
            task.cancel()
        if tasks:
            loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


_shared_client: LogglyClient | None = None
_shared_lock = threading.Lock()


def shared_client() -> LogglyClient:
    """
    Get the process-wide client, creating it on first call.

    The shared client starts without a token; set ``shared_client().token``
    before sending.
    """
    global _shared_client
    if _shared_client is None:
        with _shared_lock:
            if _shared_client is None:
                _shared_client = LogglyClient()
                logger.info("Created shared Loggly client")
    return _shared_client


def reset_shared_client():
    """Close and forget the shared client. Mainly for tests."""
    global _shared_client
    with _shared_lock:
        client, _shared_client = _shared_client, None
    if client is not None:
        client.close(timeout=SHUTDOWN_TIMEOUT)


# Convenience for environment-based configuration
def from_env(**client_kwargs) -> LogglyClient:
    """
    Create a LogglyClient from environment variables.

    Environment variables:
        LOGGLY_TOKEN: Account token (required)
        LOGGLY_TAGS: Comma-separated default tags (optional)
        LOGGLY_ENDPOINT: Base ingestion URL (optional)

    Args:
        **client_kwargs: Additional args passed to LogglyClient

    Returns:
        Configured LogglyClient instance
    """
    token = os.environ.get("LOGGLY_TOKEN")
    if not token:
        raise ValueError("LOGGLY_TOKEN environment variable required")

    tags_env = os.environ.get("LOGGLY_TAGS", "")
    tags = [tag.strip() for tag in tags_env.split(",") if tag.strip()]
    endpoint = os.environ.get("LOGGLY_ENDPOINT", DEFAULT_ENDPOINT)

    return LogglyClient(token=token, default_tags=tags, endpoint=endpoint, **client_kwargs)
