"""Rate-limited, cached request gateway for the Smartlead API.

Every upstream call goes through a single :class:`RequestGateway`:

- the response cache is consulted first; a hit never touches the queue
- a miss is appended to one FIFO queue as a :class:`PendingRequest`
- a drain loop dispatches queued requests one at a time, never sooner than
  the configured minimum interval after the previous dispatch
- successful payloads are cached before callers are resolved; failures are
  classified once, here, and never cached

Concurrent requests for an identity that is already queued or in flight
share the pending result instead of queueing a second call. The drain loop
only exists while there is queued work and is restarted by the next miss.
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Protocol

import httpx

from ...exceptions import (
    AuthInvalidError,
    RateLimitError,
    ServerError,
    TransportError,
    UpstreamError,
)
from .cache import ResponseCache
from .identity import RequestIdentity

logger = logging.getLogger(__name__)

_MISSING = object()


def _retrieve_exception(future: asyncio.Future) -> None:
    # Every caller may have been cancelled before a failure arrived
    if not future.cancelled():
        future.exception()


class Transport(Protocol):
    """Anything that can send an identity and return an httpx response."""

    async def send(self, identity: RequestIdentity) -> httpx.Response: ...


def classify_response(response: httpx.Response) -> Optional[UpstreamError]:
    """Map a non-2xx response to its upstream error.

    :param response: Response returned by the transport
    :type response: httpx.Response
    :return: Classified error, or None for a successful response
    :rtype: Optional[UpstreamError]
    """
    status = response.status_code
    if 200 <= status < 300:
        return None
    if status == 401:
        return AuthInvalidError()
    if status == 429:
        return RateLimitError()
    return ServerError(status, response.reason_phrase or None)


def classify_transport_failure(error: Exception) -> UpstreamError:
    """Map a failure that produced no usable response to ``TransportError``."""
    if isinstance(error, UpstreamError):
        return error
    return TransportError(f"Request failed: {error}", original_error=error)


class GatewayMetrics:
    """Counters describing gateway activity."""

    def __init__(self):
        self.counters: Dict[str, int] = defaultdict(int)
        self.last_queue_wait: float = 0.0

    def record(self, name: str) -> None:
        self.counters[name] += 1

    def record_failure(self, error: UpstreamError) -> None:
        self.counters[f"failures.{error.kind.value}"] += 1

    def record_queue_wait(self, wait_time: float) -> None:
        self.last_queue_wait = wait_time
        if wait_time > 5.0:
            logger.warning("Long queue wait: %.2fs", wait_time)

    def snapshot(self) -> Dict[str, Any]:
        return {"counters": dict(self.counters), "last_queue_wait": self.last_queue_wait}


@dataclass
class PendingRequest:
    """A queued call, consumed exactly once by the drain loop."""

    identity: RequestIdentity
    future: "asyncio.Future[Any]"
    enqueued_at: float


class RequestGateway:
    """Serializes, throttles and caches calls to the Smartlead API.

    :param transport: Object performing the HTTP call
    :type transport: Transport
    :param cache: Response cache shared by all calls through this gateway
    :type cache: ResponseCache
    :param min_interval: Minimum seconds between two dispatches
    :type min_interval: float
    :param clock: Monotonic clock, injectable for tests
    :type clock: Callable[[], float]
    :param sleep: Coroutine used to wait between dispatches
    :type sleep: Callable[[float], Awaitable[Any]]
    """

    def __init__(
        self,
        transport: Transport,
        cache: Optional[ResponseCache] = None,
        min_interval: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.transport = transport
        self.cache = cache if cache is not None else ResponseCache()
        self.min_interval = min_interval
        self.metrics = GatewayMetrics()
        self._clock = clock
        self._sleep = sleep
        self._queue: Deque[PendingRequest] = deque()
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}
        self._drain_task: Optional["asyncio.Task[None]"] = None
        self._last_dispatch: Optional[float] = None

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for the drain loop."""
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        """Whether the drain loop is currently running."""
        return self._drain_task is not None and not self._drain_task.done()

    async def request(self, identity: RequestIdentity) -> Any:
        """Return the payload for ``identity``.

        :param identity: Request to perform
        :type identity: RequestIdentity
        :return: Decoded JSON payload
        :raises UpstreamError: Classified failure of the upstream call
        """
        cached = self.cache.get(identity, _MISSING)
        if cached is not _MISSING:
            self.metrics.record("cache_hits")
            logger.debug("Cache hit for %s", identity.key)
            return cached

        pending = self._inflight.get(identity.key)
        if pending is None:
            pending = asyncio.get_running_loop().create_future()
            pending.add_done_callback(_retrieve_exception)
            self._inflight[identity.key] = pending
            self._queue.append(
                PendingRequest(identity=identity, future=pending, enqueued_at=self._clock())
            )
            self.metrics.record("enqueued")
            logger.debug("Queued %s (depth=%d)", identity.key, self.queue_depth)
            self._ensure_draining()
        else:
            self.metrics.record("coalesced")
            logger.debug("Joining pending request for %s", identity.key)

        # A cancelled caller must not cancel the result other callers share
        return await asyncio.shield(pending)

    def _ensure_draining(self) -> None:
        if not self.is_draining:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._queue:
                item = self._queue.popleft()
                try:
                    await self._process(item)
                finally:
                    if self._inflight.get(item.identity.key) is item.future:
                        del self._inflight[item.identity.key]
        finally:
            self._drain_task = None

    async def _process(self, item: PendingRequest) -> None:
        cached = self.cache.get(item.identity, _MISSING)
        if cached is not _MISSING:
            self.metrics.record("cache_hits")
            self._resolve(item, cached)
            return

        if self._last_dispatch is not None:
            wait = self._last_dispatch + self.min_interval - self._clock()
            if wait > 0:
                await self._sleep(wait)

        self._last_dispatch = self._clock()
        self.metrics.record_queue_wait(self._last_dispatch - item.enqueued_at)
        self.metrics.record("dispatched")

        try:
            response = await self.transport.send(item.identity)
            error = classify_response(response)
            if error is not None:
                raise error
            payload = response.json()
        except UpstreamError as e:
            self._reject(item, e)
            return
        except Exception as e:
            # Network errors, timeouts and undecodable bodies
            self._reject(item, classify_transport_failure(e))
            return

        self.cache.put(item.identity, payload)
        self._resolve(item, payload)

    def _resolve(self, item: PendingRequest, payload: Any) -> None:
        if not item.future.done():
            item.future.set_result(payload)

    def _reject(self, item: PendingRequest, error: UpstreamError) -> None:
        self.metrics.record_failure(error)
        logger.debug("Request %s failed: %s", item.identity.key, error.message)
        if not item.future.done():
            item.future.set_exception(error)

    def clear_cache(self) -> None:
        """Drop all cached responses."""
        self.cache.clear()
