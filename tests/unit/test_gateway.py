"""Unit tests for the request gateway.

Covers cache short-circuiting, coalescing of concurrent identical calls,
dispatch spacing, FIFO ordering and error classification.
"""

import asyncio
import gc
from typing import List

import httpx
import pytest

from smartlead_reporting.exceptions import (
    AuthInvalidError,
    RateLimitError,
    ServerError,
    TransportError,
    UpstreamErrorKind,
)
from smartlead_reporting.utils.http.cache import ResponseCache
from smartlead_reporting.utils.http.gateway import (
    RequestGateway,
    classify_response,
    classify_transport_failure,
)
from smartlead_reporting.utils.http.identity import RequestIdentity


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedTransport:
    """Answers each call with the next scripted response for its path."""

    def __init__(self, clock: FakeClock = None, **scripts):
        self.clock = clock
        self.scripts = {f"/{k}": list(v) for k, v in scripts.items()}
        self.calls: List[RequestIdentity] = []
        self.dispatch_times: List[float] = []

    async def send(self, identity):
        self.calls.append(identity)
        if self.clock is not None:
            self.dispatch_times.append(self.clock.now)
        # Let other coroutines run while the request is "on the wire"
        await asyncio.sleep(0)
        request = httpx.Request("GET", f"https://api.test.local{identity.path}")
        script = self.scripts.get(identity.path)
        item = script.pop(0) if script and len(script) > 1 else (script[0] if script else 200)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item, json={"path": identity.path}, request=request)
        return httpx.Response(200, json=item, request=request)


def make_gateway(transport, clock=None, min_interval=0.2, ttl=300.0):
    clock = clock or FakeClock()
    sleeps: List[float] = []

    async def fake_sleep(delay):
        sleeps.append(delay)
        clock.now += delay

    gateway = RequestGateway(
        transport,
        cache=ResponseCache(ttl=ttl, clock=clock),
        min_interval=min_interval,
        clock=clock,
        sleep=fake_sleep,
    )
    return gateway, sleeps


def ident(path: str, **params) -> RequestIdentity:
    return RequestIdentity.build(path, params or None)


class TestClassification:
    """Status and failure classification."""

    def _response(self, status):
        return httpx.Response(status, request=httpx.Request("GET", "https://x.test/a"))

    def test_success_is_not_an_error(self):
        assert classify_response(self._response(200)) is None
        assert classify_response(self._response(204)) is None

    def test_401_is_auth_invalid(self):
        error = classify_response(self._response(401))
        assert isinstance(error, AuthInvalidError)
        assert error.kind is UpstreamErrorKind.AUTH_INVALID
        assert "SMARTLEAD_API_KEY" in error.message

    def test_429_is_rate_limited(self):
        error = classify_response(self._response(429))
        assert isinstance(error, RateLimitError)
        assert error.kind is UpstreamErrorKind.RATE_LIMITED

    def test_other_status_is_server_error(self):
        error = classify_response(self._response(503))
        assert isinstance(error, ServerError)
        assert error.status_code == 503
        assert error.kind is UpstreamErrorKind.SERVER_ERROR
        assert "503" in error.message

    def test_transport_failure_is_unknown(self):
        error = classify_transport_failure(httpx.ConnectError("boom"))
        assert isinstance(error, TransportError)
        assert error.kind is UpstreamErrorKind.UNKNOWN
        assert error.status_code is None


class TestRequestGateway:
    """Behavior of the queue, cache and drain loop."""

    @pytest.mark.asyncio
    async def test_cache_hit_skips_transport(self):
        transport = ScriptedTransport()
        gateway, _ = make_gateway(transport)
        identity = ident("/campaigns")
        gateway.cache.put(identity, [{"id": 1}])

        assert await gateway.request(identity) == [{"id": 1}]
        assert transport.calls == []
        assert gateway.metrics.counters["cache_hits"] == 1

    @pytest.mark.asyncio
    async def test_success_is_cached(self):
        transport = ScriptedTransport(campaigns=[[{"id": 1}]])
        gateway, _ = make_gateway(transport)

        first = await gateway.request(ident("/campaigns"))
        second = await gateway.request(ident("/campaigns"))

        assert first == second == [{"id": 1}]
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_identical_requests_share_one_call(self):
        transport = ScriptedTransport(campaigns=[[{"id": 7}]])
        gateway, _ = make_gateway(transport)

        results = await asyncio.gather(
            *(gateway.request(ident("/campaigns")) for _ in range(12))
        )

        assert len(transport.calls) == 1
        assert all(r == [{"id": 7}] for r in results)
        assert gateway.metrics.counters["coalesced"] == 11

    @pytest.mark.asyncio
    async def test_dispatches_are_spaced_by_min_interval(self):
        clock = FakeClock()
        transport = ScriptedTransport(clock=clock)
        gateway, sleeps = make_gateway(transport, clock=clock, min_interval=0.2)

        await asyncio.gather(
            gateway.request(ident("/a")),
            gateway.request(ident("/b")),
            gateway.request(ident("/c")),
        )

        assert transport.dispatch_times == pytest.approx([0.0, 0.2, 0.4])
        assert sleeps == pytest.approx([0.2, 0.2])

    @pytest.mark.asyncio
    async def test_no_wait_when_interval_already_elapsed(self):
        clock = FakeClock()
        transport = ScriptedTransport(clock=clock)
        gateway, sleeps = make_gateway(transport, clock=clock, min_interval=0.2)

        await gateway.request(ident("/a"))
        clock.now += 5
        await gateway.request(ident("/b"))

        assert sleeps == []

    @pytest.mark.asyncio
    async def test_requests_dispatch_in_fifo_order(self):
        transport = ScriptedTransport()
        gateway, _ = make_gateway(transport)
        paths = ["/c", "/a", "/d", "/b"]

        await asyncio.gather(*(gateway.request(ident(p)) for p in paths))

        assert [c.path for c in transport.calls] == paths

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_type",
        [(401, AuthInvalidError), (429, RateLimitError), (500, ServerError)],
    )
    async def test_error_statuses_are_classified(self, status, error_type):
        transport = ScriptedTransport(campaigns=[status])
        gateway, _ = make_gateway(transport)

        with pytest.raises(error_type):
            await gateway.request(ident("/campaigns"))

    @pytest.mark.asyncio
    async def test_network_error_becomes_transport_error(self):
        transport = ScriptedTransport(campaigns=[httpx.ConnectError("unreachable")])
        gateway, _ = make_gateway(transport)

        with pytest.raises(TransportError) as exc_info:
            await gateway.request(ident("/campaigns"))
        assert exc_info.value.kind is UpstreamErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_undecodable_body_becomes_transport_error(self):
        class BadBody:
            calls = []

            async def send(self, identity):
                return httpx.Response(
                    200, content=b"<html>", request=httpx.Request("GET", "https://x.test/")
                )

        gateway, _ = make_gateway(BadBody())
        with pytest.raises(TransportError):
            await gateway.request(ident("/campaigns"))

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        transport = ScriptedTransport(campaigns=[500, [{"id": 1}]])
        gateway, _ = make_gateway(transport)

        with pytest.raises(ServerError):
            await gateway.request(ident("/campaigns"))
        assert len(gateway.cache) == 0

        assert await gateway.request(ident("/campaigns")) == [{"id": 1}]
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_coalesced_callers_all_receive_the_failure(self):
        transport = ScriptedTransport(campaigns=[401])
        gateway, _ = make_gateway(transport)

        results = await asyncio.gather(
            *(gateway.request(ident("/campaigns")) for _ in range(3)),
            return_exceptions=True,
        )

        assert len(transport.calls) == 1
        assert all(isinstance(r, AuthInvalidError) for r in results)

    @pytest.mark.asyncio
    async def test_drain_loop_stops_when_idle_and_restarts(self):
        transport = ScriptedTransport()
        gateway, _ = make_gateway(transport)

        await gateway.request(ident("/a"))
        await asyncio.sleep(0)
        assert not gateway.is_draining
        assert gateway.queue_depth == 0

        await gateway.request(ident("/b"))
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_failure_metrics_by_kind(self):
        transport = ScriptedTransport(a=[429], b=[500])
        gateway, _ = make_gateway(transport)

        await asyncio.gather(
            gateway.request(ident("/a")), gateway.request(ident("/b")), return_exceptions=True
        )

        counters = gateway.metrics.snapshot()["counters"]
        assert counters["failures.rate_limited"] == 1
        assert counters["failures.server_error"] == 1
        assert counters["dispatched"] == 2

    @pytest.mark.asyncio
    async def test_failure_after_every_caller_cancelled_is_not_reported(self):
        loop = asyncio.get_running_loop()
        reported = []
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            transport = ScriptedTransport(campaigns=[500])
            gateway, _ = make_gateway(transport)

            caller = asyncio.ensure_future(gateway.request(ident("/campaigns")))
            await asyncio.sleep(0)
            caller.cancel()
            with pytest.raises(asyncio.CancelledError):
                await caller

            while gateway.is_draining:
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            gc.collect()

            assert len(transport.calls) == 1
            assert gateway.metrics.snapshot()["counters"]["failures.server_error"] == 1
            assert not [c for c in reported if "never retrieved" in c.get("message", "")]
        finally:
            loop.set_exception_handler(previous_handler)
