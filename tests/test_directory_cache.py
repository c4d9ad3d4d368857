import asyncio

import httpx

from customer_directory.domain.models import ApiError, Customer
from customer_directory.domain.states import LOADING, Error, Loading, Ready
from conftest import ADA, GRACE, wait_until


class TestLoad:
    async def test_starts_in_loading(self, cache, endpoint):
        assert cache.state == LOADING
        assert endpoint.calls("GET") == 0

    async def test_ready_with_customers(self, cache, endpoint):
        endpoint.customers = [ADA]
        state = await cache.load()
        assert state == Ready((Customer.model_validate(ADA),))
        assert cache.state == state
        assert cache.customers[0].email == "ada@example.com"

    async def test_empty_list_is_ready(self, cache, endpoint):
        state = await cache.load()
        assert state == Ready(())
        assert not cache.is_loading

    async def test_concurrent_loads_share_one_request(self, cache, endpoint):
        gate = endpoint.hold("GET")
        first = asyncio.ensure_future(cache.load())
        second = asyncio.ensure_future(cache.load())
        await wait_until(lambda: endpoint.calls("GET") == 1)
        assert isinstance(cache.state, Loading)
        gate.set()
        results = await asyncio.gather(first, second)
        assert results[0] == results[1] == Ready(())
        assert endpoint.calls("GET") == 1

    async def test_fresh_data_is_served_without_refetch(self, cache, endpoint):
        await cache.load()
        await cache.load()
        assert endpoint.calls("GET") == 1

    async def test_server_error_becomes_error_state(self, cache, endpoint):
        endpoint.respond("GET", 500, json={"code": "internal", "message": "boom"})
        state = await cache.load()
        assert state == Error(ApiError(code="internal", message="boom"))

    async def test_unparseable_error_body_still_errors(self, cache, endpoint):
        endpoint.respond("GET", 500, content=b"Internal Server Error")
        state = await cache.load()
        assert isinstance(state, Error)
        assert state.message == "Request failed with status 500"

    async def test_transport_failure_becomes_error_state(self, cache, endpoint):
        endpoint.fail("GET", lambda request: httpx.ConnectError("unreachable", request=request))
        state = await cache.load()
        assert isinstance(state, Error)
        assert state.error.code == "network_error"

    async def test_load_after_error_retries(self, cache, endpoint):
        endpoint.respond("GET", 500, json={"code": "internal", "message": "boom"})
        await cache.load()
        del endpoint.overrides["GET"]
        state = await cache.load()
        assert state == Ready(())
        assert endpoint.calls("GET") == 2

    async def test_cancelled_waiter_does_not_cancel_read(self, cache, endpoint):
        gate = endpoint.hold("GET")
        waiter = asyncio.ensure_future(cache.load())
        await wait_until(lambda: endpoint.calls("GET") == 1)
        waiter.cancel()
        gate.set()
        state = await cache.load()
        assert state == Ready(())
        assert endpoint.calls("GET") == 1


class TestInvalidate:
    async def test_refetches_replacing_collection(self, cache, endpoint):
        endpoint.customers = [ADA]
        await cache.load()
        endpoint.customers = [ADA, GRACE]
        state = await cache.invalidate()
        assert len(state.data) == 2
        assert endpoint.calls("GET") == 2

    async def test_moves_ready_to_loading(self, cache, endpoint):
        await cache.load()
        refresh = cache.invalidate()
        assert isinstance(cache.state, Loading)
        await refresh
        assert isinstance(cache.state, Ready)

    async def test_moves_error_to_loading(self, cache, endpoint):
        endpoint.respond("GET", 500, json={"code": "internal", "message": "boom"})
        await cache.load()
        del endpoint.overrides["GET"]
        refresh = cache.invalidate()
        assert isinstance(cache.state, Loading)
        assert await refresh == Ready(())

    async def test_coalesces_while_loading(self, cache, endpoint):
        gate = endpoint.hold("GET")
        pending = asyncio.ensure_future(cache.load())
        await wait_until(lambda: endpoint.calls("GET") == 1)
        first = cache.invalidate()
        second = cache.invalidate()
        assert first is second
        gate.set()
        await asyncio.gather(pending, first)
        assert endpoint.calls("GET") == 1


class TestSubscribe:
    async def test_listener_sees_each_transition(self, cache, endpoint):
        seen = []
        cache.subscribe(seen.append)
        await cache.load()
        await cache.invalidate()
        assert seen == [Ready(()), LOADING, Ready(())]

    async def test_unsubscribe_stops_notifications(self, cache, endpoint):
        seen = []
        unsubscribe = cache.subscribe(seen.append)
        unsubscribe()
        await cache.load()
        assert seen == []

    async def test_failing_listener_does_not_break_cache(self, cache, endpoint):
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        cache.subscribe(broken)
        cache.subscribe(seen.append)
        state = await cache.load()
        assert state == Ready(())
        assert seen == [Ready(())]
