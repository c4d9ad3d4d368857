"""Shared fixtures: an in-memory fake of the customers endpoint."""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from customer_directory.application.creation_form import CreationFormController
from customer_directory.application.directory_cache import DirectoryCache
from customer_directory.infrastructure.client import CustomerApiClient
from customer_directory.presentation.page import DirectoryPage

BASE_URL = "http://directory.test"

ADA = {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}
GRACE = {"firstName": "Grace", "lastName": "Hopper", "email": "grace@example.com"}


class FakeCustomersEndpoint:
    """
    Stands in for GET/POST /api/customers behind httpx.MockTransport.

    Responses can be overridden per method, gated on an asyncio.Event to keep
    a request pending, or replaced by a transport exception.
    """

    def __init__(self, customers: Optional[List[Dict[str, Any]]] = None):
        self.customers = list(customers or [])
        self.requests: List[httpx.Request] = []
        self.overrides: Dict[str, Dict[str, Any]] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.failures: Dict[str, Callable[[httpx.Request], Exception]] = {}

    def respond(self, method: str, status_code: int, **kwargs) -> None:
        self.overrides[method] = {"status_code": status_code, **kwargs}

    def fail(self, method: str, exc_factory: Callable[[httpx.Request], Exception]) -> None:
        self.failures[method] = exc_factory

    def hold(self, method: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[method] = gate
        return gate

    def calls(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        gate = self.gates.get(request.method)
        if gate is not None:
            await gate.wait()
        if request.method in self.failures:
            raise self.failures[request.method](request)
        if request.method in self.overrides:
            return httpx.Response(**self.overrides[request.method])
        if request.method == "GET":
            return httpx.Response(200, json=self.customers)
        if request.method == "POST":
            payload = json.loads(request.content)
            self.customers.append(payload)
            return httpx.Response(201, json=payload)
        return httpx.Response(405, json={"code": "method_not_allowed", "message": "Method not allowed"})


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() holds."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def endpoint() -> FakeCustomersEndpoint:
    return FakeCustomersEndpoint()


@pytest.fixture
async def api_client(endpoint):
    client = CustomerApiClient(BASE_URL, transport=httpx.MockTransport(endpoint.handler))
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def cache(api_client) -> DirectoryCache:
    return DirectoryCache(api_client)


@pytest.fixture
def form(api_client, cache) -> CreationFormController:
    return CreationFormController(api_client, cache)


@pytest.fixture
def page(cache, form) -> DirectoryPage:
    return DirectoryPage(cache, form)
