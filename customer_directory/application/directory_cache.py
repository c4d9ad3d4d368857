"""
Directory cache: the authoritative in-memory copy of the customer list.

State moves Loading -> Ready | Error after a read, and back to Loading on
invalidation. At most one read is in flight per cache; overlapping
load()/invalidate() calls share it.
"""
import asyncio
from typing import Callable, List, Optional

from shared.core import get_logger
from customer_directory.domain.models import ApiError, CustomerCollection
from customer_directory.domain.states import LOADING, Error, FetchState, Loading, Ready
from customer_directory.infrastructure.client import CustomerApiClient, DirectoryClientError

logger = get_logger(__name__)

Listener = Callable[[FetchState], None]


class DirectoryCache:
    def __init__(self, client: CustomerApiClient):
        self._client = client
        self._state: FetchState = LOADING
        self._stale = True
        self._inflight: Optional["asyncio.Task[FetchState]"] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Loading) or self._inflight is not None

    @property
    def customers(self) -> Optional[CustomerCollection]:
        if isinstance(self._state, Ready):
            return self._state.data
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> FetchState:
        """Fetch the collection unless fresh data is held; joins an in-flight read."""
        if self._inflight is None and not self._stale and isinstance(self._state, Ready):
            return self._state
        return await asyncio.shield(self._ensure_fetch())

    def invalidate(self) -> "asyncio.Future[FetchState]":
        """Mark the data stale and refetch; coalesces onto an in-flight read."""
        self._stale = True
        if self._inflight is not None:
            logger.debug("Invalidation coalesced onto in-flight read")
            return self._inflight
        return self._ensure_fetch()

    def _ensure_fetch(self) -> "asyncio.Task[FetchState]":
        if self._inflight is None:
            # Task is registered before listeners run so re-entrant loads join it
            self._inflight = asyncio.ensure_future(self._fetch())
            self._set_state(LOADING)
        return self._inflight

    async def _fetch(self) -> FetchState:
        try:
            customers = await self._client.list_customers()
        except DirectoryClientError as e:
            logger.warning(
                f"Customer list fetch failed: {e.message}",
                extra={'extra_fields': {'code': e.code}}
            )
            new_state: FetchState = Error(e.to_api_error())
        except Exception:
            logger.exception("Unexpected failure while fetching customers")
            new_state = Error(ApiError(code="unexpected_error", message="Failed to load customers"))
        else:
            logger.info(
                "Customer list loaded",
                extra={'extra_fields': {'count': len(customers)}}
            )
            new_state = Ready(customers)
        finally:
            self._inflight = None
        self._stale = not isinstance(new_state, Ready)
        self._set_state(new_state)
        return new_state

    def _set_state(self, new_state: FetchState) -> None:
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Directory listener raised")
