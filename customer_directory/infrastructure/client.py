"""HTTP client for the customers collaborator endpoint."""
from typing import Optional

import httpx
from pydantic import ValidationError

from shared.core import get_logger, RequestLoggingHooks
from customer_directory.core_settings import Settings, get_settings
from customer_directory.domain.models import ApiError, Customer, CustomerCollection

logger = get_logger(__name__)


class DirectoryClientError(Exception):
    """Base class for every failure raised by CustomerApiClient."""

    code = "client_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_api_error(self) -> ApiError:
        return ApiError(code=self.code, message=self.message)


class CustomerApiError(DirectoryClientError):
    """Non-2xx response; carries the parsed ApiError body."""

    def __init__(self, status_code: int, error: ApiError, server_message: Optional[str] = None):
        super().__init__(error.message, code=error.code)
        self.status_code = status_code
        self.error = error
        # Only set when the response body actually supplied a message
        self.server_message = server_message

    def to_api_error(self) -> ApiError:
        return self.error


class CustomerTransportError(DirectoryClientError):
    """Network failure, timeout, or a success response with an unusable body."""

    code = "network_error"


def parse_api_error(response: httpx.Response) -> CustomerApiError:
    """Build a CustomerApiError from a failed response without ever raising."""
    status = response.status_code
    fallback_code = f"http_{status}"
    fallback_message = f"Request failed with status {status}"
    try:
        body = response.json()
    except ValueError:
        logger.warning(
            "Error response body is not JSON",
            extra={'extra_fields': {'status_code': status}}
        )
        return CustomerApiError(status, ApiError(code=fallback_code, message=fallback_message))

    if not isinstance(body, dict):
        return CustomerApiError(status, ApiError(code=fallback_code, message=fallback_message))

    code = body.get("code")
    message = body.get("message")
    server_message = message if isinstance(message, str) and message else None
    error = ApiError(
        code=code if isinstance(code, str) and code else fallback_code,
        message=server_message or fallback_message,
    )
    return CustomerApiError(status, error, server_message)


class CustomerApiClient:
    """
    Thin async wrapper over GET/POST on the customers collection.

    Every failure surfaces as a DirectoryClientError subclass so callers
    only have one exception family to convert into state.
    """

    def __init__(
        self,
        base_url: str,
        customers_path: str = "/api/customers",
        timeout: Optional[float] = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.customers_path = customers_path
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks=RequestLoggingHooks(__name__).as_event_hooks(),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CustomerApiClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.API_BASE_URL,
            customers_path=settings.CUSTOMERS_PATH,
            timeout=settings.HTTP_TIMEOUT_SEC,
            transport=transport,
        )

    async def _send(self, method: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, self.customers_path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {self.customers_path} failed: {e!r}")
            raise CustomerTransportError(str(e) or type(e).__name__) from e

    async def list_customers(self) -> CustomerCollection:
        response = await self._send("GET")
        if not response.is_success:
            raise parse_api_error(response)
        try:
            body = response.json()
            if not isinstance(body, list):
                raise ValueError("expected a JSON array of customers")
            return tuple(Customer.model_validate(item) for item in body)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Invalid customer list payload: {e}")
            raise CustomerTransportError(
                "Received an invalid customer list", code="invalid_response"
            ) from e

    async def create_customer(self, customer: Customer) -> None:
        response = await self._send("POST", json=customer.to_payload())
        if not response.is_success:
            raise parse_api_error(response)
        logger.info(
            "Customer created",
            extra={'extra_fields': {'status_code': response.status_code}}
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CustomerApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
