"""Controller for the "add customer" dialog."""
import asyncio
from typing import Callable, List, Optional, Union

from shared.core import get_logger
from customer_directory.domain.models import CustomerField, DraftCustomer
from customer_directory.domain.states import IDLE, SUBMITTING, Failed, SubmissionState, Submitting
from customer_directory.infrastructure.client import (
    CustomerApiClient,
    CustomerApiError,
    DirectoryClientError,
)
from .directory_cache import DirectoryCache

logger = get_logger(__name__)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
CREATE_FAILED_MESSAGE = "Failed to add customer"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class CreationFormController:
    """
    Owns the draft, dialog visibility and submission state of the
    creation workflow. Invalidates the directory cache only after the
    create call is confirmed successful.
    """

    def __init__(self, client: CustomerApiClient, cache: DirectoryCache):
        self._client = client
        self._cache = cache
        self._is_open = False
        self._draft = DraftCustomer()
        self._submission: SubmissionState = IDLE
        self._listeners: List[Callable[[], None]] = []

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def draft(self) -> DraftCustomer:
        return self._draft

    @property
    def submission(self) -> SubmissionState:
        return self._submission

    @property
    def is_submitting(self) -> bool:
        return isinstance(self._submission, Submitting)

    @property
    def error_message(self) -> Optional[str]:
        if isinstance(self._submission, Failed):
            return self._submission.message
        return None

    @property
    def can_submit(self) -> bool:
        return self._is_open and not self.is_submitting

    @property
    def can_close(self) -> bool:
        return not self.is_submitting

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def open(self) -> None:
        if not self._is_open:
            self._is_open = True
            self._notify()

    def close(self) -> bool:
        """Dismiss the dialog. Refused while a submission is in flight."""
        if self.is_submitting:
            logger.debug("Close ignored while submitting")
            return False
        self._is_open = False
        self._draft = DraftCustomer()
        self._submission = IDLE
        self._notify()
        return True

    def set_field(self, name: Union[CustomerField, str], value: str) -> None:
        self._draft.set(name, value)
        self._notify()

    async def submit(self) -> SubmissionState:
        if self.is_submitting:
            logger.debug("Submit ignored; a submission is already in flight")
            return self._submission
        if not self._is_open:
            logger.debug("Submit ignored; the dialog is closed")
            return self._submission

        self._submission = IDLE
        if not self._draft.is_complete():
            missing = [field.value for field in self._draft.missing_fields()]
            logger.info(
                "Customer draft rejected by validation",
                extra={'extra_fields': {'missing_fields': missing}}
            )
            self._set_submission(Failed(REQUIRED_FIELDS_MESSAGE))
            return self._submission

        self._set_submission(SUBMITTING)
        refresh = None
        try:
            await self._client.create_customer(self._draft.to_customer())
        except CustomerApiError as e:
            logger.warning(
                f"Customer creation rejected: {e.message}",
                extra={'extra_fields': {'status_code': e.status_code, 'code': e.code}}
            )
            self._submission = Failed(e.server_message or CREATE_FAILED_MESSAGE)
        except DirectoryClientError as e:
            logger.warning(f"Customer creation failed: {e.message}")
            self._submission = Failed(UNEXPECTED_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected failure while creating customer")
            self._submission = Failed(UNEXPECTED_ERROR_MESSAGE)
        else:
            self._draft = DraftCustomer()
            refresh = self._cache.invalidate()
            self._is_open = False
            self._submission = IDLE
        finally:
            # Release the in-flight flag on every exit path, cancellation included
            if self.is_submitting:
                self._submission = IDLE
            self._notify()

        if refresh is not None:
            await asyncio.shield(refresh)
        return self._submission

    def _set_submission(self, state: SubmissionState) -> None:
        self._submission = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Creation form listener raised")
