"""
Directory page view-model.

Combines the directory cache and the creation form into plain render data
that any front end can draw, plus a text rendering used by the CLI.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from shared.core import get_logger
from customer_directory.application.creation_form import CreationFormController
from customer_directory.application.directory_cache import DirectoryCache
from customer_directory.domain.models import CustomerField
from customer_directory.domain.states import Error, FetchState, Loading, Ready, SubmissionState

logger = get_logger(__name__)

DOCUMENT_TITLE = "Dwolla | Customers"
DIALOG_TITLE = "Add Customer"
LOADING_PLACEHOLDER = "Loading customers..."
EMPTY_PLACEHOLDER = "No customers found."


@dataclass(frozen=True)
class CustomerRow:
    name: str
    email: str


@dataclass(frozen=True)
class DialogView:
    open: bool
    error: Optional[str]
    first_name: str
    last_name: str
    email: str
    submit_label: str
    submit_enabled: bool
    cancel_enabled: bool
    title: str = DIALOG_TITLE


@dataclass(frozen=True)
class PageView:
    heading: str
    add_enabled: bool
    error_banner: Optional[str]
    rows: Tuple[CustomerRow, ...]
    placeholder: Optional[str]
    dialog: DialogView
    title: str = DOCUMENT_TITLE


def build_dialog_view(form: CreationFormController) -> DialogView:
    draft = form.draft
    return DialogView(
        open=form.is_open,
        error=form.error_message,
        first_name=draft.first_name,
        last_name=draft.last_name,
        email=draft.email,
        submit_label="Creating..." if form.is_submitting else "Create",
        submit_enabled=form.can_submit,
        cancel_enabled=form.can_close,
    )


def build_page_view(
    state: FetchState,
    form: CreationFormController,
    error_dismissed: bool = False,
) -> PageView:
    rows: Tuple[CustomerRow, ...] = ()
    placeholder: Optional[str] = None
    error_banner: Optional[str] = None
    heading = "Customers"

    if isinstance(state, Loading):
        placeholder = LOADING_PLACEHOLDER
    elif isinstance(state, Ready):
        heading = f"{len(state.data)} Customers"
        rows = tuple(CustomerRow(c.display_name, c.email) for c in state.data)
        if not rows:
            placeholder = EMPTY_PLACEHOLDER
    elif isinstance(state, Error):
        if not error_dismissed:
            error_banner = state.message
        placeholder = EMPTY_PLACEHOLDER

    return PageView(
        heading=heading,
        add_enabled=not isinstance(state, Loading),
        error_banner=error_banner,
        rows=rows,
        placeholder=placeholder,
        dialog=build_dialog_view(form),
    )


def render_text(view: PageView) -> str:
    lines = [view.heading]
    if view.error_banner:
        lines.append(f"[error] {view.error_banner}")

    name_width = max([len("Name")] + [len(r.name) for r in view.rows])
    lines.append(f"{'Name'.ljust(name_width)}  Email")
    if view.placeholder:
        lines.append(view.placeholder)
    for row in view.rows:
        lines.append(f"{row.name.ljust(name_width)}  {row.email}")

    if view.dialog.open:
        dialog = view.dialog
        lines.append("")
        lines.append(dialog.title)
        if dialog.error:
            lines.append(f"[error] {dialog.error}")
        lines.append(f"First Name *: {dialog.first_name}")
        lines.append(f"Last Name *: {dialog.last_name}")
        lines.append(f"Email Address *: {dialog.email}")
        lines.append(f"[{dialog.submit_label}]")
    return "\n".join(lines)


class DirectoryPage:
    """Page controller: re-renders subscribers on every cache or form change."""

    def __init__(self, cache: DirectoryCache, form: CreationFormController):
        self.cache = cache
        self.form = form
        self._error_dismissed = False
        self._listeners: List[Callable[[PageView], None]] = []
        cache.subscribe(self._on_state_change)
        form.subscribe(self._render)

    def view(self) -> PageView:
        return build_page_view(self.cache.state, self.form, self._error_dismissed)

    def subscribe(self, listener: Callable[[PageView], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> FetchState:
        return await self.cache.load()

    async def refresh(self) -> FetchState:
        return await self.cache.invalidate()

    def dismiss_error(self) -> None:
        if isinstance(self.cache.state, Error) and not self._error_dismissed:
            self._error_dismissed = True
            self._render()

    def open_dialog(self) -> None:
        self.form.open()

    def close_dialog(self) -> bool:
        return self.form.close()

    def set_field(self, name: Union[CustomerField, str], value: str) -> None:
        self.form.set_field(name, value)

    async def submit(self) -> SubmissionState:
        return await self.form.submit()

    def _on_state_change(self, state: FetchState) -> None:
        # A fresh error is shown again even if an earlier one was dismissed
        self._error_dismissed = False
        self._render()

    def _render(self) -> None:
        view = self.view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Page listener raised")
