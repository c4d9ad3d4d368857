"""
Customer directory entry point
Wires settings, logging, HTTP client, cache, creation form and page view.
"""
import asyncio
from typing import Optional, Tuple

import click
import httpx

from shared.core import setup_logging, get_logger, set_request_context, generate_request_id
from customer_directory.core_settings import Settings, get_settings
from customer_directory.application.creation_form import CreationFormController
from customer_directory.application.directory_cache import DirectoryCache
from customer_directory.domain.models import CustomerField
from customer_directory.domain.states import Failed
from customer_directory.infrastructure.client import CustomerApiClient
from customer_directory.presentation.page import DirectoryPage, render_text

logger = get_logger(__name__)


def create_page(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[DirectoryPage, CustomerApiClient]:
    """Build a page and the client it owns; the caller closes the client."""
    client = CustomerApiClient.from_settings(settings, transport=transport)
    cache = DirectoryCache(client)
    form = CreationFormController(client, cache)
    return DirectoryPage(cache, form), client


async def run(
    settings: Settings,
    new_customer: Optional[Tuple[str, str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Load the directory, optionally add a customer, and print the page."""
    set_request_context(correlation_id=generate_request_id())
    page, client = create_page(settings, transport)
    async with client:
        await page.load()
        if new_customer:
            page.open_dialog()
            for field, value in zip(CustomerField, new_customer):
                page.set_field(field, value)
            outcome = await page.submit()
            if isinstance(outcome, Failed):
                click.echo(render_text(page.view()))
                return 1
        click.echo(render_text(page.view()))
    return 0


@click.command()
@click.option("--base-url", default=None, help="Override API_BASE_URL.")
@click.option(
    "--add",
    "new_customer",
    nargs=3,
    default=None,
    metavar="FIRST LAST EMAIL",
    help="Create a customer before listing.",
)
def cli(base_url: Optional[str], new_customer: Optional[Tuple[str, str, str]]) -> None:
    """List customers, optionally adding one first."""
    settings = get_settings()
    if base_url:
        settings = settings.model_copy(update={"API_BASE_URL": base_url})

    setup_logging(service_name=settings.SERVICE_NAME, level=settings.LOG_LEVEL)
    logger.info(f"Starting {settings.SERVICE_NAME} version {settings.SERVICE_VERSION}")

    raise SystemExit(asyncio.run(run(settings, new_customer or None)))
