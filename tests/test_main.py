import httpx
from click.testing import CliRunner

from customer_directory.core_settings import Settings
from customer_directory.main import cli, create_page, run
from conftest import ADA, BASE_URL, FakeCustomersEndpoint


def settings():
    return Settings(API_BASE_URL=BASE_URL)


async def test_create_page_wires_components():
    endpoint = FakeCustomersEndpoint([ADA])
    page, client = create_page(settings(), transport=httpx.MockTransport(endpoint.handler))
    async with client:
        await page.load()
    assert page.view().heading == "1 Customers"
    assert page.form._cache is page.cache


async def test_run_prints_directory(capsys):
    endpoint = FakeCustomersEndpoint([ADA])
    code = await run(settings(), transport=httpx.MockTransport(endpoint.handler))
    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("1 Customers")
    assert "Ada Lovelace" in out


async def test_run_adds_customer_then_lists(capsys):
    endpoint = FakeCustomersEndpoint()
    code = await run(
        settings(),
        new_customer=("Grace", "Hopper", "grace@example.com"),
        transport=httpx.MockTransport(endpoint.handler),
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Grace Hopper" in out
    assert endpoint.calls("GET") == 2


async def test_run_reports_rejected_customer(capsys):
    endpoint = FakeCustomersEndpoint()
    endpoint.respond("POST", 400, json={"code": "invalid_email", "message": "Email is invalid"})
    code = await run(
        settings(),
        new_customer=("Grace", "Hopper", "grace"),
        transport=httpx.MockTransport(endpoint.handler),
    )
    out = capsys.readouterr().out
    assert code == 1
    assert "[error] Email is invalid" in out


def test_cli_help():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "--add" in result.output
