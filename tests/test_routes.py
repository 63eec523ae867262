"""HTTP surface: routing, path validation and error responses."""

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from core.container import container
from main import app
from services.account import AccountService
from fakes import FakeRpc, StubDatabase


class BrokenDatabase(StubDatabase):
    async def fetch(self, query):
        raise ConnectionError("connection refused")


@pytest.fixture
def client(fetcher):
    def responder(query):
        if "_events" in query.text:
            return [{"contract_account_id": "usdt.near"}]
        return [{"args": {"method_name": "ft_transfer"}}]

    db = StubDatabase(responder)
    rpc = FakeRpc(
        view_account={"amount": "1"},
        view_code={"hash": "abc"},
        view_access_keys={"keys": []},
    )
    container.account_service.override(providers.Object(AccountService(db, rpc, fetcher)))
    yield TestClient(app)
    container.account_service.reset_override()


def test_item_route(client):
    response = client.get("/v1/account/alice.near")

    assert response.status_code == 200
    assert response.json() == {"account": [{"amount": "1", "args": {"method_name": "ft_transfer"}}]}


def test_contract_route(client):
    response = client.get("/v1/account/alice.near/contract")

    assert response.status_code == 200
    assert response.json() == {"contract": [{"hash": "abc", "keys": [], "locked": True}]}


def test_action_route_passes_method(client):
    response = client.get("/v1/account/usdt.near/contract/ft_transfer/action")

    assert response.status_code == 200
    assert response.json() == {"action": [{"args": {"method_name": "ft_transfer"}}]}


@pytest.mark.parametrize("path", [
    "/v1/account/alice.near/contract/deployments",
    "/v1/account/alice.near/contract/parse",
    "/v1/account/alice.near/inventory",
    "/v1/account/alice.near/tokens",
])
def test_routes_use_uniform_envelope(client, path):
    response = client.get(path)

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert isinstance(next(iter(body.values())), list)


@pytest.mark.parametrize("account", [
    "Alice.near",
    "a",
    "alice..near",
    "-alice.near",
    "x" * 65,
])
def test_invalid_account_id_rejected(client, account):
    response = client.get(f"/v1/account/{account}/tokens")

    assert response.status_code == 422


def test_implicit_account_id_accepted(client):
    response = client.get(f"/v1/account/{'a1' * 32}/tokens")

    assert response.status_code == 200


def test_database_failure_becomes_server_error(fetcher):
    service = AccountService(BrokenDatabase(), FakeRpc(), fetcher)
    container.account_service.override(providers.Object(service))
    try:
        response = TestClient(app).get("/v1/account/alice.near/contract/deployments")
    finally:
        container.account_service.reset_override()

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "ConnectionError" in response.json()["error"]


def test_health_reports_degraded_without_backends():
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["checks"]["rpc"] is False
    assert body["cache_backend"] == "memory"
