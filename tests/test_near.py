"""NEAR RPC client wire format, error mapping and the locked predicate."""

import json

import httpx
import pytest

from core.config import Settings
from core.exceptions import RpcError
from services.near import NearRpcClient, is_locked

RPC_URL = "https://rpc.test.near.org"


def full_access(public_key="ed25519:full"):
    return {"public_key": public_key, "access_key": {"nonce": 1, "permission": "FullAccess"}}


def function_call(public_key="ed25519:fc"):
    return {
        "public_key": public_key,
        "access_key": {
            "nonce": 2,
            "permission": {"FunctionCall": {"allowance": None, "receiver_id": "app.near", "method_names": []}},
        },
    }


def test_account_with_full_access_key_is_not_locked():
    assert not is_locked([function_call(), full_access()])


def test_account_with_only_function_call_keys_is_locked():
    assert is_locked([function_call("ed25519:a"), function_call("ed25519:b")])


def test_account_without_keys_is_locked():
    assert is_locked([])


async def make_client(handler, **overrides):
    settings = Settings(_env_file=None, rpc_url=RPC_URL, **overrides)
    client = NearRpcClient(settings, transport=httpx.MockTransport(handler))
    await client.startup()
    return client


async def test_view_account_posts_query_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={
            "jsonrpc": "2.0", "id": "dontcare",
            "result": {"amount": "100", "code_hash": "11111111111111111111111111111111", "block_height": 7},
        })

    client = await make_client(handler, rpc_finality="optimistic")
    try:
        result = await client.view_account("alice.near")
    finally:
        await client.shutdown()

    assert result["amount"] == "100"
    assert seen[0]["method"] == "query"
    assert seen[0]["params"] == {
        "request_type": "view_account",
        "finality": "optimistic",
        "account_id": "alice.near",
    }


@pytest.mark.parametrize("method, request_type", [
    ("view_code", "view_code"),
    ("view_access_keys", "view_access_key_list"),
])
async def test_view_methods_use_request_types(method, request_type):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content)["params"]["request_type"])
        return httpx.Response(200, json={"result": {"keys": [], "code_base64": ""}})

    client = await make_client(handler)
    try:
        await getattr(client, method)("alice.near")
    finally:
        await client.shutdown()

    assert seen == [request_type]


async def test_rpc_error_payload_raises():
    def handler(request):
        return httpx.Response(200, json={
            "jsonrpc": "2.0",
            "error": {"name": "HANDLER_ERROR", "cause": {"name": "UNKNOWN_ACCOUNT"}, "message": "Server error"},
        })

    client = await make_client(handler)
    try:
        with pytest.raises(RpcError, match="UNKNOWN_ACCOUNT") as exc_info:
            await client.view_account("ghost.near")
    finally:
        await client.shutdown()

    assert exc_info.value.method == "view_account"


async def test_error_inside_result_raises():
    def handler(request):
        return httpx.Response(200, json={"result": {"error": "wasm execution failed", "logs": []}})

    client = await make_client(handler)
    try:
        with pytest.raises(RpcError, match="wasm execution failed"):
            await client.view_code("alice.near")
    finally:
        await client.shutdown()


async def test_http_error_status_raises():
    client = await make_client(lambda request: httpx.Response(503, text="unavailable"))
    try:
        with pytest.raises(RpcError) as exc_info:
            await client.view_account("alice.near")
    finally:
        await client.shutdown()

    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    client = await make_client(handler)
    try:
        with pytest.raises(RpcError, match="ConnectTimeout"):
            await client.view_account("alice.near")
    finally:
        await client.shutdown()


async def test_invalid_json_raises():
    client = await make_client(lambda request: httpx.Response(200, text="<html>"))
    try:
        with pytest.raises(RpcError):
            await client.view_account("alice.near")
    finally:
        await client.shutdown()


async def test_call_before_startup_raises():
    client = NearRpcClient(Settings(_env_file=None))

    with pytest.raises(RpcError, match="not initialized"):
        await client.view_account("alice.near")
