"""
Tests for the HTTP wallet transport and provider resolution.
"""
import json

import httpx
import pytest

from tap_coordinator.engine.exceptions import NoProviderError, UserRejectedError, WalletRpcError
from tap_coordinator.wallet.providers import HttpWalletProvider, ProviderSession

from conftest import FakeWalletProvider, make_settings

RPC_URL = "http://wallet.test/rpc"


def make_http_provider(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpWalletProvider(RPC_URL, client=client)


# ==================== HttpWalletProvider ====================

@pytest.mark.asyncio
async def test_request_returns_result_and_sends_json_rpc():
    seen = []

    def handler(request: httpx.Request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": seen[-1]["id"], "result": "0x2105"})

    provider = make_http_provider(handler)

    assert await provider.request("eth_chainId") == "0x2105"
    assert await provider.request("wallet_getCallsStatus", ["0xabc"]) == "0x2105"

    assert seen[0] == {"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []}
    assert seen[1]["id"] == 2
    assert seen[1]["params"] == ["0xabc"]


@pytest.mark.asyncio
async def test_user_rejection_code_maps_to_user_rejected():
    provider = make_http_provider(
        lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": 4001, "message": "User rejected"}})
    )

    with pytest.raises(UserRejectedError, match="User rejected"):
        await provider.request("eth_requestAccounts")


@pytest.mark.asyncio
async def test_rpc_error_keeps_code_and_data():
    provider = make_http_provider(
        lambda request: httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found", "data": "x"}},
        )
    )

    with pytest.raises(WalletRpcError) as exc_info:
        await provider.request("wallet_getCallsStatus", ["0xabc"])

    assert exc_info.value.code == -32601
    assert exc_info.value.data == "x"
    assert exc_info.value.is_unsupported_method


@pytest.mark.asyncio
async def test_http_error_without_json_is_wallet_error():
    provider = make_http_provider(lambda request: httpx.Response(502, text="bad gateway"))

    with pytest.raises(WalletRpcError, match="Malformed wallet response"):
        await provider.request("eth_chainId")


@pytest.mark.asyncio
async def test_transport_failure_is_wallet_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    provider = make_http_provider(handler)

    with pytest.raises(WalletRpcError, match="Wallet transport error"):
        await provider.request("eth_chainId")


# ==================== ProviderSession ====================

@pytest.mark.asyncio
async def test_host_provider_wins_and_is_memoized():
    host = FakeWalletProvider()
    ambient = FakeWalletProvider()
    calls = []

    async def factory():
        calls.append(1)
        return host

    session = ProviderSession(host_provider=factory, ambient_provider=ambient)

    assert await session.get_provider() is host
    assert await session.get_provider() is host
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_missing_host_falls_back_to_ambient():
    ambient = FakeWalletProvider()

    async def factory():
        return None

    session = ProviderSession(host_provider=factory, ambient_provider=ambient)
    assert await session.get_provider() is ambient


@pytest.mark.asyncio
async def test_failing_host_falls_back_to_ambient():
    ambient = FakeWalletProvider()

    async def factory():
        raise RuntimeError("not inside a host")

    session = ProviderSession(host_provider=factory, ambient_provider=ambient)
    assert await session.get_provider() is ambient


@pytest.mark.asyncio
async def test_no_provider_raises():
    with pytest.raises(NoProviderError, match="No wallet provider found"):
        await ProviderSession().get_provider()


def test_from_settings_builds_http_provider():
    session = ProviderSession.from_settings(make_settings(wallet_rpc_url=RPC_URL))
    assert isinstance(session._ambient_provider, HttpWalletProvider)
    assert session._ambient_provider.url == RPC_URL

    assert ProviderSession.from_settings(make_settings())._ambient_provider is None
