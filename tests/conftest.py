"""
Shared fixtures and a scripted in-memory wallet.

FakeWalletProvider answers the EIP-1193 / EIP-5792 methods the coordinator
uses. Every request is recorded in ``calls``; individual methods can be
overridden with ``on(method, handler)`` where ``handler`` is a value, an
exception instance to raise, or a (sync or async) callable taking params.
"""

import asyncio
import inspect
import itertools
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from tap_coordinator.config import CoordinatorSettings
from tap_coordinator.engine.events import EventBus
from tap_coordinator.engine.exceptions import WalletRpcError
from tap_coordinator.rewards import InMemoryRewardStore
from tap_coordinator.wallet.constants import BASE_MAINNET_CHAIN_ID
from tap_coordinator.wallet.providers import WalletProvider

ACCOUNT = "0x1111111111111111111111111111111111111111"
PAYMASTER_URL = "https://paymaster.example/rpc"

CONFIRMED = {"status": 200, "receipts": [{"status": "0x1"}]}
PENDING = {"status": 100, "receipts": []}


class FakeWalletProvider(WalletProvider):
    """
    Scripted wallet.

    Attributes:
        calls: ``(method, params)`` for every request, in order
        chain_id: Chain the wallet reports
        connected: Accounts visible to ``eth_accounts``
        statuses: Per-bundle list of status payloads, consumed one per poll;
            the last entry repeats
        sent: Params objects of every ``wallet_sendCalls``
        max_open_bundles: Most bundles ever sent but not yet final at once
    """

    def __init__(
        self,
        account: str = ACCOUNT,
        chain_id: str = BASE_MAINNET_CHAIN_ID,
        connected: bool = False,
        capabilities: Optional[Dict[str, Any]] = None,
        switch_works: bool = True,
        default_status: Optional[Dict[str, Any]] = None,
    ):
        self.account = account
        self.chain_id = chain_id
        self.connected: List[str] = [account] if connected else []
        self.capabilities = capabilities if capabilities is not None else {}
        self.switch_works = switch_works
        self.default_status = default_status if default_status is not None else CONFIRMED
        self.calls: List[Tuple[str, Any]] = []
        self.statuses: Dict[str, List[Dict[str, Any]]] = {}
        self.sent: List[Dict[str, Any]] = []
        self.open_bundles: set = set()
        self.max_open_bundles = 0
        self._overrides: Dict[str, Any] = {}
        self._bundle_ids = itertools.count(1)

    def on(self, method: str, handler: Any) -> None:
        self._overrides[method] = handler

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        self.calls.append((method, params))
        # Yield so concurrent callers interleave like a real wallet round-trip.
        await asyncio.sleep(0)

        if method in self._overrides:
            if method == "wallet_sendCalls":
                self.sent.append(params[0])
            handler = self._overrides[method]
            if isinstance(handler, Exception):
                raise handler
            if callable(handler):
                result = handler(params)
                if inspect.isawaitable(result):
                    result = await result
                return result
            return handler

        default = getattr(self, "_" + method, None)
        if default is None:
            raise WalletRpcError(f"Method not found: {method}", code=-32601)
        return await default(params)

    async def _eth_accounts(self, params):
        return list(self.connected)

    async def _eth_requestAccounts(self, params):
        await asyncio.sleep(0.01)
        self.connected = [self.account]
        return list(self.connected)

    async def _eth_chainId(self, params):
        return self.chain_id

    async def _wallet_switchEthereumChain(self, params):
        if self.switch_works:
            self.chain_id = params[0]["chainId"]
        return None

    async def _wallet_getCapabilities(self, params):
        return self.capabilities

    async def _wallet_sendCalls(self, params):
        self.sent.append(params[0])
        bundle_id = f"0xbundle{next(self._bundle_ids)}"
        self.open_bundles.add(bundle_id)
        self.max_open_bundles = max(self.max_open_bundles, len(self.open_bundles))
        return {"id": bundle_id}

    async def _wallet_getCallsStatus(self, params):
        bundle_id = params[0]
        script = self.statuses.get(bundle_id)
        if script:
            status = script.pop(0) if len(script) > 1 else script[0]
        else:
            status = self.default_status
        code = status.get("status")
        if isinstance(code, int) and code >= 200:
            self.open_bundles.discard(bundle_id)
        return status


def sponsorship_capabilities(chain_id: str = BASE_MAINNET_CHAIN_ID, supported: bool = True) -> Dict[str, Any]:
    return {chain_id: {"paymasterService": {"supported": supported}}}


def make_settings(**overrides) -> CoordinatorSettings:
    values = dict(
        paymaster_service_url=None,
        wallet_rpc_url=None,
        confirmation_timeout=5.0,
        poll_interval=0,
        unsupported_delay=0,
        settle_delay=0,
        missing_id_delay=0,
    )
    values.update(overrides)
    return CoordinatorSettings(**values)


class EventRecorder:
    """Collects every published event through bus hooks."""

    def __init__(self, bus: EventBus, *event_classes: type):
        self.events: List[Any] = []
        for event_class in event_classes:
            bus.hook(event_class, self._record)

    async def _record(self, event, deps):
        self.events.append(event)

    def of(self, event_class: type) -> List[Any]:
        return [event for event in self.events if isinstance(event, event_class)]


@pytest.fixture
def provider() -> FakeWalletProvider:
    return FakeWalletProvider()


@pytest.fixture
def reward_store() -> InMemoryRewardStore:
    return InMemoryRewardStore()
