"""
Tap Coordinator - Facade over the submission pipeline.

Owns one wallet Session and wires every component around it:

    TapCoordinator (you are here)
        ├── ProviderSession (host provider first, ambient provider second)
        ├── ConnectionGuard / ChainGuard (one interactive prompt at a time)
        ├── CapabilityNegotiator (sponsorship attach + one-shot fallback)
        ├── CallSubmitter (request building)
        ├── ConfirmationPoller (wallet_getCallsStatus until terminal)
        └── ActionQueue (strictly sequential taps, reward after confirmation)

Usage:
    ```python
    coordinator = TapCoordinator(CoordinatorSettings.from_env(), InMemoryRewardStore())

    @coordinator.hook(ActionFailedEvent)
    async def on_failed(event, deps):
        print(event.message)

    await coordinator.start()
    await coordinator.tap()
    await coordinator.wait_idle()
    ```
"""

import asyncio
from typing import Callable, Optional, Tuple

from eth_utils import is_hex_address
from loguru import logger

from .config import CoordinatorSettings
from .engine.events import (
    BaseEvent,
    Dependencies,
    EarnCompletedEvent,
    EventBus,
    QueueStatusEvent,
    TipSentEvent,
)
from .engine.exceptions import ConfigurationError, ConfirmationError
from .engine.queue import PENDING_ONCHAIN_HINT, ActionQueue
from .rewards import InMemoryRewardStore, RewardSink
from .schemas.calls import BundleHandle
from .schemas.status import BundleOutcome, BundleStatus
from .wallet.capabilities import CapabilityNegotiator
from .wallet.constants import (
    ACTION_TAP,
    BASE_MAINNET_CHAIN_ID,
    EARN_PRICE_USDC,
    EARN_REWARD_UNITS,
    TAP_CONTRACT,
    TAP_REWARD_UNITS,
    TIP_RECIPIENT,
    USDC_CONTRACT,
    USDC_DECIMALS,
)
from .wallet.encoding import parse_usdc_amount
from .wallet.guards import ChainGuard, ConnectionGuard
from .wallet.poller import ConfirmationPoller
from .wallet.providers import HostProviderFactory, ProviderSession, WalletProvider
from .wallet.session import Session
from .wallet.submitter import CallSubmitter


class TapCoordinator:
    """
    Entry point for taps, tips and the earn flow.

    Every reward mutation happens only after the corresponding bundle was
    confirmed (or, for indeterminate outcomes, as the configured policy
    allows).
    """

    def __init__(
        self,
        settings: Optional[CoordinatorSettings] = None,
        reward_sink: Optional[RewardSink] = None,
        provider_session: Optional[ProviderSession] = None,
        event_bus: Optional[EventBus] = None,
        host_provider: Optional[HostProviderFactory] = None,
        tap_contract: str = TAP_CONTRACT,
    ):
        """
        Args:
            settings: Pipeline settings (default: read from the environment)
            reward_sink: Counter and balance owner (default: in-memory store)
            provider_session: Provider resolution (default: built from settings)
            event_bus: Bus receiving UI events (default: a new bus)
            host_provider: Host provider factory, used when no session is given
            tap_contract: Contract receiving ``logAction`` calls

        Raises:
            ConfigurationError: ``tap_contract`` is not a valid address.
        """
        if not is_hex_address(tap_contract):
            raise ConfigurationError("Tap contract address invalid")

        self.settings = settings or CoordinatorSettings.from_env()
        self.reward_sink = reward_sink or InMemoryRewardStore()
        self.chain_id = BASE_MAINNET_CHAIN_ID

        self.session = Session()
        self.providers = provider_session or ProviderSession.from_settings(self.settings, host_provider)
        self.connection = ConnectionGuard(self.session)
        self.chain_guard = ChainGuard(self.session)
        self.negotiator = CapabilityNegotiator(
            self.session, self.settings.paymaster_service_url, self.chain_id
        )
        self.submitter = CallSubmitter(self.negotiator, self.chain_id, tap_contract=tap_contract)
        self.poller = ConfirmationPoller(
            timeout=self.settings.confirmation_timeout,
            poll_interval=self.settings.poll_interval,
            unsupported_delay=self.settings.unsupported_delay,
        )

        self.event_bus = event_bus or EventBus()
        self.deps = Dependencies(reward_sink=self.reward_sink, settings=self.settings)
        self.queue = ActionQueue(
            self.submit_tap,
            self.reward_sink,
            event_bus=self.event_bus,
            deps=self.deps,
            settle_delay=self.settings.settle_delay,
            policy=self.settings.unsupported_status_policy,
            reward_units=TAP_REWARD_UNITS,
        )
        self._send_lock: Optional[asyncio.Lock] = None

    # =========================================================================
    # Event Registration
    # =========================================================================

    def hook(self, event_class: type) -> Callable:
        """Decorator for registering event hooks.

        Example:
            @coordinator.hook(QueueStatusEvent)
            async def show_hint(event, deps):
                label.text = event.hint
        """
        def decorator(hook_func: Callable) -> Callable:
            self.event_bus.hook(event_class, hook_func)
            return hook_func
        return decorator

    def subscribe(self, event_class: type, handler: Callable) -> None:
        """Register an event handler (``async handler(event, deps)``)."""
        self.event_bus.subscribe(event_class, handler)

    async def publish(self, event: BaseEvent) -> None:
        await self.queue.publish(event)

    # =========================================================================
    # Taps
    # =========================================================================

    async def start(self) -> WalletProvider:
        """
        Resolve the wallet provider eagerly.

        Raises:
            NoProviderError: No provider is available; the coordinator is unusable.
        """
        return await self.providers.get_provider()

    async def tap(self) -> int:
        """Queue one tap. Returns the number of pending taps."""
        return await self.queue.enqueue()

    async def wait_idle(self) -> None:
        await self.queue.wait_idle()

    async def submit_tap(self, counter: int) -> BundleOutcome:
        """
        Send one ``logAction`` bundle for ``counter`` and poll it to a terminal state.

        Used by the queue; call :meth:`tap` instead.
        """
        provider, account = await self._prepare()
        request = self.submitter.build_tap_request(account, counter, ACTION_TAP)
        async with self._sending():
            handle = await self.submitter.send(provider, account, request)
        logger.info("Tap #{} submitted (bundle {}, sponsored={})", counter, handle.id, handle.sponsored)
        return await self._await_handle(provider, handle, show_hint=True)

    # =========================================================================
    # Tips and Earn
    # =========================================================================

    async def send_tip(self, usd_amount: str, recipient: str = TIP_RECIPIENT) -> BundleHandle:
        """
        Send a USDC transfer of ``usd_amount`` to ``recipient``.

        Returns once the wallet accepted the bundle; it is not polled. The
        wallet prompt waits for any tap send that is already showing one.

        Raises:
            ConfigurationError: Invalid token or recipient address, or amount.
        """
        handle, units = await self._send_transfer(usd_amount, recipient)
        await self.publish(
            TipSentEvent(bundle_id=handle.id, recipient=recipient, units=units, sponsored=handle.sponsored)
        )
        return handle

    async def earn(self) -> BundleOutcome:
        """
        Pay the fixed earn price and credit ``EARN_REWARD_UNITS`` once it confirms.

        Publishes only EarnCompletedEvent; the payment is not reported as a tip.

        Raises:
            ConfirmationError: The payment failed, timed out or, under the
                ``TREAT_AS_FAILURE`` policy, could not be confirmed.
        """
        handle, _ = await self._send_transfer(EARN_PRICE_USDC, TIP_RECIPIENT)
        provider = await self.providers.get_provider()
        outcome = (await self._await_handle(provider, handle)).raise_for_status()
        if not outcome.is_creditable(self.settings.unsupported_status_policy):
            raise ConfirmationError("Transaction status unavailable", bundle_id=outcome.bundle_id)

        self.reward_sink.credit_reward(EARN_REWARD_UNITS)
        logger.info("Earn payment confirmed, credited {} unit(s)", EARN_REWARD_UNITS)
        await self.publish(EarnCompletedEvent(bundle_id=handle.id, reward_units=EARN_REWARD_UNITS))
        return outcome

    # =========================================================================
    # Internals
    # =========================================================================

    def _sending(self) -> asyncio.Lock:
        # serializes every wallet_sendCalls prompt
        if self._send_lock is None:
            self._send_lock = asyncio.Lock()
        return self._send_lock

    async def _send_transfer(self, usd_amount: str, recipient: str) -> Tuple[BundleHandle, int]:
        if not is_hex_address(USDC_CONTRACT):
            raise ConfigurationError("Invalid USDC contract")
        if not is_hex_address(recipient):
            raise ConfigurationError("Invalid recipient address")
        try:
            units = parse_usdc_amount(usd_amount, USDC_DECIMALS)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        provider, account = await self._prepare()
        request = self.submitter.build_transfer_request(account, USDC_CONTRACT, recipient, units)
        async with self._sending():
            handle = await self.submitter.send(provider, account, request)
        logger.info("Transfer of {} unit(s) to {} submitted (bundle {})", units, recipient, handle.id)
        return handle, units

    async def _prepare(self) -> Tuple[WalletProvider, str]:
        provider = await self.providers.get_provider()
        account = await self.connection.ensure_connected(provider)
        await self.chain_guard.ensure_chain(provider, self.chain_id)
        return provider, account

    async def _await_handle(
        self,
        provider: WalletProvider,
        handle: BundleHandle,
        show_hint: bool = False,
    ) -> BundleOutcome:
        if handle.id is None:
            logger.warning("Wallet returned no bundle id; outcome indeterminate")
            await asyncio.sleep(self.settings.missing_id_delay)
            return BundleOutcome(status=BundleStatus.UNSUPPORTED)
        if show_hint:
            await self.publish(QueueStatusEvent(pending=self.queue.pending, hint=PENDING_ONCHAIN_HINT))
        return await self.poller.await_final(provider, handle.id)
