"""
Bundle Confirmation Polling

``wallet_sendCalls`` returns as soon as the wallet accepts a bundle; it does
not wait for inclusion. The poller queries ``wallet_getCallsStatus`` until the
bundle reaches a terminal state.

State machine:
    PENDING ──► CONFIRMED_SUCCESS
            ├─► CONFIRMED_FAILURE   (2xx status, reverted receipt)
            ├─► PROTOCOL_FAILURE    (status >= 400)
            └─► UNSUPPORTED         (status method missing on the endpoint)

Still PENDING after ``timeout`` seconds raises ConfirmationTimeoutError.
Other query errors are treated as transient and polling continues.
"""

import asyncio
import time
from typing import Any, Callable, Optional

from loguru import logger

from ..engine.exceptions import ConfirmationTimeoutError, WalletRpcError
from ..schemas.status import BundleOutcome, BundleStatus, CallsStatus
from .providers import WalletProvider

_UNSUPPORTED_MARKERS = ("method not found", "unsupported", "does not exist")


def is_unsupported_method_error(error: Exception) -> bool:
    """Whether ``error`` means the endpoint does not implement the method."""
    if isinstance(error, WalletRpcError) and error.is_unsupported_method:
        return True
    message = str(error).lower()
    return any(marker in message for marker in _UNSUPPORTED_MARKERS)


class ConfirmationPoller:
    """
    Polls bundle status to a terminal outcome.

    Attributes:
        timeout: Default seconds before giving up on a pending bundle
        poll_interval: Default seconds between status queries
        unsupported_delay: Calming delay before resolving ``UNSUPPORTED``
    """

    def __init__(
        self,
        timeout: float = 45.0,
        poll_interval: float = 0.8,
        unsupported_delay: float = 1.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.unsupported_delay = unsupported_delay
        self._clock = clock

    async def await_final(
        self,
        provider: WalletProvider,
        bundle_id: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> BundleOutcome:
        """
        Poll ``bundle_id`` until it is terminal.

        Args:
            provider: Wallet endpoint
            bundle_id: Identifier returned by ``wallet_sendCalls``
            timeout: Override of the default timeout (seconds)
            poll_interval: Override of the default poll interval (seconds)

        Returns:
            BundleOutcome: Terminal outcome. Failed states are returned, not
            raised; call :meth:`BundleOutcome.raise_for_status` to raise.

        Raises:
            ConfirmationTimeoutError: Still pending after ``timeout``.
        """
        timeout = self.timeout if timeout is None else timeout
        poll_interval = self.poll_interval if poll_interval is None else poll_interval
        started = self._clock()
        polls = 0

        while True:
            if self._clock() - started > timeout:
                logger.warning("Bundle {} still pending after {:.1f}s", bundle_id, timeout)
                raise ConfirmationTimeoutError(bundle_id=bundle_id)

            polls += 1
            try:
                raw = await provider.request("wallet_getCallsStatus", [bundle_id])
                status = self._parse(raw)
            except Exception as e:
                if is_unsupported_method_error(e):
                    logger.info("Wallet cannot report bundle status ({}); outcome indeterminate", e)
                    await asyncio.sleep(self.unsupported_delay)
                    return BundleOutcome(status=BundleStatus.UNSUPPORTED, bundle_id=bundle_id, polls=polls)
                logger.debug("Transient status query error for {}: {}", bundle_id, e)
            else:
                state = status.classify()
                if state.is_terminal:
                    logger.info("Bundle {} finished as {} after {} poll(s)", bundle_id, state.value, polls)
                    return BundleOutcome(
                        status=state,
                        bundle_id=bundle_id,
                        status_code=status.status_code,
                        receipts=status.receipts,
                        polls=polls,
                    )

            await asyncio.sleep(poll_interval)

    @staticmethod
    def _parse(raw: Any) -> CallsStatus:
        if raw is None:
            return CallsStatus()
        return CallsStatus.model_validate(raw)
