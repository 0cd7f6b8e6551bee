"""
Fee-Sponsorship Capability Negotiation

Decides whether a call-bundle request carries a ``paymasterService``
capability and submits it with a one-shot fallback.

Sponsorship is attached only if:
1. A paymaster service URL is configured for the deployment, AND
2. The connected wallet reports ``paymasterService.supported`` for the
   required chain in ``wallet_getCapabilities``.

Capabilities are fetched at most once per session. A failed lookup is cached
as ``{}`` (no sponsorship) and is not retried until the process restarts.

Submission is a small tagged-result pipeline: :meth:`_attempt_send` returns a
:class:`SendAttempt` instead of raising, and :meth:`submit_with_fallback`
composes at most two attempts. The second attempt only happens when the
first one failed *with* sponsorship attached, and it sends a new request
with the sponsorship capability removed.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from loguru import logger

from ..schemas.calls import BundleHandle, CallRequest
from .providers import WalletProvider
from .session import Session, same_chain


@dataclass(frozen=True)
class SendAttempt:
    """Outcome of one ``wallet_sendCalls`` call."""
    request: CallRequest
    handle: Optional[BundleHandle] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def supports_sponsorship(capabilities: Dict[str, Any], chain_id: str) -> bool:
    """
    Check ``capabilities[<chain>].paymasterService.supported``.

    Capability maps are keyed by hex chain id; keys are compared numerically
    so ``"0x2105"`` and ``"0x02105"`` both match chain 8453.
    """
    if not isinstance(capabilities, dict):
        return False
    for key, chain_caps in capabilities.items():
        if not same_chain(key, chain_id) or not isinstance(chain_caps, dict):
            continue
        paymaster = chain_caps.get("paymasterService")
        if isinstance(paymaster, dict) and paymaster.get("supported") is True:
            return True
    return False


class CapabilityNegotiator:
    """
    Attaches fee sponsorship when the wallet supports it.

    Attributes:
        paymaster_url: Configured sponsorship endpoint, ``None`` disables this
        chain_id: Required chain (hex)
    """

    def __init__(self, session: Session, paymaster_url: Optional[str], chain_id: str):
        self._session = session
        self.paymaster_url = paymaster_url
        self.chain_id = chain_id

    @property
    def enabled(self) -> bool:
        return bool(self.paymaster_url)

    async def get_capabilities(self, provider: WalletProvider, account: str) -> Dict[str, Any]:
        """
        Return the session's capability map, querying the wallet only once.

        Returns:
            Dict[str, Any]: Capability payload, ``{}`` if the lookup failed.
        """
        session = self._session
        key = account.lower()
        if key in session.capabilities:
            return session.capabilities[key]
        if session.capabilities_in_flight is None:
            session.capabilities_in_flight = asyncio.ensure_future(
                self._fetch_capabilities(provider, account)
            )
        return await asyncio.shield(session.capabilities_in_flight)

    async def _fetch_capabilities(self, provider: WalletProvider, account: str) -> Dict[str, Any]:
        session = self._session
        try:
            try:
                result = await provider.request("wallet_getCapabilities", [account])
                capabilities = result if isinstance(result, dict) else {}
            except Exception as e:
                logger.info("Capability lookup failed, continuing without sponsorship: {}", e)
                capabilities = {}
            session.capabilities[account.lower()] = capabilities
            return capabilities
        finally:
            session.capabilities_in_flight = None

    async def attach_if_supported(
        self,
        provider: WalletProvider,
        account: str,
        request: CallRequest,
    ) -> Tuple[bool, CallRequest]:
        """
        Return ``(attached, request)`` with sponsorship added when supported.

        The input request is never modified; a new one is returned when
        sponsorship is attached.
        """
        if not self.enabled:
            return False, request
        capabilities = await self.get_capabilities(provider, account)
        if not supports_sponsorship(capabilities, self.chain_id):
            return False, request
        return True, request.with_sponsorship(self.paymaster_url)

    async def _attempt_send(self, provider: WalletProvider, request: CallRequest) -> SendAttempt:
        try:
            result = await provider.request("wallet_sendCalls", [request.to_rpc()])
        except Exception as e:
            return SendAttempt(request=request, error=e)
        handle = BundleHandle.from_response(result, sponsored=request.has_sponsorship)
        return SendAttempt(request=request, handle=handle)

    async def submit_with_fallback(
        self,
        provider: WalletProvider,
        account: str,
        request: CallRequest,
    ) -> BundleHandle:
        """
        Send ``request``, retrying once without sponsorship if that was attached.

        Raises:
            Exception: The error of the first send when no sponsorship was
                attached, or when the unsponsored retry fails as well.
        """
        attached, request = await self.attach_if_supported(provider, account, request)

        first = await self._attempt_send(provider, request)
        if first.ok:
            return first.handle
        if not attached:
            raise first.error

        logger.warning("Sponsored send rejected ({}), retrying without paymaster", first.error)
        retry = await self._attempt_send(provider, request.without_sponsorship())
        if retry.ok:
            return retry.handle
        logger.warning("Unsponsored retry failed as well: {}", retry.error)
        raise first.error
