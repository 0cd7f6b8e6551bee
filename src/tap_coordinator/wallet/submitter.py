"""
Call-Bundle Submission

Builds ``wallet_sendCalls`` requests for taps and token transfers and sends
them through the :class:`CapabilityNegotiator`. Every request gets a fresh
id and the application's ERC-8021 attribution suffix.
"""

from typing import Iterable, Optional, Sequence

from ..schemas.calls import BundleHandle, Call, CallRequest, DataSuffix, RequestCapabilities
from ..schemas.versions import ProtocolVersion
from .capabilities import CapabilityNegotiator
from .constants import ACTION_TAP, BUILDER_CODE, TAP_CONTRACT
from .encoding import (
    builder_code_suffix,
    encode_erc20_transfer,
    encode_log_action,
    new_request_id,
)
from .providers import WalletProvider


class CallSubmitter:
    """
    Assembles call bundles and submits them.

    Attributes:
        chain_id: Hex chain id stamped on every request
        tap_contract: Contract receiving ``logAction`` calls
        atomic_required: Value of ``atomicRequired``; sequential execution
            (``False``) is the most widely supported
    """

    def __init__(
        self,
        negotiator: CapabilityNegotiator,
        chain_id: str,
        tap_contract: str = TAP_CONTRACT,
        builder_codes: Iterable[str] = (BUILDER_CODE,),
        atomic_required: bool = False,
    ):
        self._negotiator = negotiator
        self.chain_id = chain_id
        self.tap_contract = tap_contract
        self.atomic_required = atomic_required
        codes = [code for code in builder_codes if code]
        self._data_suffix: Optional[DataSuffix] = (
            DataSuffix(value=builder_code_suffix(codes)) if codes else None
        )

    def build_request(self, account: str, calls: Sequence[Call], id_prefix: str = "tap") -> CallRequest:
        """
        Build a request for ``calls`` sent from ``account``.

        Args:
            account: Sender address
            calls: Ordered calls
            id_prefix: Prefix of the generated request id
        """
        return CallRequest(
            version=ProtocolVersion.Version2_0,
            id=new_request_id(id_prefix),
            from_=account,
            chain_id=self.chain_id,
            atomic_required=self.atomic_required,
            calls=tuple(calls),
            capabilities=RequestCapabilities(data_suffix=self._data_suffix),
        )

    def build_tap_request(self, account: str, counter: int, action: str = ACTION_TAP) -> CallRequest:
        """Request with one ``logAction(action, counter)`` call on the tap contract."""
        call = Call(to=self.tap_contract, value="0x0", data=encode_log_action(action, counter))
        return self.build_request(account, [call], id_prefix="tap")

    def build_transfer_request(self, account: str, token: str, recipient: str, units: int) -> CallRequest:
        """Request with one ERC-20 ``transfer(recipient, units)`` call."""
        call = Call(to=token, value="0x0", data=encode_erc20_transfer(recipient, units))
        return self.build_request(account, [call], id_prefix="transfer")

    async def send(self, provider: WalletProvider, account: str, request: CallRequest) -> BundleHandle:
        """Submit ``request`` with sponsorship negotiation and fallback."""
        return await self._negotiator.submit_with_fallback(provider, account, request)
