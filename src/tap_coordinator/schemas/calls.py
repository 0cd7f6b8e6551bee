"""
Call Bundle Request Models (EIP-5792)

Pydantic models for the ``wallet_sendCalls`` request and its response.

Request classes:
    - Call: One on-chain call (destination, native value, calldata).
    - PaymasterService: Fee-sponsorship capability (ERC-7677 service URL).
    - DataSuffix: ERC-8021 attribution capability appended to calldata.
    - RequestCapabilities: Optional capabilities attached to a request.
    - CallRequest: The complete, immutable ``wallet_sendCalls`` params object.

Response classes:
    - BundleHandle: Identifier returned by the wallet for status polling.

A CallRequest is frozen once built. Sponsorship fallback derives a new
request through :meth:`CallRequest.without_sponsorship` instead of mutating
the one already handed to the wallet.
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import ConfigDict, Field

from .bases import CanonicalModel
from .versions import ProtocolVersion


class Call(CanonicalModel):
    """
    Single call inside a bundle.

    Attributes:
        to: Destination contract address (0x-prefixed).
        value: Native value as a 0x-prefixed hex quantity.
        data: ABI-encoded calldata (0x-prefixed).
    """

    model_config = ConfigDict(frozen=True)

    to: str = Field(..., description="Destination address")
    value: str = Field(default="0x0", description="Native value (hex quantity)")
    data: str = Field(default="0x", description="Calldata (hex)")


class PaymasterService(CanonicalModel):
    """Fee-sponsorship capability pointing at a paymaster service URL."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Paymaster service endpoint")


class DataSuffix(CanonicalModel):
    """
    ERC-8021 attribution suffix.

    Wallets expect an object with a ``value`` field rather than a raw hex
    string. ``optional=True`` lets wallets without support ignore it.
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Hex-encoded attribution suffix")
    optional: bool = Field(default=True, description="Wallet may ignore if unsupported")


class RequestCapabilities(CanonicalModel):
    """Capabilities map of a call-bundle request."""

    model_config = ConfigDict(frozen=True)

    paymaster_service: Optional[PaymasterService] = Field(default=None, alias="paymasterService")
    data_suffix: Optional[DataSuffix] = Field(default=None, alias="dataSuffix")


class CallRequest(CanonicalModel):
    """
    ``wallet_sendCalls`` params object.

    Attributes:
        version: EIP-5792 request version.
        id: Unique identifier of this submission attempt.
        from_: Sender address (``from`` on the wire).
        chain_id: Target chain id as hex (``chainId`` on the wire).
        atomic_required: Whether the wallet must execute calls atomically.
        calls: Ordered calls to execute.
        capabilities: Optional sponsorship and attribution metadata.

    Example::

        request = CallRequest(
            id="tap-1700000000000-1f2e",
            from_="0x1234...5678",
            chain_id="0x2105",
            calls=[Call(to="0x4034...55ea", data="0x2d9bc1fb...")],
        )
        params = [request.to_rpc()]
    """

    model_config = ConfigDict(frozen=True)

    version: ProtocolVersion = Field(default=ProtocolVersion.Version2_0)
    id: str = Field(..., description="Unique per submission attempt")
    from_: str = Field(..., alias="from", description="Sender address")
    chain_id: str = Field(..., alias="chainId", description="Hex chain id")
    atomic_required: bool = Field(default=False, alias="atomicRequired")
    calls: Tuple[Call, ...] = Field(..., min_length=1, description="Ordered call list")
    capabilities: RequestCapabilities = Field(default_factory=RequestCapabilities)

    @property
    def has_sponsorship(self) -> bool:
        return self.capabilities.paymaster_service is not None

    def with_sponsorship(self, url: str) -> "CallRequest":
        """Return a copy carrying a ``paymasterService`` capability."""
        capabilities = self.capabilities.model_copy(
            update={"paymaster_service": PaymasterService(url=url)}
        )
        return self.model_copy(update={"capabilities": capabilities})

    def without_sponsorship(self) -> "CallRequest":
        """Return a copy with the ``paymasterService`` capability removed."""
        capabilities = self.capabilities.model_copy(update={"paymaster_service": None})
        return self.model_copy(update={"capabilities": capabilities})


class BundleHandle(CanonicalModel):
    """
    Result of ``wallet_sendCalls``.

    EIP-5792 v2 wallets return ``{"id": ..., "capabilities": ...}``; older
    wallets return the identifier as a bare string. Some hosts return nothing
    at all, in which case ``id`` is ``None`` and the bundle cannot be polled.

    Attributes:
        id: Bundle identifier for ``wallet_getCallsStatus``.
        capabilities: Capability results echoed by the wallet.
        sponsored: Whether the accepted request carried sponsorship.
    """

    id: Optional[str] = Field(default=None, description="Bundle identifier")
    capabilities: Optional[Dict[str, Any]] = Field(default=None)
    sponsored: bool = Field(default=False)

    @classmethod
    def from_response(cls, result: Any, sponsored: bool = False) -> "BundleHandle":
        if isinstance(result, str):
            return cls(id=result or None, sponsored=sponsored)
        if isinstance(result, dict):
            bundle_id = result.get("id")
            return cls(
                id=str(bundle_id) if bundle_id else None,
                capabilities=result.get("capabilities"),
                sponsored=sponsored,
            )
        return cls(sponsored=sponsored)
