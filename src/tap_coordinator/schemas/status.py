"""
Call Bundle Status Models (EIP-5792 ``wallet_getCallsStatus``)

Defines the bundle status enumeration, the raw status payload returned by the
wallet, the terminal outcome produced by the confirmation poller, and the
pure classification function that maps raw status codes to outcomes.

Status code ranges (EIP-5792):
    100-199  pending
    200-299  confirmed (receipts still have to be checked)
    400-499  off-chain failure, the bundle will never land
    500-599  on-chain failure (reverted, partially reverted)

Older wallets report ``"PENDING"`` / ``"CONFIRMED"`` strings instead of codes;
these are mapped to 100 / 200 before classification.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import Field

from ..engine.exceptions import ConfirmedFailureError, ProtocolFailureError
from .bases import CanonicalModel


_LEGACY_STATUS_CODES: Dict[str, int] = {
    "PENDING": 100,
    "CONFIRMED": 200,
}


class BundleStatus(str, Enum):
    """
    Enumeration of bundle states.

    Attributes:
        PENDING: Not yet final; keep polling
        CONFIRMED_SUCCESS: Included and every receipt succeeded
        CONFIRMED_FAILURE: Status reported success but a receipt reverted
        PROTOCOL_FAILURE: Wallet or bundler rejected the bundle
        UNSUPPORTED: Endpoint cannot report status; outcome is indeterminate
    """
    PENDING = "pending"
    CONFIRMED_SUCCESS = "confirmed_success"
    CONFIRMED_FAILURE = "confirmed_failure"
    PROTOCOL_FAILURE = "protocol_failure"
    UNSUPPORTED = "unsupported"

    @property
    def is_terminal(self) -> bool:
        return self is not BundleStatus.PENDING


class UnsupportedStatusPolicy(str, Enum):
    """
    How an indeterminate outcome is treated when crediting rewards.

    Some hosts cannot report bundle status at all (``wallet_getCallsStatus``
    is missing, or ``wallet_sendCalls`` returns no id). ``ASSUME_SUCCESS``
    credits the action anyway and accepts the risk of crediting a call that
    never landed; ``TREAT_AS_FAILURE`` withholds the credit.
    """
    ASSUME_SUCCESS = "assume_success"
    TREAT_AS_FAILURE = "treat_as_failure"


def is_failed_receipt(receipt: Dict[str, Any]) -> bool:
    """Return True when a per-call receipt reports a reverted execution."""
    status = receipt.get("status") if isinstance(receipt, dict) else None
    if status is None:
        return False
    if isinstance(status, bool):
        return not status
    if isinstance(status, int):
        return status == 0
    return str(status).strip().lower() in ("0x0", "0x00", "0")


def classify_status(code: Optional[int], receipts: Sequence[Dict[str, Any]] = ()) -> BundleStatus:
    """
    Map a raw status code and receipts to a bundle state.

    A 2xx code is only a success when no receipt reports a revert; a
    reverted receipt turns the outcome into ``CONFIRMED_FAILURE`` even though
    the wrapping status said confirmed.

    Args:
        code: Numeric status code, or ``None`` when the wallet sent none.
        receipts: Per-call receipts from the status payload.

    Returns:
        BundleStatus: Terminal state, or ``PENDING`` to keep polling.
    """
    if code is None:
        return BundleStatus.PENDING
    if 200 <= code < 300:
        if any(is_failed_receipt(receipt) for receipt in receipts):
            return BundleStatus.CONFIRMED_FAILURE
        return BundleStatus.CONFIRMED_SUCCESS
    if code >= 400:
        return BundleStatus.PROTOCOL_FAILURE
    return BundleStatus.PENDING


class CallsStatus(CanonicalModel):
    """
    Raw ``wallet_getCallsStatus`` payload.

    Only the fields the poller relies on are modelled; anything else the
    wallet returns is ignored.
    """

    status: Union[int, str, None] = Field(default=None, description="Numeric code or legacy string")
    receipts: List[Dict[str, Any]] = Field(default_factory=list)
    id: Union[str, int, None] = Field(default=None)
    chain_id: Union[str, int, None] = Field(default=None, alias="chainId")

    @property
    def status_code(self) -> Optional[int]:
        if self.status is None or isinstance(self.status, bool):
            return None
        if isinstance(self.status, int):
            return self.status
        text = self.status.strip()
        if text.upper() in _LEGACY_STATUS_CODES:
            return _LEGACY_STATUS_CODES[text.upper()]
        try:
            return int(text, 0)
        except ValueError:
            return None

    def classify(self) -> BundleStatus:
        return classify_status(self.status_code, self.receipts or ())


class BundleOutcome(CanonicalModel):
    """
    Terminal result of polling one bundle.

    Attributes:
        status: Terminal bundle state
        bundle_id: Identifier that was polled (``None`` if the wallet gave none)
        status_code: Last numeric code seen, if any
        receipts: Per-call receipts from the final status payload
        polls: Number of status queries issued
        completed_at: When the terminal state was reached
    """

    status: BundleStatus
    bundle_id: Optional[str] = None
    status_code: Optional[int] = None
    receipts: List[Dict[str, Any]] = Field(default_factory=list)
    polls: int = Field(default=0, ge=0)
    completed_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_confirmed(self) -> bool:
        return self.status == BundleStatus.CONFIRMED_SUCCESS

    @property
    def is_indeterminate(self) -> bool:
        return self.status == BundleStatus.UNSUPPORTED

    def raise_for_status(self) -> "BundleOutcome":
        """
        Raise for failed terminal states, return self otherwise.

        Raises:
            ConfirmedFailureError: A call in the bundle reverted.
            ProtocolFailureError: The wallet or bundler rejected the bundle.
        """
        if self.status == BundleStatus.CONFIRMED_FAILURE:
            raise ConfirmedFailureError(bundle_id=self.bundle_id)
        if self.status == BundleStatus.PROTOCOL_FAILURE:
            raise ProtocolFailureError(bundle_id=self.bundle_id, status_code=self.status_code)
        return self

    def is_creditable(self, policy: UnsupportedStatusPolicy) -> bool:
        """Whether a reward may be committed for this outcome under ``policy``."""
        if self.is_confirmed:
            return True
        return self.is_indeterminate and policy == UnsupportedStatusPolicy.ASSUME_SUCCESS
