"""User-facing messages for failed submissions."""

from .exceptions import UserRejectedError

CANCELLED_MESSAGE = "Cancelled"
INSUFFICIENT_FUNDS_MESSAGE = "Not enough Base ETH for gas (check the connected wallet address)"
GENERIC_FAILURE_MESSAGE = "Transaction failed"


def describe_error(error: BaseException) -> str:
    """
    Map an error to the single short message shown to the user.

    User rejections and insufficient funds are recognised from the error text
    (wallets word these inconsistently); everything else falls back to the
    error's own description.
    """
    if isinstance(error, UserRejectedError):
        return CANCELLED_MESSAGE
    text = str(error).strip()
    lowered = text.lower()
    if "rejected" in lowered:
        return CANCELLED_MESSAGE
    if "insufficient" in lowered or "fund" in lowered:
        return INSUFFICIENT_FUNDS_MESSAGE
    return text or GENERIC_FAILURE_MESSAGE
