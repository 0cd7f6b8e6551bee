"""
Exception and Error Definitions Module

Defines the exception hierarchy for wallet interaction, call-bundle
confirmation and coordinator configuration. All exceptions inherit from
BaseError for unified handling at the queue-drain boundary.

Exception Hierarchy:
    BaseError (root)
    ├── WalletError
    │   ├── NoProviderError
    │   ├── NoAccountSelectedError
    │   ├── ChainSwitchFailedError
    │   ├── UserRejectedError
    │   └── WalletRpcError
    ├── ConfirmationError
    │   ├── ConfirmationTimeoutError
    │   ├── ConfirmedFailureError
    │   └── ProtocolFailureError
    └── ConfigurationError
"""

from typing import Any, Optional


#: EIP-1193 "User Rejected Request".
USER_REJECTED_CODE = 4001

#: EIP-1193 "Unsupported Method" and JSON-RPC "Method not found".
UNSUPPORTED_METHOD_CODES = (4200, -32601)


class BaseError(Exception):
    """
    Root exception class for all project-specific exceptions.

    Every error raised by the coordinator derives from this class so the
    drain loop can report it without aborting the queue.
    """
    pass


class WalletError(BaseError):
    """
    Base exception for failures talking to the wallet endpoint.
    """
    pass


class NoProviderError(WalletError):
    """
    Raised when neither a host-supplied nor an ambient wallet provider exists.

    This is terminal: there is no endpoint to talk to and retrying cannot
    help within the same process.
    """

    def __init__(self, message: str = "No wallet provider found"):
        super().__init__(message)


class NoAccountSelectedError(WalletError):
    """
    Raised when the interactive connect flow finishes without an address.
    """

    def __init__(self, message: str = "No account selected"):
        super().__init__(message)


class ChainSwitchFailedError(WalletError):
    """
    Raised when the wallet is still on the wrong chain after a switch attempt.

    This includes scenarios such as:
    - The switch prompt was dismissed or errored
    - The switch RPC reported success but the chain id did not change

    Attributes:
        expected: Required chain id (hex)
        actual: Chain id reported by the wallet after the attempt
    """

    def __init__(self, message: str, expected: Optional[str] = None, actual: Optional[str] = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class UserRejectedError(WalletError):
    """
    Raised when the user declines an interactive wallet prompt.
    """

    def __init__(self, message: str = "User rejected the request"):
        super().__init__(message)


class WalletRpcError(WalletError):
    """
    Raised when a wallet request returns a JSON-RPC error object or the
    transport fails.

    Attributes:
        code: JSON-RPC / EIP-1193 error code, if one was reported
        data: Optional error payload from the wallet
    """

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data

    @property
    def is_unsupported_method(self) -> bool:
        return self.code in UNSUPPORTED_METHOD_CODES


class ConfirmationError(BaseError):
    """
    Base exception for call bundles that did not reach confirmed success.

    Attributes:
        bundle_id: Identifier returned by ``wallet_sendCalls``
    """

    def __init__(self, message: str, bundle_id: Optional[str] = None):
        super().__init__(message)
        self.bundle_id = bundle_id


class ConfirmationTimeoutError(ConfirmationError):
    """
    Raised when a bundle is still pending after the polling timeout.

    The on-chain effect may still land later; it is never credited.
    """

    def __init__(
        self,
        message: str = "Transaction pending too long. Please try again in a moment.",
        bundle_id: Optional[str] = None,
    ):
        super().__init__(message, bundle_id)


class ConfirmedFailureError(ConfirmationError):
    """
    Raised when the bundle was included but at least one call reverted.
    """

    def __init__(self, message: str = "Transaction reverted.", bundle_id: Optional[str] = None):
        super().__init__(message, bundle_id)


class ProtocolFailureError(ConfirmationError):
    """
    Raised when the wallet or bundler rejected the bundle (4xx/5xx status).

    Attributes:
        status_code: Raw numeric status reported by ``wallet_getCallsStatus``
    """

    def __init__(
        self,
        message: str = "Transaction failed (wallet/bundler).",
        bundle_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, bundle_id)
        self.status_code = status_code


class ConfigurationError(BaseError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Malformed contract or recipient address
    - Invalid amount strings for token transfers
    - Unknown unsupported-status policy name
    """
    pass
