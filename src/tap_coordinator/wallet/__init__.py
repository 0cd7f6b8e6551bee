"""
Wallet interaction layer: provider resolution, interactive prompt guards,
sponsorship negotiation, bundle submission and confirmation polling.
"""

from .capabilities import CapabilityNegotiator, SendAttempt, supports_sponsorship
from .guards import ChainGuard, ConnectionGuard
from .poller import ConfirmationPoller
from .providers import HttpWalletProvider, ProviderSession, WalletProvider
from .session import Session
from .submitter import CallSubmitter

__all__ = [
    "CapabilityNegotiator",
    "SendAttempt",
    "supports_sponsorship",
    "ChainGuard",
    "ConnectionGuard",
    "ConfirmationPoller",
    "HttpWalletProvider",
    "ProviderSession",
    "WalletProvider",
    "Session",
    "CallSubmitter",
]
