from enum import Enum


class ProtocolVersion(str, Enum):
    """EIP-5792 ``wallet_sendCalls`` request versions."""

    Version2_0 = "2.0.0"
