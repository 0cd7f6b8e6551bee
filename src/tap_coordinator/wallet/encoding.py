"""
Calldata and Attribution Encoding Helpers

Pure, side-effect-free helpers that turn tap and tip intents into calldata,
plus the ERC-8021 attribution suffix and request id generation. Nothing here
talks to a wallet.

Exported helpers
----------------
encode_log_action
    ``logAction(bytes32 action, bytes data)`` calldata for the tap contract,
    with the sequence counter as a 32-byte big-endian word in ``data``.

encode_erc20_transfer
    ``transfer(address to, uint256 amount)`` calldata.

parse_usdc_amount
    Decimal string (``"1.5"``) to smallest token units.

builder_code_suffix
    ERC-8021 data suffix for a list of builder codes.
"""

import re
import secrets
import time
from typing import Iterable

from eth_abi import encode
from eth_utils import is_hex_address, to_bytes, to_checksum_address

from .constants import USDC_DECIMALS

#: ``logAction(bytes32,bytes)`` selector of the deployed tap contract.
LOG_ACTION_SELECTOR: str = "0x2d9bc1fb"

#: ERC-20 ``transfer(address,uint256)`` selector.
TRANSFER_SELECTOR: str = "0xa9059cbb"

#: ERC-8021 marker closing every attribution suffix.
ERC8021_MARKER: str = "80218021802180218021802180218021"

#: ERC-8021 schema id for a plain code list.
ERC8021_SCHEMA_CODES: int = 0

_AMOUNT_PATTERN = re.compile(r"^\d+(\.\d+)?$")


def bytes32_from_ascii(text: str) -> bytes:
    """Encode ``text`` as UTF-8, truncated or right-padded to 32 bytes."""
    return str(text).encode("utf-8")[:32].ljust(32, b"\x00")


def uint256_word(value: int) -> bytes:
    """Big-endian 32-byte word for a non-negative integer."""
    if value < 0:
        raise ValueError(f"uint256 cannot be negative: {value}")
    return int(value).to_bytes(32, "big")


def encode_log_action(action: str, counter: int) -> str:
    """
    Build calldata for ``logAction(bytes32,bytes)``.

    Args:
        action: Action tag, e.g. ``"TAP"``; stored as ASCII bytes32.
        counter: Sequence counter of this submission.

    Returns:
        0x-prefixed calldata hex string.
    """
    body = encode(["bytes32", "bytes"], [bytes32_from_ascii(action), uint256_word(counter)])
    return LOG_ACTION_SELECTOR + body.hex()


def encode_erc20_transfer(to: str, units: int) -> str:
    """
    Build calldata for ERC-20 ``transfer(address,uint256)``.

    Args:
        to: Recipient address (any case).
        units: Amount in smallest token units.

    Returns:
        0x-prefixed calldata hex string.

    Raises:
        ValueError: If the recipient is not a hex address or units is negative.
    """
    if not is_hex_address(to):
        raise ValueError("Invalid recipient address")
    if units < 0:
        raise ValueError("Amount must be > 0")
    body = encode(["address", "uint256"], [to_checksum_address(to), units])
    return TRANSFER_SELECTOR + body.hex()


def parse_usdc_amount(text: str, decimals: int = USDC_DECIMALS) -> int:
    """
    Convert a human-readable amount to smallest token units.

    Fractional digits beyond ``decimals`` are truncated, not rounded.

    Args:
        text: Decimal string such as ``"1"`` or ``"0.25"``.
        decimals: Token decimals (6 for USDC).

    Returns:
        int: Amount in smallest units.

    Raises:
        ValueError: Empty input, malformed number, or a zero amount.
    """
    value = str(text or "").strip()
    if not value:
        raise ValueError("Enter an amount")
    if not _AMOUNT_PATTERN.match(value):
        raise ValueError("Invalid amount")
    whole, _, frac = value.partition(".")
    frac = (frac + "0" * decimals)[:decimals]
    units = int(whole) * 10 ** decimals + int(frac or "0")
    if units <= 0:
        raise ValueError("Amount must be > 0")
    return units


def builder_code_suffix(codes: Iterable[str]) -> str:
    """
    Build an ERC-8021 attribution data suffix.

    Layout: ``codes joined by ","`` (ASCII) ‖ codes length (1 byte) ‖
    schema id (1 byte) ‖ 16-byte ERC-8021 marker.

    Args:
        codes: Builder codes registered for the application.

    Returns:
        0x-prefixed suffix hex string.
    """
    joined = ",".join(codes).encode("ascii")
    if len(joined) > 0xFF:
        raise ValueError("Builder codes exceed 255 bytes")
    length = len(joined).to_bytes(1, "big")
    schema = ERC8021_SCHEMA_CODES.to_bytes(1, "big")
    marker = to_bytes(hexstr=ERC8021_MARKER)
    return "0x" + (joined + length + schema + marker).hex()


def new_request_id(prefix: str = "tap") -> str:
    """Unique id for one ``wallet_sendCalls`` attempt."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(6)}"
