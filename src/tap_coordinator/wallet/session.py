"""
Wallet Session State

Process-wide state shared by the guards and the capability negotiator. It is
held by the coordinator and passed explicitly to each component.

All fields are only touched from the event loop thread. The in-flight fields
are the single-owner futures that enforce "at most one interactive connect
and one interactive chain switch": a caller finding one set awaits it instead
of prompting again.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass
class Session:
    """
    Mutable wallet session.

    Attributes:
        account: Connected address, cached until process restart
        connect_in_flight: Pending interactive ``eth_requestAccounts``
        switch_in_flight: Pending interactive ``wallet_switchEthereumChain``
        capabilities: Capability payload per account (lowercased), fetched once
        capabilities_in_flight: Pending ``wallet_getCapabilities`` lookup
    """

    account: Optional[str] = None
    connect_in_flight: Optional["asyncio.Task[str]"] = None
    switch_in_flight: Optional["asyncio.Task[str]"] = None
    capabilities: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    capabilities_in_flight: Optional["asyncio.Task[Dict[str, Any]]"] = None


def normalize_chain_id(value: Union[str, int, None]) -> Optional[int]:
    """
    Parse a chain id reported as hex string, decimal string or integer.

    Returns:
        int chain id, or ``None`` if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except ValueError:
        return None


def same_chain(reported: Union[str, int, None], required: Union[str, int]) -> bool:
    reported_id = normalize_chain_id(reported)
    return reported_id is not None and reported_id == normalize_chain_id(required)
