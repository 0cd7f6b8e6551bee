"""
Tap Coordinator

Submits one onchain call bundle per user tap through an EIP-1193 / EIP-5792
wallet, strictly one at a time, and commits reward state only after the
bundle is confirmed.
"""

from .config import CoordinatorSettings
from .coordinator import TapCoordinator
from .rewards import InMemoryRewardStore, RewardSink

__all__ = [
    "CoordinatorSettings",
    "TapCoordinator",
    "InMemoryRewardStore",
    "RewardSink",
]
