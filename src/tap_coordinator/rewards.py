"""
Reward State

The coordinator never owns reward state; it mutates an external sink, and
only after an action's bundle has been confirmed onchain.

Core Classes:
    - RewardSink: Interface for the counter and balance owner
    - InMemoryRewardStore: Process-local implementation used by default
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from loguru import logger

#: Starting balance of a fresh reward store.
DEFAULT_BALANCE = 150


class RewardSink(ABC):
    """Owner of the tap sequence counter and the reward balance."""

    @abstractmethod
    def get_sequence_counter(self) -> int:
        """Return the counter of the last confirmed action."""
        pass

    @abstractmethod
    def set_sequence_counter(self, value: int) -> None:
        """Persist the counter of a newly confirmed action."""
        pass

    @abstractmethod
    def credit_reward(self, units: int) -> None:
        """Add ``units`` to the balance."""
        pass


class InMemoryRewardStore(RewardSink):
    """
    Reward sink kept in memory.

    Attributes:
        counter: Last confirmed sequence counter
        balance: Current reward balance
        credits: ``(counter, units)`` for every credit, in commit order
    """

    def __init__(self, counter: int = 0, balance: int = DEFAULT_BALANCE):
        self.counter = counter
        self.balance = balance
        self.credits: List[Tuple[int, int]] = []

    def get_sequence_counter(self) -> int:
        return self.counter

    def set_sequence_counter(self, value: int) -> None:
        if value < 0:
            raise ValueError("Sequence counter must be >= 0")
        self.counter = value

    def credit_reward(self, units: int) -> None:
        if units < 0:
            raise ValueError("Reward units must be >= 0")
        self.balance += units
        self.credits.append((self.counter, units))
        logger.debug("Credited {} unit(s), balance {}", units, self.balance)
