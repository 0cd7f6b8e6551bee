"""
Event-driven notification system with typed events.

The coordinator reports everything a UI needs (queue hints, confirmed taps,
failure messages, tip and earn results) as events on an EventBus. Events
carry their own data; dependencies are injected separately.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

from ..schemas.status import BundleStatus

# ==================== Base Event ====================

class BaseEvent(ABC):
    """Base class for all events in the system."""

    @abstractmethod
    def __repr__(self) -> str:
        """String representation of the event."""
        pass


# ==================== Queue Events ====================

class QueueStatusEvent(BaseModel, BaseEvent):
    """Queue progress: pending count and the hint to show next to the tap target."""
    pending: int
    hint: str

    def __repr__(self) -> str:
        return f"QueueStatusEvent(pending={self.pending}, hint={self.hint!r})"


class ActionConfirmedEvent(BaseModel, BaseEvent):
    """Result: a queued action was confirmed and its reward committed."""
    counter: int
    bundle_id: Optional[str] = None
    status: BundleStatus
    reward_units: int

    def __repr__(self) -> str:
        return f"ActionConfirmedEvent(counter={self.counter}, status={self.status.value})"


class ActionFailedEvent(BaseModel, BaseEvent):
    """Result: a queued action failed; ``message`` is the user-facing text."""
    counter: int
    message: str
    error_type: str

    def __repr__(self) -> str:
        return f"ActionFailedEvent(counter={self.counter}, error={self.error_type})"


# ==================== Payment Events ====================

class TipSentEvent(BaseModel, BaseEvent):
    """Result: a USDC transfer bundle was accepted by the wallet."""
    bundle_id: Optional[str] = None
    recipient: str
    units: int
    sponsored: bool = False

    def __repr__(self) -> str:
        return f"TipSentEvent(bundle_id={self.bundle_id}, units={self.units})"


class EarnCompletedEvent(BaseModel, BaseEvent):
    """Result: the earn payment confirmed and its reward was credited."""
    bundle_id: Optional[str] = None
    reward_units: int

    def __repr__(self) -> str:
        return f"EarnCompletedEvent(reward_units={self.reward_units})"


# ==================== Dependencies Container ====================

@dataclass(frozen=True)
class Dependencies:
    """Container for infrastructure handed to hooks and subscribers (read-only)."""
    reward_sink: Optional[Any] = None
    settings: Optional[Any] = None


# ==================== Event Bus ====================

EventHandlerFunc = Callable[[BaseEvent, Dependencies], Awaitable[Optional[Any]]]
EventHookFunc = Callable[[BaseEvent, Dependencies], Awaitable[None]]


class EventBus:
    """
    Routes events to hooks and subscribers by exact event class.

    Hooks are side-effect callbacks (UI updates, analytics) and are awaited
    before any subscriber runs. Subscribers may return a value, which
    :meth:`dispatch` yields back to the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[type, List[EventHandlerFunc]] = {}
        self._hooks: Dict[type, List[EventHookFunc]] = {}

    @staticmethod
    def _require_coroutine(func: Callable) -> None:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Handler must be a coroutine function, got {type(func).__name__}")

    def subscribe(self, event_class: type, handler: EventHandlerFunc) -> None:
        """
        Register ``async handler(event, deps)`` for ``event_class``.

        Raises:
            TypeError: If handler is not a coroutine function.
        """
        self._require_coroutine(handler)
        self._subscribers.setdefault(event_class, []).append(handler)

    def hook(self, event_class: type, hook_func: EventHookFunc) -> None:
        """
        Register ``async hook_func(event, deps)`` for ``event_class``.

        Raises:
            TypeError: If hook_func is not a coroutine function.
        """
        self._require_coroutine(hook_func)
        self._hooks.setdefault(event_class, []).append(hook_func)

    async def dispatch(self, event: BaseEvent, deps: Dependencies) -> AsyncGenerator[Optional[Any], None]:
        """
        Run the hooks of ``type(event)`` together, then its subscribers.

        Yields:
            Each subscriber's return value as it completes.
        """
        hooks = self._hooks.get(type(event), [])
        await asyncio.gather(*(hook(event, deps) for hook in hooks))

        handlers = self._subscribers.get(type(event), [])
        for pending in asyncio.as_completed([handler(event, deps) for handler in handlers]):
            yield await pending

    async def publish(self, event: BaseEvent, deps: Dependencies) -> List[Any]:
        """Dispatch ``event`` and return the non-``None`` subscriber results."""
        return [result async for result in self.dispatch(event, deps) if result is not None]
