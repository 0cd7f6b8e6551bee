"""
Sequential Action Queue

Each user trigger enqueues one logical action. A single drain task works
through them strictly one at a time: the next wallet prompt is never shown
before the previous action reached a terminal outcome and the settling delay
elapsed.

Per action:
    1. counter = sink.get_sequence_counter() + 1
    2. submit(counter) -> BundleOutcome (connect, chain, send, poll)
    3. creditable outcome: set_sequence_counter(counter), credit_reward(units)
       anything else: no mutation, one user-facing failure message
    4. settle, then decrement the pending count

Failures never stop the queue and are never retried.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from loguru import logger

from ..rewards import RewardSink
from ..schemas.status import BundleOutcome, UnsupportedStatusPolicy
from .events import (
    ActionConfirmedEvent,
    ActionFailedEvent,
    BaseEvent,
    Dependencies,
    EventBus,
    QueueStatusEvent,
)
from .exceptions import ConfirmationError
from .messages import describe_error

SubmitFunc = Callable[[int], Awaitable[BundleOutcome]]

IDLE_HINT = "Tap"
PENDING_ONCHAIN_HINT = "Pending onchain…"


def confirm_hint(pending: int) -> str:
    return f"Confirm in wallet… ({pending} queued)"


def queued_hint(pending: int) -> str:
    return f"Queued taps: {pending}" if pending > 0 else IDLE_HINT


@dataclass
class QueueStats:
    """Counters for drained actions."""
    attempts: int = 0
    confirmed: int = 0
    failed: int = 0
    credited_units: int = 0


class ActionQueue:
    """
    FIFO of pending actions with a single consumer task.

    Attributes:
        settle_delay: Seconds to wait after each action
        policy: Crediting policy for indeterminate outcomes
        reward_units: Units credited per confirmed action
        stats: Running totals
    """

    def __init__(
        self,
        submit: SubmitFunc,
        reward_sink: RewardSink,
        event_bus: Optional[EventBus] = None,
        deps: Optional[Dependencies] = None,
        settle_delay: float = 0.22,
        policy: UnsupportedStatusPolicy = UnsupportedStatusPolicy.ASSUME_SUCCESS,
        reward_units: int = 1,
    ):
        self._submit = submit
        self._sink = reward_sink
        self._bus = event_bus
        self._deps = deps or Dependencies(reward_sink=reward_sink)
        self.settle_delay = settle_delay
        self.policy = policy
        self.reward_units = reward_units
        self.stats = QueueStats()
        self._pending = 0
        self._draining = False
        self._drain_task: Optional["asyncio.Task[None]"] = None

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def draining(self) -> bool:
        return self._draining

    async def enqueue(self) -> int:
        """
        Add one action and start the drain task if it is idle.

        Returns:
            int: Pending count including the new action.
        """
        self._pending += 1
        pending = self._pending
        await self.publish(QueueStatusEvent(pending=pending, hint=queued_hint(pending)))
        if not self._draining and self._pending > 0:
            self._draining = True
            self._drain_task = asyncio.ensure_future(self._drain())
        return pending

    async def wait_idle(self) -> None:
        """Wait until every enqueued action has been drained."""
        while True:
            task = self._drain_task
            if task is None:
                return
            if task.done():
                if task is self._drain_task:
                    return
                continue
            await asyncio.shield(task)

    async def publish(self, event: BaseEvent) -> None:
        """Publish ``event``; handler failures are logged and never reach the queue."""
        if self._bus is None:
            return
        try:
            await self._bus.publish(event, self._deps)
        except Exception as e:
            logger.warning("Event handler failed for {!r}: {}", event, e)

    async def _drain(self) -> None:
        try:
            while True:
                while self._pending > 0:
                    await self._run_one()
                    await asyncio.sleep(self.settle_delay)
                    self._pending -= 1
                    if self._pending > 0:
                        await self.publish(QueueStatusEvent(pending=self._pending, hint=queued_hint(self._pending)))
                await self.publish(QueueStatusEvent(pending=0, hint=IDLE_HINT))
                # an enqueue during the idle publish is drained by this same task
                if self._pending == 0:
                    break
        finally:
            self._draining = False

    async def _run_one(self) -> None:
        self.stats.attempts += 1
        counter = 0
        try:
            counter = self._sink.get_sequence_counter() + 1
            logger.info("Submitting action #{} ({} queued)", counter, self._pending)
            await self.publish(QueueStatusEvent(pending=self._pending, hint=confirm_hint(self._pending)))

            outcome = await self._submit(counter)
            outcome.raise_for_status()
            if not outcome.is_creditable(self.policy):
                raise ConfirmationError("Transaction status unavailable", bundle_id=outcome.bundle_id)
            self._sink.set_sequence_counter(counter)
            self._sink.credit_reward(self.reward_units)
        except Exception as e:
            self.stats.failed += 1
            message = describe_error(e)
            logger.warning("Action #{} failed ({}): {}", counter, type(e).__name__, message)
            await self.publish(ActionFailedEvent(counter=counter, message=message, error_type=type(e).__name__))
            return

        self.stats.confirmed += 1
        self.stats.credited_units += self.reward_units
        logger.info("Action #{} confirmed as {}", counter, outcome.status.value)
        await self.publish(
            ActionConfirmedEvent(
                counter=counter,
                bundle_id=outcome.bundle_id,
                status=outcome.status,
                reward_units=self.reward_units,
            )
        )
