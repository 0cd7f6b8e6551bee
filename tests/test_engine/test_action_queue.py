"""
Tests for ActionQueue.
Tests: 1) FIFO without overlap 2) Reward only after creditable outcomes 3) Failures never stop the queue
"""
import asyncio

import pytest

from tap_coordinator.engine.events import (
    ActionConfirmedEvent,
    ActionFailedEvent,
    EventBus,
    QueueStatusEvent,
)
from tap_coordinator.engine.exceptions import UserRejectedError
from tap_coordinator.engine.queue import ActionQueue
from tap_coordinator.rewards import InMemoryRewardStore
from tap_coordinator.schemas.status import BundleOutcome, BundleStatus, UnsupportedStatusPolicy

from conftest import EventRecorder


class ScriptedSubmit:
    """Submit function returning scripted outcomes and tracking overlap."""

    def __init__(self, *results):
        self.results = list(results)
        self.counters = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, counter):
        self.counters.append(counter)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.001)
            result = self.results.pop(0) if self.results else BundleStatus.CONFIRMED_SUCCESS
            if isinstance(result, Exception):
                raise result
            return BundleOutcome(status=result, bundle_id=f"0x{counter}")
        finally:
            self.active -= 1


def make_queue(submit, store=None, policy=UnsupportedStatusPolicy.ASSUME_SUCCESS):
    bus = EventBus()
    recorder = EventRecorder(bus, QueueStatusEvent, ActionConfirmedEvent, ActionFailedEvent)
    queue = ActionQueue(submit, store or InMemoryRewardStore(), event_bus=bus, settle_delay=0, policy=policy)
    return queue, recorder


@pytest.mark.asyncio
async def test_actions_drain_in_order_without_overlap():
    submit = ScriptedSubmit()
    store = InMemoryRewardStore()
    queue, recorder = make_queue(submit, store)

    for _ in range(3):
        await queue.enqueue()
    await queue.wait_idle()

    assert submit.counters == [1, 2, 3]
    assert submit.max_active == 1
    assert store.counter == 3
    assert store.balance == 153
    assert store.credits == [(1, 1), (2, 1), (3, 1)]
    assert [event.counter for event in recorder.of(ActionConfirmedEvent)] == [1, 2, 3]
    assert queue.pending == 0
    assert not queue.draining


@pytest.mark.asyncio
async def test_enqueue_while_draining_only_increments():
    queue, _ = make_queue(ScriptedSubmit())

    await queue.enqueue()
    first_task = queue._drain_task
    assert await queue.enqueue() == 2
    assert queue._drain_task is first_task

    await queue.wait_idle()
    assert queue.stats.attempts == 2


@pytest.mark.asyncio
async def test_failure_is_reported_and_queue_continues():
    submit = ScriptedSubmit(UserRejectedError(), BundleStatus.CONFIRMED_SUCCESS)
    store = InMemoryRewardStore()
    queue, recorder = make_queue(submit, store)

    await queue.enqueue()
    await queue.enqueue()
    await queue.wait_idle()

    # the failed attempt did not advance the counter, so it is reused
    assert submit.counters == [1, 1]
    assert store.counter == 1
    assert store.balance == 151
    failed = recorder.of(ActionFailedEvent)
    assert [(event.counter, event.message, event.error_type) for event in failed] == [
        (1, "Cancelled", "UserRejectedError")
    ]
    assert queue.stats.failed == 1
    assert queue.stats.confirmed == 1


@pytest.mark.asyncio
async def test_reverted_bundle_is_not_credited():
    store = InMemoryRewardStore()
    queue, recorder = make_queue(ScriptedSubmit(BundleStatus.CONFIRMED_FAILURE), store)

    await queue.enqueue()
    await queue.wait_idle()

    assert store.counter == 0
    assert store.balance == 150
    assert recorder.of(ActionFailedEvent)[0].message == "Transaction reverted."


@pytest.mark.asyncio
async def test_indeterminate_outcome_follows_policy():
    store = InMemoryRewardStore()
    queue, _ = make_queue(ScriptedSubmit(BundleStatus.UNSUPPORTED), store)
    await queue.enqueue()
    await queue.wait_idle()
    assert store.balance == 151

    strict_store = InMemoryRewardStore()
    queue, recorder = make_queue(
        ScriptedSubmit(BundleStatus.UNSUPPORTED), strict_store, policy=UnsupportedStatusPolicy.TREAT_AS_FAILURE
    )
    await queue.enqueue()
    await queue.wait_idle()
    assert strict_store.balance == 150
    assert strict_store.counter == 0
    assert recorder.of(ActionFailedEvent)[0].message == "Transaction status unavailable"


@pytest.mark.asyncio
async def test_reward_delta_matches_confirmed_count():
    results = [
        BundleStatus.CONFIRMED_SUCCESS,
        RuntimeError("insufficient funds"),
        BundleStatus.PROTOCOL_FAILURE,
        BundleStatus.CONFIRMED_SUCCESS,
        BundleStatus.CONFIRMED_FAILURE,
        BundleStatus.CONFIRMED_SUCCESS,
    ]
    store = InMemoryRewardStore()
    queue, recorder = make_queue(ScriptedSubmit(*results), store)

    for _ in results:
        await queue.enqueue()
    await queue.wait_idle()

    confirmed = len(recorder.of(ActionConfirmedEvent))
    assert confirmed == 3
    assert store.balance - 150 == confirmed
    assert store.counter == confirmed


@pytest.mark.asyncio
async def test_hints_follow_queue_progress():
    queue, recorder = make_queue(ScriptedSubmit())

    await queue.enqueue()
    await queue.wait_idle()

    hints = [event.hint for event in recorder.of(QueueStatusEvent)]
    assert hints == ["Queued taps: 1", "Confirm in wallet… (1 queued)", "Tap"]


@pytest.mark.asyncio
async def test_failing_event_hook_does_not_stop_queue():
    store = InMemoryRewardStore()
    queue, _ = make_queue(ScriptedSubmit(), store)

    async def broken(event, deps):
        raise RuntimeError("ui gone")

    queue._bus.hook(ActionConfirmedEvent, broken)
    queue._bus.hook(QueueStatusEvent, broken)

    await queue.enqueue()
    await queue.enqueue()
    await queue.wait_idle()

    assert store.counter == 2


@pytest.mark.asyncio
async def test_wait_idle_on_fresh_queue_returns():
    queue, _ = make_queue(ScriptedSubmit())
    await queue.wait_idle()
    assert queue.stats.attempts == 0


class UnreliableStore(InMemoryRewardStore):
    """Reward store whose first counter read fails."""

    def __init__(self):
        super().__init__()
        self.reads = 0

    def get_sequence_counter(self):
        self.reads += 1
        if self.reads == 1:
            raise OSError("storage unavailable")
        return super().get_sequence_counter()


@pytest.mark.asyncio
async def test_reward_store_read_failure_does_not_stall_queue():
    submit = ScriptedSubmit()
    store = UnreliableStore()
    queue, recorder = make_queue(submit, store)

    await queue.enqueue()
    await queue.enqueue()
    await queue.wait_idle()

    assert submit.counters == [1]
    assert store.counter == 1
    assert store.balance == 151
    failed = recorder.of(ActionFailedEvent)
    assert [(event.counter, event.message, event.error_type) for event in failed] == [
        (0, "storage unavailable", "OSError")
    ]
    assert queue.stats.attempts == 2
    assert queue.pending == 0
    assert not queue.draining


@pytest.mark.asyncio
async def test_settle_delay_follows_each_attempt(monkeypatch):
    submit = ScriptedSubmit()
    queue = ActionQueue(submit, InMemoryRewardStore(), settle_delay=0.05)
    real_sleep = asyncio.sleep
    settles = []

    async def recording_sleep(delay, *args, **kwargs):
        if delay == 0.05:
            settles.append((len(submit.counters), queue.pending))
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", recording_sleep)

    await queue.enqueue()
    await queue.enqueue()
    await queue.wait_idle()

    # one settle per action, after its attempt and before the pending count drops
    assert settles == [(1, 2), (2, 1)]
    assert queue.pending == 0
