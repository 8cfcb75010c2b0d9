"""
Cron scheduling of subscription updates.

Every subscription gets a Slot that moves through

    UNSCHEDULED -> SCHEDULED -> DUE -> UPDATING -> SCHEDULED | UNSCHEDULED

The loop sleeps until the nearest SCHEDULED slot is due and hands it to an
update task on its own thread. A slot in UPDATING is never selected, so a
subscription never has two updates in flight. All slot transitions happen
under the scheduler's condition lock.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, List, Optional, Set

from apscheduler.triggers.cron import CronTrigger

from lib.models import Subscription

from .constants import MIN_SLEEP

logger = logging.getLogger(__name__)

# Upper bound for a single wait, the loop re-evaluates afterwards
MAX_WAIT = 60.0


class SlotState(str, Enum):
    """Slot lifecycle"""

    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    DUE = "due"
    UPDATING = "updating"


@dataclass
class Slot:
    """Runtime scheduling state of one subscription"""

    subscription: Subscription
    trigger: Optional[CronTrigger] = None
    next_due_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    last_result: Optional[bool] = None
    state: SlotState = SlotState.UNSCHEDULED

    @property
    def name(self) -> str:
        return self.subscription.name


def compile_cron(expression: str, timezone: Any = None) -> CronTrigger:
    """Standard 5-field cron expression to a trigger (local time unless `timezone` is given)"""
    return CronTrigger.from_crontab(expression, timezone=timezone)


def next_fire_time(trigger: CronTrigger, now: datetime) -> Optional[datetime]:
    """First fire time strictly after `now`"""
    start = now.replace(microsecond=0) + timedelta(seconds=1)
    return trigger.get_next_fire_time(None, start)


def spawn_thread(target: Callable[..., Any], *args: Any) -> threading.Thread:
    thread = threading.Thread(target=target, args=args, name="update")
    thread.start()
    return thread


class Scheduler:
    """Runs `update(subscription)` for every cron-bearing subscription when it is due."""

    def __init__(
        self,
        subscriptions: List[Subscription],
        update: Callable[[Subscription], bool],
        cancel: Optional[threading.Event] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timezone: Any = None,
        spawn: Callable[..., Optional[threading.Thread]] = spawn_thread,
        last_updated: Optional[Callable[[str], Optional[datetime]]] = None,
    ):
        """
        Args:
            subscriptions: All configured subscriptions, in config order
            update: Runs one fetch/validate/promote cycle and reports success
            cancel: Shared shutdown signal
            clock: Returns the current (timezone-aware) time
            timezone: Timezone for cron expressions, local time when None
            spawn: Starts `target(*args)` concurrently, returning the thread when there is one
            last_updated: Recovers the last update time of a subscription by name
        """
        self.update = update
        self.cancel = cancel or threading.Event()
        self.clock = clock or (lambda: datetime.now().astimezone())
        self.timezone = timezone
        self.spawn = spawn
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._workers: Set[threading.Thread] = set()
        self.slots = [self._make_slot(s, last_updated) for s in subscriptions]
        self.refresh(self.clock())

    def _make_slot(
        self, subscription: Subscription, last_updated: Optional[Callable[[str], Optional[datetime]]]
    ) -> Slot:
        slot = Slot(subscription=subscription)
        if last_updated and subscription.name:
            slot.last_updated_at = last_updated(subscription.name)
        if not subscription.schedulable:
            return slot
        try:
            slot.trigger = compile_cron(subscription.cron, self.timezone)
        except ValueError as e:
            logger.warning("[%s] Invalid cron expression %r, not scheduling: %s", subscription.name, subscription.cron, e)
        return slot

    def refresh(self, now: datetime) -> None:
        """Give idle slots without a due time a fresh one computed from `now`"""
        with self._cond:
            for slot in self.slots:
                if slot.trigger is None or slot.state is not SlotState.UNSCHEDULED:
                    continue
                slot.next_due_at = next_fire_time(slot.trigger, now)
                if slot.next_due_at is not None:
                    slot.state = SlotState.SCHEDULED

    def select(self, now: datetime) -> Optional[Slot]:
        """The SCHEDULED slot due first (config order breaks ties), None when nothing is scheduled"""
        with self._cond:
            self.refresh(now)
            candidates = [
                s for s in self.slots if s.state is SlotState.SCHEDULED and s.next_due_at is not None
            ]
            if not candidates:
                return None
            return min(candidates, key=lambda s: s.next_due_at)

    def dispatch(self, slot: Slot, now: datetime) -> None:
        """Move a due slot to UPDATING, compute its next tick and start the update"""
        with self._cond:
            slot.state = SlotState.DUE
            slot.next_due_at = next_fire_time(slot.trigger, now)
            if slot.next_due_at is not None and slot.next_due_at <= now:
                slot.next_due_at = None
            slot.state = SlotState.UPDATING
            logger.info("[%s] Update due", slot.name)
            worker = self.spawn(self._run_update, slot)
            if isinstance(worker, threading.Thread) and worker.is_alive():
                self._workers.add(worker)

    def _run_update(self, slot: Slot) -> None:
        try:
            success = bool(self.update(slot.subscription))
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("[%s] Update crashed: %s", slot.name, e)
            success = False
        self._finish(slot, success)

    def _finish(self, slot: Slot, success: bool) -> None:
        with self._cond:
            now = self.clock()
            slot.last_result = success
            if success:
                slot.last_updated_at = now
            if slot.next_due_at is not None and slot.next_due_at <= now:
                # missed tick: reschedule from idle instead of firing back to back
                logger.info("[%s] Update outlasted its next tick, rescheduling", slot.name)
                slot.next_due_at = None
            slot.state = SlotState.SCHEDULED if slot.next_due_at is not None else SlotState.UNSCHEDULED
            self._workers.discard(threading.current_thread())
            self._cond.notify_all()

    def run(self) -> None:
        """Scheduling loop, returns once `stop()` is called (or `cancel` is set and the loop wakes up)"""
        scheduled = sum(1 for s in self.slots if s.trigger is not None)
        logger.info("Scheduler started for %d subscription(s)", scheduled)
        announced = None
        with self._cond:
            while not self.cancel.is_set():
                now = self.clock()
                slot = self.select(now)
                if slot is None:
                    logger.debug("Nothing scheduled, idling")
                    self._cond.wait(MAX_WAIT)
                    continue

                sleep = max((slot.next_due_at - now).total_seconds(), MIN_SLEEP)
                if announced != (slot.name, slot.next_due_at):
                    announced = (slot.name, slot.next_due_at)
                    logger.info("[%s] Next update at %s, waiting %.0fs", slot.name, slot.next_due_at, sleep)
                self._cond.wait(min(sleep, MAX_WAIT))
                if self.cancel.is_set():
                    break

                now = self.clock()
                if slot.state is SlotState.SCHEDULED and slot.next_due_at is not None and slot.next_due_at <= now:
                    self.dispatch(slot, now)
        logger.info("Scheduler stopped")

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="scheduler", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Set the cancel signal and wake the loop"""
        self.cancel.set()
        with self._cond:
            self._cond.notify_all()

    def in_flight(self) -> List[threading.Thread]:
        """Update threads that have not finished yet"""
        with self._cond:
            return [w for w in self._workers if w.is_alive()]

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the loop, then for every in-flight update

        Call after `stop()`. Updates see the cancel signal and bail out of their
        backoff, but a promote that already started runs to completion.
        """
        if self._thread:
            self._thread.join(timeout)
        workers = self.in_flight()
        if workers:
            logger.info("Waiting for %d update(s) to finish", len(workers))
        for worker in workers:
            worker.join(timeout)

    def find(self, name: str) -> Optional[Slot]:
        for slot in self.slots:
            if slot.subscription.matches(name):
                return slot
        return None
