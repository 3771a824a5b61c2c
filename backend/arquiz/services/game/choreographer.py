import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class MonotonicClock:
    def now_ms(self) -> float:
        return time.monotonic() * 1000.0


class VirtualClock:
    """Manually advanced clock so tests can step through choreography."""

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)

    def now_ms(self) -> float:
        return self._now

    def set(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError('VirtualClock cannot move backwards')
        self._now = float(now_ms)


@dataclass
class ScheduledIntent:
    id: int
    name: str
    fire_at: float
    action: Callable[[], None] = field(repr=False)
    group: str = 'game'
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class TimedChoreographer:
    """Schedules named UI actions to fire after a delay.

    - Each intent fires at most once
    - Cancelling before the fire time suppresses it; after, it is a no-op
    - Due intents fire in (fire_at, id) order, so equal deadlines keep
      scheduling order
    - Nothing here sleeps: a driver calls ``run_due`` (runtime ticker) or
      ``advance`` (virtual clock) to deliver firings
    """

    def __init__(self, clock=None):
        self.clock = clock or MonotonicClock()
        self._ids = itertools.count(1)
        self._heap: List[tuple] = []
        self._intents: Dict[int, ScheduledIntent] = {}

    def schedule(self, name: str, delay_ms: float, action: Callable[[], None], group: str = 'game') -> ScheduledIntent:
        intent = ScheduledIntent(
            id=next(self._ids),
            name=name,
            fire_at=self.clock.now_ms() + max(0.0, float(delay_ms)),
            action=action,
            group=group,
        )
        self._intents[intent.id] = intent
        heapq.heappush(self._heap, (intent.fire_at, intent.id))
        logger.debug(f"[timer-set] intent={intent.id} name={name} group={group} delay={delay_ms}ms")
        return intent

    def cancel(self, intent: Union[ScheduledIntent, int]) -> bool:
        intent_id = intent.id if isinstance(intent, ScheduledIntent) else intent
        found = self._intents.pop(intent_id, None)
        if found is None or not found.pending:
            return False
        found.cancelled = True
        logger.debug(f"[timer-cancel] intent={found.id} name={found.name}")
        return True

    def cancel_all(self, group: Optional[str] = None) -> int:
        targets = [i for i in self._intents.values() if group is None or i.group == group]
        return sum(1 for i in targets if self.cancel(i))

    def pending(self, group: Optional[str] = None) -> List[ScheduledIntent]:
        items = [i for i in self._intents.values() if i.pending and (group is None or i.group == group)]
        return sorted(items, key=lambda i: (i.fire_at, i.id))

    def next_fire_at(self) -> Optional[float]:
        while self._heap:
            fire_at, intent_id = self._heap[0]
            if intent_id in self._intents:
                return fire_at
            heapq.heappop(self._heap)
        return None

    def _fire_next(self) -> None:
        _, intent_id = heapq.heappop(self._heap)
        intent = self._intents.pop(intent_id, None)
        if intent is None or not intent.pending:
            return
        intent.fired = True
        logger.debug(f"[timer-fire] intent={intent.id} name={intent.name}")
        intent.action()

    def run_due(self) -> int:
        """Fire every intent whose deadline has passed. Returns how many fired."""
        fired = 0
        while True:
            fire_at = self.next_fire_at()
            if fire_at is None or fire_at > self.clock.now_ms():
                return fired
            self._fire_next()
            fired += 1

    def advance(self, ms: float) -> int:
        """Move a virtual clock forward, firing intermediate intents at their own times."""
        if not isinstance(self.clock, VirtualClock):
            raise TypeError('advance() requires a VirtualClock')
        target = self.clock.now_ms() + ms
        fired = 0
        while True:
            fire_at = self.next_fire_at()
            if fire_at is None or fire_at > target:
                break
            self.clock.set(max(fire_at, self.clock.now_ms()))
            self._fire_next()
            fired += 1
        self.clock.set(target)
        return fired
