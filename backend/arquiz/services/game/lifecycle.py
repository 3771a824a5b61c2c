import logging
from typing import Optional

from .choreographer import ScheduledIntent, TimedChoreographer

logger = logging.getLogger(__name__)

MARKER_GROUP = 'marker'


class MarkerLifecycleController:
    """Debounces raw marker visibility into found/lost game signals.

    A ``lost`` is held back for ``debounce_ms``; a ``found`` arriving inside
    that window cancels it and the game never sees the flicker. Repeated
    signals for the visibility we already reported are ignored.
    """

    def __init__(self, machine, choreographer: TimedChoreographer, debounce_ms: int = 300):
        self.machine = machine
        self.choreographer = choreographer
        self.debounce_ms = max(0, int(debounce_ms))
        self.visible = False
        self._pending_lost: Optional[ScheduledIntent] = None

    def marker_found(self) -> None:
        if self._pending_lost is not None:
            self.choreographer.cancel(self._pending_lost)
            self._pending_lost = None
            logger.debug(f"[marker-flicker] session={self.machine.state.session_id} lost signal suppressed")
            return
        if self.visible:
            return
        self.visible = True
        self.machine.on_marker_found()

    def marker_lost(self) -> None:
        if not self.visible or self._pending_lost is not None:
            return
        if self.debounce_ms == 0:
            self._commit_lost()
            return
        self._pending_lost = self.choreographer.schedule(
            'marker_lost', self.debounce_ms, self._commit_lost, group=MARKER_GROUP
        )

    def _commit_lost(self) -> None:
        self._pending_lost = None
        self.visible = False
        self.machine.on_marker_lost()
