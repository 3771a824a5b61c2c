from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .choreographer import TimedChoreographer
from .event_logger import LogSink, SessionEventLogger
from .lifecycle import MarkerLifecycleController
from .questions import QuestionBank
from .state_machine import GameStateMachine, GameTimings
from .ui import GameUi


@dataclass
class GameSession:
    """Everything one player's game needs, built together and owned by the caller."""

    session_id: str
    machine: GameStateMachine
    marker: MarkerLifecycleController
    choreographer: TimedChoreographer
    event_logger: SessionEventLogger


def build_session(
    session_id: str,
    bank: QuestionBank,
    ui: GameUi,
    sink: LogSink,
    clock=None,
    timings: Optional[GameTimings] = None,
    debounce_ms: int = 300,
    default_fields: Optional[Mapping[str, Any]] = None,
) -> GameSession:
    choreographer = TimedChoreographer(clock)
    event_logger = SessionEventLogger(sink, default_fields=default_fields)
    machine = GameStateMachine(bank, ui, event_logger, choreographer, session_id, timings=timings)
    marker = MarkerLifecycleController(machine, choreographer, debounce_ms=debounce_ms)
    return GameSession(
        session_id=session_id,
        machine=machine,
        marker=marker,
        choreographer=choreographer,
        event_logger=event_logger,
    )
