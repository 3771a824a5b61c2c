"""Game domain services: session state machine, choreography and analytics.

This package contains the pure game logic imported by HTTP routes and
socket handlers, keeping transport concerns separated from core game
mechanics. Nothing here imports Flask.
"""

from .choreographer import MonotonicClock, ScheduledIntent, TimedChoreographer, VirtualClock
from .event_logger import LogRecord, SessionEventLogger
from .lifecycle import MarkerLifecycleController
from .questions import Question, QuestionBank, QuestionBankError
from .session import GameSession, build_session
from .state_machine import GameStateMachine, GameTimings, Phase, SessionState

__all__ = [
    'GameSession',
    'GameStateMachine',
    'GameTimings',
    'LogRecord',
    'MarkerLifecycleController',
    'MonotonicClock',
    'Phase',
    'Question',
    'QuestionBank',
    'QuestionBankError',
    'ScheduledIntent',
    'SessionEventLogger',
    'SessionState',
    'TimedChoreographer',
    'VirtualClock',
    'build_session',
]
