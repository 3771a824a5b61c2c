import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .choreographer import TimedChoreographer
from .event_logger import SessionEventLogger
from .questions import Question, QuestionBank
from .ui import (
    AVATAR,
    BADGE,
    COMPLETION_PANEL,
    CONFETTI,
    GAME_ICONS,
    GAME_UI,
    INSTRUCTIONS,
    LOADING_SCREEN,
    QUESTION_PANEL,
    GameUi,
)

logger = logging.getLogger(__name__)

# Choreographer groups: restart only cancels GAME_GROUP
GAME_GROUP = 'game'
SCENE_GROUP = 'scene'

WELCOME_MESSAGE = "Welcome to #SheBuildsOnAWS!\nLet's play a quick game!"
WELCOME_COLOR = '#FF6B9D'
CORRECT_MESSAGE = '✅ Correct! Great job!'
INCORRECT_MESSAGE = '❌ Not quite right, but keep learning!'
SELFIE_MESSAGE = '📸 Selfie saved!'
SUCCESS_COLOR = '#4CAF50'
FAILURE_COLOR = '#FF5722'


class Phase(str, Enum):
    NOT_STARTED = 'not_started'
    AWAITING_MARKER = 'awaiting_marker'
    ACTIVE = 'active'
    MARKER_LOST = 'marker_lost'
    QUESTION_SHOWN = 'question_shown'
    FEEDBACK = 'feedback'
    COMPLETED = 'completed'


# Phases the marker can be lost from
PLAYING_PHASES = frozenset({Phase.ACTIVE, Phase.QUESTION_SHOWN, Phase.FEEDBACK, Phase.COMPLETED})


@dataclass
class SessionState:
    session_id: str
    phase: Phase = Phase.NOT_STARTED
    current_question_index: int = 0
    score: int = 0


@dataclass(frozen=True)
class GameTimings:
    welcome_delay_ms: int = 1500
    welcome_duration_ms: int = 3000
    feedback_duration_ms: int = 2000
    next_question_delay_ms: int = 500
    message_duration_ms: int = 2000
    confetti_duration_ms: int = 3000
    completion_panel_delay_ms: int = 2000
    restart_delay_ms: int = 500
    loading_screen_ms: int = 2000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'GameTimings':
        values = {}
        for name, default in cls().__dict__.items():
            try:
                values[name] = int(config.get(name.upper(), default))
            except (TypeError, ValueError):
                values[name] = default
        return cls(**values)


class GameStateMachine:
    """Owns one player's quiz session.

    Consumes marker signals, answer selections and restarts; everything it
    does to the page goes through ``ui`` and every delay goes through the
    choreographer. While the marker is lost, transitions caused by pending
    timers are applied to the phase that will be restored on re-detection,
    so progress is never discarded.
    """

    def __init__(
        self,
        bank: QuestionBank,
        ui: GameUi,
        event_logger: SessionEventLogger,
        choreographer: TimedChoreographer,
        session_id: str,
        timings: Optional[GameTimings] = None,
    ):
        self.bank = bank
        self.ui = ui
        self.event_logger = event_logger
        self.choreographer = choreographer
        self.timings = timings or GameTimings()
        self.state = SessionState(session_id=session_id)
        self._started = False
        self._resume_phase: Optional[Phase] = None
        self._pending_correct: Optional[bool] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def effective_phase(self) -> Phase:
        """The game phase, looking through a lost marker."""
        if self.state.phase is Phase.MARKER_LOST and self._resume_phase is not None:
            return self._resume_phase
        return self.state.phase

    @property
    def current_question(self) -> Optional[Question]:
        idx = self.state.current_question_index
        return self.bank[idx] if idx < len(self.bank) else None

    def _set_phase(self, phase: Phase) -> None:
        if self.state.phase is Phase.MARKER_LOST:
            self._resume_phase = phase
        else:
            self.state.phase = phase
        logger.debug(f"[phase] session={self.state.session_id} phase={self.state.phase.value} effective={self.effective_phase.value}")

    def _schedule(self, name: str, delay_ms: int, action) -> None:
        self.choreographer.schedule(name, delay_ms, action, group=GAME_GROUP)

    def _log(self, event_type: str, **fields) -> None:
        self.event_logger.log(event_type, fields, self.state)

    # ---- Lifecycle signals ----

    def on_scene_loaded(self) -> None:
        if self.state.phase is not Phase.NOT_STARTED:
            return
        self.state.phase = Phase.AWAITING_MARKER
        self.choreographer.schedule(
            'hide_loading_screen',
            self.timings.loading_screen_ms,
            lambda: self.ui.set_visible(LOADING_SCREEN, False),
            group=SCENE_GROUP,
        )

    def on_marker_found(self) -> None:
        if not self._started:
            self._start()
            return
        if self.state.phase is not Phase.MARKER_LOST:
            return
        self.state.phase = self._resume_phase or Phase.ACTIVE
        self._resume_phase = None
        logger.info(f"[marker-resume] session={self.state.session_id} phase={self.state.phase.value}")
        self._show_game_ui()
        self._reshow_current()

    def on_marker_lost(self) -> None:
        if self.state.phase not in PLAYING_PHASES:
            return
        self._resume_phase = self.state.phase
        self.state.phase = Phase.MARKER_LOST
        logger.info(f"[marker-lost] session={self.state.session_id} paused_phase={self._resume_phase.value}")
        self.ui.set_visible(GAME_UI, False)

    def _start(self) -> None:
        self._started = True
        self.state.current_question_index = 0
        self.state.score = 0
        self._pending_correct = None
        self.state.phase = Phase.ACTIVE
        logger.info(f"[game-start] session={self.state.session_id} questions={len(self.bank)}")
        self._log('game_started')
        self._show_game_ui()
        self._schedule('welcome', self.timings.welcome_delay_ms, self._show_welcome)

    def _show_game_ui(self) -> None:
        self.ui.set_visible(GAME_UI, True)
        self.ui.set_visible(AVATAR, True)

    def _show_welcome(self) -> None:
        self.ui.show_message(WELCOME_MESSAGE, WELCOME_COLOR, self.timings.welcome_duration_ms)
        self._schedule('welcome_done', self.timings.welcome_duration_ms, self._begin_questions)

    def _begin_questions(self) -> None:
        self.ui.set_visible(GAME_ICONS, True)
        self.ui.set_visible(INSTRUCTIONS, True)
        self.ask_current_question()

    def _reshow_current(self) -> None:
        # Feedback is not replayed; its pending advance carries on
        if self.state.phase is Phase.QUESTION_SHOWN:
            self._render_question(self.bank[self.state.current_question_index])
        elif self.state.phase is Phase.COMPLETED:
            self.ui.set_visible(BADGE, True)

    # ---- Questions and answers ----

    def ask_current_question(self) -> Optional[Question]:
        """Show the current question, or complete the game when none remain.

        Calling it again without an answer in between re-renders the same
        question. Ignored during feedback and after completion.
        """
        if not self._started or self.effective_phase in (Phase.FEEDBACK, Phase.COMPLETED):
            return None
        idx = self.state.current_question_index
        if idx >= len(self.bank):
            self.complete()
            return None
        question = self.bank[idx]
        self._set_phase(Phase.QUESTION_SHOWN)
        self._render_question(question)
        logger.info(f"[question] session={self.state.session_id} number={idx + 1} prompt={question.prompt!r}")
        return question

    def _render_question(self, question: Question) -> None:
        self.ui.show_panel(QUESTION_PANEL)
        self.ui.show_question(question.prompt, self.state.score)

    def submit_answer(self, service_id: str) -> bool:
        if self.state.phase is not Phase.QUESTION_SHOWN:
            logger.debug(f"[answer-drop] session={self.state.session_id} phase={self.state.phase.value} selected={service_id}")
            return False
        idx = self.state.current_question_index
        question = self.bank[idx]
        is_correct = service_id == question.correct_answer
        self._pending_correct = is_correct
        self.state.phase = Phase.FEEDBACK
        logger.info(f"[answer] session={self.state.session_id} number={idx + 1} selected={service_id} correct={is_correct}")

        if is_correct:
            self.ui.highlight_service(question.correct_answer, True)
            self.ui.show_message(CORRECT_MESSAGE, SUCCESS_COLOR, self.timings.message_duration_ms)
            self.ui.set_visible(CONFETTI, True)
            self._schedule('confetti_off', self.timings.confetti_duration_ms, lambda: self.ui.set_visible(CONFETTI, False))
        else:
            self.ui.show_message(INCORRECT_MESSAGE, FAILURE_COLOR, self.timings.message_duration_ms)

        self._log('answer_submitted', question=idx + 1, selected=service_id, correct=is_correct)
        self._schedule('advance', self.timings.feedback_duration_ms, self._advance)
        return True

    def _advance(self) -> None:
        # Index and score move together so score never runs ahead of answered questions
        self.state.current_question_index += 1
        if self._pending_correct:
            self.state.score += 1
        self._pending_correct = None
        self.ui.hide_panel(QUESTION_PANEL)
        self._set_phase(Phase.ACTIVE)
        self._schedule('next_question', self.timings.next_question_delay_ms, self.ask_current_question)

    def complete(self) -> bool:
        if self.effective_phase not in (Phase.ACTIVE, Phase.QUESTION_SHOWN) or not self._started:
            return False
        self._set_phase(Phase.COMPLETED)
        total = len(self.bank)
        logger.info(f"[finish] session={self.state.session_id} score={self.state.score}/{total}")
        self.ui.hide_panel(QUESTION_PANEL)
        self.ui.set_visible(GAME_ICONS, False)
        self.ui.set_visible(INSTRUCTIONS, False)
        self.ui.set_visible(BADGE, True)
        self._schedule(
            'completion_panel',
            self.timings.completion_panel_delay_ms,
            lambda: self.ui.show_panel(COMPLETION_PANEL),
        )
        self._log('game_completed', final_score=self.state.score, total_questions=total)
        return True

    def restart(self) -> bool:
        if not self._started:
            logger.debug(f"[restart-skip] session={self.state.session_id} game not started")
            return False
        cancelled = self.choreographer.cancel_all(group=GAME_GROUP)
        self.ui.hide_panel(COMPLETION_PANEL)
        self.ui.hide_panel(QUESTION_PANEL)
        self.ui.set_visible(BADGE, False)
        self.ui.set_visible(CONFETTI, False)
        self.ui.clear_highlights()
        self.state.current_question_index = 0
        self.state.score = 0
        self._pending_correct = None
        self._set_phase(Phase.ACTIVE)
        logger.info(f"[restart] session={self.state.session_id} cancelled_intents={cancelled}")
        self._schedule('restart_question', self.timings.restart_delay_ms, self._begin_questions)
        return True

    def record_selfie(self) -> None:
        self._log('selfie_taken')
        self.ui.show_message(SELFIE_MESSAGE, SUCCESS_COLOR, self.timings.message_duration_ms)

    def snapshot(self) -> Dict[str, Any]:
        effective = self.effective_phase
        question = self.current_question
        payload = {
            'session_id': self.state.session_id,
            'phase': self.state.phase.value,
            'effective_phase': effective.value,
            'started': self._started,
            'current_question_index': self.state.current_question_index,
            'score': self.state.score,
            'total_questions': len(self.bank),
            'question': question.prompt if question and effective is Phase.QUESTION_SHOWN else None,
            'explanation': question.explanation if question and effective is Phase.FEEDBACK else None,
            'pending': [i.name for i in self.choreographer.pending()],
        }
        return payload
