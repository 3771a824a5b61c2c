"""Hosts game sessions for connected browsers.

One ``GameRuntime`` is attached to each Flask app. It builds sessions on
demand, funnels every event (socket, HTTP, timer) through a single lock so
each session sees one logical thread, and runs the timer worker.
"""

import threading
import time
from typing import Callable, Dict, List, Optional, TypeVar

from flask import current_app

from arquiz import socketio
from arquiz.services.game import (
    GameSession,
    GameTimings,
    MonotonicClock,
    QuestionBank,
    VirtualClock,
    build_session,
)
from arquiz.services.sinks import build_sink
from arquiz.services.socket_ui import SocketIOUi, session_room

T = TypeVar('T')

EXTENSION_KEY = 'arquiz'


def load_question_bank(config) -> QuestionBank:
    service_ids = config.get('SERVICE_IDS') or None
    path = config.get('QUESTIONS_FILE')
    if path:
        return QuestionBank.from_json_file(path, service_ids=service_ids)
    return QuestionBank.default(service_ids=service_ids)


class GameRuntime:
    def __init__(self, app, bank: Optional[QuestionBank] = None, ui_factory: Optional[Callable] = None):
        self.app = app
        self.bank = bank or load_question_bank(app.config)
        self.timings = GameTimings.from_config(app.config)
        self.debounce_ms = int(app.config.get('MARKER_DEBOUNCE_MS', 300))
        self.virtual_clock = bool(app.config.get('USE_VIRTUAL_CLOCK'))
        self.ui_factory = ui_factory or SocketIOUi
        self.sink = build_sink(app)
        self.grace_sec = float(app.config.get('SESSION_GRACE_SEC', 30))
        self.idle_ttl_sec = float(app.config.get('SESSION_IDLE_TTL_SEC', 1800))
        self.sessions: Dict[str, GameSession] = {}
        self.sid_to_session: Dict[str, str] = {}
        self._last_seen: Dict[str, float] = {}
        self._end_deadline: Dict[str, float] = {}
        self._lock = threading.RLock()
        self._worker_started = False

    # ---- Session registry ----

    def get(self, session_id: str) -> Optional[GameSession]:
        return self.sessions.get(session_id)

    def _touch(self, session_id: str) -> None:
        self._last_seen[session_id] = time.monotonic()

    def get_or_create(self, session_id: str, user_agent: Optional[str] = None) -> GameSession:
        with self._lock:
            session = self.sessions.get(session_id)
            if session is not None:
                self._touch(session_id)
                return session
            clock = VirtualClock() if self.virtual_clock else MonotonicClock()
            session = build_session(
                session_id,
                self.bank,
                self.ui_factory(session_id),
                self.sink,
                clock=clock,
                timings=self.timings,
                debounce_ms=self.debounce_ms,
                default_fields={'user_agent': user_agent} if user_agent else None,
            )
            self.sessions[session_id] = session
            self._touch(session_id)
            self.app.logger.info(f"[session-new] session={session_id} questions={len(self.bank)}")
        self.ensure_worker()
        return session

    def bind_sid(self, sid: str, session_id: str) -> None:
        with self._lock:
            self.sid_to_session[sid] = session_id
            self._end_deadline.pop(session_id, None)
            self._touch(session_id)

    def unbind_sid(self, sid: str) -> Optional[str]:
        """Forget a socket; the last one leaving starts the session's grace period."""
        with self._lock:
            session_id = self.sid_to_session.pop(sid, None)
            if session_id and not self._has_sockets(session_id):
                self._end_deadline[session_id] = time.monotonic() + self.grace_sec
                self.app.logger.info(f"[session-orphan] session={session_id} grace={self.grace_sec}s")
            return session_id

    def _has_sockets(self, session_id: str) -> bool:
        return session_id in self.sid_to_session.values()

    def end_session(self, session_id: str) -> bool:
        with self._lock:
            session = self.sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
            self._end_deadline.pop(session_id, None)
            if session is None:
                return False
            session.choreographer.cancel_all()
        self.app.logger.info(f"[session-end] session={session_id}")
        return True

    def evict_idle(self, now: Optional[float] = None) -> List[str]:
        """End sessions with no socket whose grace period ran out or that sat idle past the TTL."""
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = []
            for session_id in list(self.sessions):
                if self._has_sockets(session_id):
                    continue
                deadline = self._end_deadline.get(session_id)
                idle_for = now - self._last_seen.get(session_id, now)
                if (deadline is not None and now >= deadline) or idle_for >= self.idle_ttl_sec:
                    expired.append(session_id)
            for session_id in expired:
                self.end_session(session_id)
        return expired

    # ---- Event dispatch ----

    def dispatch(self, session_id: str, handler: Callable[[GameSession], T]) -> T:
        """Run ``handler`` against the session, then push its state to the room."""
        with self._lock:
            session = self.sessions[session_id]
            self._touch(session_id)
            result = handler(session)
            # Zero-delay intents fire in the same turn as the event that scheduled them
            session.choreographer.run_due()
            snapshot = session.machine.snapshot()
        self.emit_state(session_id, snapshot)
        return result

    def emit_state(self, session_id: str, snapshot: dict) -> None:
        try:
            socketio.emit('state_update', snapshot, to=session_room(session_id), namespace='/ws')
        except Exception as exc:
            self.app.logger.debug(f"[state-drop] session={session_id} error={exc}")

    def advance(self, session_id: str, ms: float) -> int:
        """Virtual-clock only: move one session's time forward."""
        with self._lock:
            session = self.sessions[session_id]
            fired = session.choreographer.advance(ms)
            snapshot = session.machine.snapshot()
        if fired:
            self.emit_state(session_id, snapshot)
        return fired

    def tick(self) -> List[str]:
        """Fire due timers in every session; push state only where something fired."""
        fired_sessions = []
        with self._lock:
            for session_id, session in list(self.sessions.items()):
                try:
                    fired = session.choreographer.run_due()
                except Exception:
                    # One broken action must not stall the other sessions
                    self.app.logger.exception(f"[timer-error] session={session_id}")
                    fired = 1
                if fired:
                    fired_sessions.append((session_id, session.machine.snapshot()))
        for session_id, snapshot in fired_sessions:
            self.emit_state(session_id, snapshot)
        return [sid for sid, _ in fired_sessions]

    # ---- Timer worker ----

    def ensure_worker(self) -> None:
        """Start the timer worker once. No-ops in TESTING mode and with a virtual clock."""
        if self.virtual_clock or self.app.config.get('TESTING'):
            return
        with self._lock:
            if self._worker_started:
                return
            self._worker_started = True
        socketio.start_background_task(self._worker)

    def _worker(self) -> None:
        interval = max(1, int(self.app.config.get('TICK_INTERVAL_MS', 50))) / 1000.0
        try:
            hb = int(self.app.config.get('TIMER_HEARTBEAT_SEC', 0))
        except Exception:
            hb = 0
        last_beat = time.monotonic()
        self.app.logger.info(f"[timer-worker] started interval={interval}s")
        while True:
            socketio.sleep(interval)
            try:
                self.tick()
                self.evict_idle()
            except Exception:
                self.app.logger.exception('[timer-worker] tick failed')
            if hb and hb > 0 and time.monotonic() - last_beat >= hb:
                last_beat = time.monotonic()
                pending = sum(len(s.choreographer.pending()) for s in list(self.sessions.values()))
                self.app.logger.info(f"[timer-heartbeat] sessions={len(self.sessions)} pending={pending}")


class FlaskSessionStore:
    """Session-id store backed by the signed Flask session cookie."""

    def __init__(self, flask_session):
        self.flask_session = flask_session

    def get(self, key):
        return self.flask_session.get(key)

    def set(self, key, value):
        self.flask_session[key] = value


def current_runtime() -> GameRuntime:
    return current_app.extensions[EXTENSION_KEY]
