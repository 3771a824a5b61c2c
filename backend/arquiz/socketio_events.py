from flask import request, session as flask_session
from flask_socketio import join_room, leave_room, emit

from arquiz import socketio
from arquiz.runtime import FlaskSessionStore, current_runtime
from arquiz.services.game.session_id import get_or_create_session_id
from arquiz.services.socket_ui import session_room


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _bound_session_id():
    """Session id joined by this socket, or None after emitting an error."""
    session_id = current_runtime().sid_to_session.get(_get_sid())
    if not session_id:
        emit('error', {'message': 'join_session first'})
    return session_id


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # Progress is kept: the same browser session can reconnect and rejoin
    session_id = current_runtime().unbind_sid(_get_sid())
    if session_id:
        leave_room(session_room(session_id))


def handle_join_session(data):
    runtime = current_runtime()
    # Ids minted here live in the socket's session copy only; the cookie is
    # written by GET /api/game/session
    session_id = get_or_create_session_id(FlaskSessionStore(flask_session))
    requested = (data or {}).get('session_id')
    if requested and requested != session_id:
        emit('error', {'message': 'Session belongs to another browser'})
        return
    user_agent = (data or {}).get('user_agent') or request.headers.get('User-Agent')
    session = runtime.get_or_create(session_id, user_agent=user_agent)
    room = session_room(session_id)
    join_room(room)
    runtime.bind_sid(_get_sid(), session_id)
    emit('joined', {'room': room, 'session_id': session_id})
    emit('state_update', session.machine.snapshot())


def handle_scene_loaded(data=None):
    session_id = _bound_session_id()
    if session_id:
        current_runtime().dispatch(session_id, lambda s: s.machine.on_scene_loaded())


def handle_marker_found(data=None):
    session_id = _bound_session_id()
    if session_id:
        current_runtime().dispatch(session_id, lambda s: s.marker.marker_found())


def handle_marker_lost(data=None):
    session_id = _bound_session_id()
    if session_id:
        current_runtime().dispatch(session_id, lambda s: s.marker.marker_lost())


def handle_select_service(data):
    service_id = (data or {}).get('service')
    if not service_id:
        emit('error', {'message': 'service is required'})
        return
    session_id = _bound_session_id()
    if not session_id:
        return
    runtime = current_runtime()
    if not runtime.bank.is_known_service(service_id):
        emit('error', {'message': f'Unknown service {service_id!r}'})
        return
    runtime.dispatch(session_id, lambda s: s.machine.submit_answer(service_id))


def handle_restart_game(data=None):
    session_id = _bound_session_id()
    if session_id:
        current_runtime().dispatch(session_id, lambda s: s.machine.restart())


def handle_take_selfie(data=None):
    session_id = _bound_session_id()
    if session_id:
        current_runtime().dispatch(session_id, lambda s: s.machine.record_selfie())


def handle_ping(data):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join_session': handle_join_session,
    'scene_loaded': handle_scene_loaded,
    'marker_found': handle_marker_found,
    'marker_lost': handle_marker_lost,
    'select_service': handle_select_service,
    'restart_game': handle_restart_game,
    'take_selfie': handle_take_selfie,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
