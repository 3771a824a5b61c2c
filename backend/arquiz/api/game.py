from flask import Blueprint, jsonify, request, session as flask_session

from arquiz.models import GameEvent
from arquiz.runtime import FlaskSessionStore, current_runtime
from arquiz.services.game.session_id import SESSION_ID_KEY, get_or_create_session_id

game = Blueprint('game', __name__)


def _owns(session_id):
    return flask_session.get(SESSION_ID_KEY) == session_id


def _session_or_404(session_id):
    """Look up a session this browser owns; the error is a ready 404/403 response."""
    runtime = current_runtime()
    session = runtime.get(session_id)
    if session is None:
        return runtime, None, (jsonify({'error': 'Session not found'}), 404)
    if not _owns(session_id):
        return runtime, None, (jsonify({'error': 'Session belongs to another browser'}), 403)
    return runtime, session, None


@game.route('/session', methods=['GET'])
def open_session():
    """
    Returns this browser's session id (creating it once) and the game state.
    """
    runtime = current_runtime()
    session_id = get_or_create_session_id(FlaskSessionStore(flask_session))
    session = runtime.get_or_create(session_id, user_agent=request.headers.get('User-Agent'))
    return jsonify(session.machine.snapshot())


@game.route('/questions', methods=['GET'])
def list_questions():
    runtime = current_runtime()
    return jsonify({
        'service_ids': list(runtime.bank.service_ids or []),
        'questions': [dict(q.to_dict(), number=i + 1) for i, q in enumerate(runtime.bank)],
    })


@game.route('/<string:session_id>/state', methods=['GET'])
def get_state(session_id):
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    return jsonify(session.machine.snapshot())


@game.route('/<string:session_id>/scene-loaded', methods=['POST'])
def scene_loaded(session_id):
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    runtime.dispatch(session_id, lambda s: s.machine.on_scene_loaded())
    return jsonify(session.machine.snapshot())


@game.route('/<string:session_id>/marker', methods=['POST'])
def marker(session_id):
    data = request.get_json(silent=True) or {}
    visible = data.get('visible')
    if not isinstance(visible, bool):
        return jsonify({'error': 'visible (true/false) is required'}), 400
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    if visible:
        runtime.dispatch(session_id, lambda s: s.marker.marker_found())
    else:
        runtime.dispatch(session_id, lambda s: s.marker.marker_lost())
    return jsonify(session.machine.snapshot())


@game.route('/<string:session_id>/answer', methods=['POST'])
def answer(session_id):
    data = request.get_json(silent=True) or {}
    service_id = data.get('service')
    if not service_id:
        return jsonify({'error': 'service is required'}), 400
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    if not runtime.bank.is_known_service(service_id):
        return jsonify({'error': f'Unknown service {service_id!r}'}), 400
    accepted = runtime.dispatch(session_id, lambda s: s.machine.submit_answer(service_id))
    payload = session.machine.snapshot()
    payload['accepted'] = accepted
    return jsonify(payload)


@game.route('/<string:session_id>/restart', methods=['POST'])
def restart(session_id):
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    restarted = runtime.dispatch(session_id, lambda s: s.machine.restart())
    if not restarted:
        return jsonify({'error': 'Game has not started yet'}), 400
    return jsonify(session.machine.snapshot())


@game.route('/<string:session_id>/selfie', methods=['POST'])
def selfie(session_id):
    runtime, session, error = _session_or_404(session_id)
    if error:
        return error
    runtime.dispatch(session_id, lambda s: s.machine.record_selfie())
    return jsonify({'message': 'Selfie recorded'}), 201


@game.route('/<string:session_id>/events', methods=['GET'])
def list_events(session_id):
    # Stored events outlive the in-memory session, so only ownership is checked
    if not _owns(session_id):
        return jsonify({'error': 'Session belongs to another browser'}), 403
    events = GameEvent.query.filter_by(session_id=session_id).order_by(GameEvent.id).all()
    return jsonify([e.to_dict() for e in events])
