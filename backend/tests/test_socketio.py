def _join(sio_client, session_id=None):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    sio_client.get_received('/ws')  # flush connect
    sio_client.emit('join_session', {'session_id': session_id} if session_id else {}, namespace='/ws')
    return sio_client.get_received('/ws')


def _joined_id(events):
    return [e['args'][0] for e in events if e['name'] == 'joined'][-1]['session_id']


def _states(events):
    return [e['args'][0] for e in events if e['name'] == 'state_update']


def _intents(events):
    return [e['args'][0] for e in events if e['name'] == 'ui_intent']


def test_socket_connect_and_join(sio_client, client):
    received = _join(sio_client)
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    assert _states(received)[-1]['phase'] == 'not_started'
    # the socket lands on the session the browser opened over HTTP
    cookie_id = client.get('/api/game/session').get_json()['session_id']
    assert _joined_id(received) == cookie_id


def test_join_with_own_session_id(sio_client, client):
    cookie_id = client.get('/api/game/session').get_json()['session_id']
    received = _join(sio_client, cookie_id)
    assert _joined_id(received) == cookie_id


def test_join_foreign_session_is_refused(sio_client, flask_app, runtime):
    other = flask_app.test_client()
    foreign_id = other.get('/api/game/session').get_json()['session_id']
    received = _join(sio_client, foreign_id)
    assert any(e['name'] == 'error' for e in received)
    assert 'joined' not in [e['name'] for e in received]
    assert foreign_id not in runtime.sid_to_session.values()


def test_events_require_join(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    sio_client.get_received('/ws')
    sio_client.emit('marker_found', namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(e['name'] == 'error' for e in received)


def test_marker_and_answers_over_socket(sio_client, runtime):
    session_id = _joined_id(_join(sio_client))
    sio_client.emit('marker_found', namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _states(received)[-1]['phase'] == 'active'
    assert {'action': 'set_visible', 'element_id': 'game-ui', 'visible': True} in _intents(received)

    runtime.advance(session_id, 4500)
    received = sio_client.get_received('/ws')
    questions = [i for i in _intents(received) if i['action'] == 'show_question']
    assert questions[-1]['score'] == 0
    assert _states(received)[-1]['phase'] == 'question_shown'

    sio_client.emit('select_service', {'service': 's3'}, namespace='/ws')
    sio_client.emit('select_service', {'service': 's3'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _states(received)[-1]['phase'] == 'feedback'
    highlights = [i for i in _intents(received) if i['action'] == 'highlight_service']
    assert highlights == [{'action': 'highlight_service', 'service_id': 's3', 'correct': True}]

    runtime.advance(session_id, 2500)
    assert runtime.get(session_id).machine.state.score == 1


def test_unknown_service_is_rejected(sio_client):
    _join(sio_client)
    sio_client.emit('select_service', {'service': 'dynamodb'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(e['name'] == 'error' for e in received)


def test_ping_pong(sio_client):
    _join(sio_client)
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(e['name'] == 'pong' and e['args'][0] == {'n': 1} for e in received)
