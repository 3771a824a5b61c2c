def open_session(client):
    res = client.get('/api/game/session')
    assert res.status_code == 200
    return res.get_json()['session_id']


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    health = client.get('/health').get_json()
    assert health['status'] == 'ok'
    assert health['questions'] == 3


def test_session_id_is_stable_per_browser(client):
    first = open_session(client)
    assert first.startswith('session_')
    assert open_session(client) == first
    state = client.get(f'/api/game/{first}/state').get_json()
    assert state['phase'] == 'not_started'
    assert state['total_questions'] == 3


def test_questions_endpoint_hides_answers(client):
    data = client.get('/api/game/questions').get_json()
    assert data['service_ids'] == ['s3', 'lambda', 'ec2']
    assert len(data['questions']) == 3
    assert all('correct_answer' not in q for q in data['questions'])
    assert data['questions'][0]['number'] == 1


def test_unknown_session_returns_404(client):
    assert client.get('/api/game/nope/state').status_code == 404
    assert client.post('/api/game/nope/marker', json={'visible': True}).status_code == 404


def test_validation_errors(client):
    sid = open_session(client)
    assert client.post(f'/api/game/{sid}/marker', json={}).status_code == 400
    assert client.post(f'/api/game/{sid}/answer', json={}).status_code == 400
    assert client.post(f'/api/game/{sid}/answer', json={'service': 'dynamodb'}).status_code == 400
    assert client.post(f'/api/game/{sid}/restart').status_code == 400


def test_full_game_over_http(client, runtime):
    sid = open_session(client)
    assert client.post(f'/api/game/{sid}/scene-loaded').get_json()['phase'] == 'awaiting_marker'
    started = client.post(f'/api/game/{sid}/marker', json={'visible': True}).get_json()
    assert started['phase'] == 'active'

    # answers before the first question are dropped
    early = client.post(f'/api/game/{sid}/answer', json={'service': 's3'}).get_json()
    assert early['accepted'] is False

    runtime.advance(sid, 4500)
    for selection in ['s3', 'lambda', 's3']:
        res = client.post(f'/api/game/{sid}/answer', json={'service': selection}).get_json()
        assert res['accepted'] is True
        assert res['phase'] == 'feedback'
        runtime.advance(sid, 2500)

    state = client.get(f'/api/game/{sid}/state').get_json()
    assert state['phase'] == 'completed'
    assert state['score'] == 2

    events = client.get(f'/api/game/{sid}/events').get_json()
    assert [e['event_type'] for e in events] == [
        'game_started',
        'answer_submitted',
        'answer_submitted',
        'answer_submitted',
        'game_completed',
    ]
    assert events[1]['selected'] == 's3' and events[1]['correct'] is True
    assert events[-1]['final_score'] == 2
    assert all(e['session_id'] == sid for e in events)

    restarted = client.post(f'/api/game/{sid}/restart').get_json()
    assert restarted['phase'] == 'active'
    assert restarted['score'] == 0
    assert restarted['pending'] == ['restart_question']


def test_marker_lost_is_debounced(client, runtime):
    sid = open_session(client)
    client.post(f'/api/game/{sid}/marker', json={'visible': True})
    lost = client.post(f'/api/game/{sid}/marker', json={'visible': False}).get_json()
    assert lost['phase'] == 'active'
    runtime.advance(sid, 300)
    assert client.get(f'/api/game/{sid}/state').get_json()['phase'] == 'marker_lost'
    back = client.post(f'/api/game/{sid}/marker', json={'visible': True}).get_json()
    assert back['phase'] == 'active'


def test_selfie_is_recorded(client):
    sid = open_session(client)
    assert client.post(f'/api/game/{sid}/selfie').status_code == 201
    events = client.get(f'/api/game/{sid}/events').get_json()
    assert [e['event_type'] for e in events] == ['selfie_taken']
    assert events[0]['user_agent']


def test_other_browser_cannot_drive_session(client, flask_app, runtime):
    sid = open_session(client)
    other = flask_app.test_client()
    open_session(other)

    assert other.get(f'/api/game/{sid}/state').status_code == 403
    assert other.post(f'/api/game/{sid}/marker', json={'visible': True}).status_code == 403
    assert other.post(f'/api/game/{sid}/answer', json={'service': 's3'}).status_code == 403
    assert other.post(f'/api/game/{sid}/restart').status_code == 403
    assert other.post(f'/api/game/{sid}/selfie').status_code == 403
    assert other.get(f'/api/game/{sid}/events').status_code == 403

    assert runtime.get(sid).machine.phase.value == 'not_started'
    assert client.get(f'/api/game/{sid}/events').get_json() == []
