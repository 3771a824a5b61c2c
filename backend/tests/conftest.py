import os
import sys
import pytest

# Ensure the backend root (containing the `arquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arquiz import create_app, db, socketio
from arquiz.services.game import QuestionBank, VirtualClock, build_session


SERVICE_IDS = ['s3', 'lambda', 'ec2']
QUESTIONS = [
    {'prompt': 'Which AWS service is used for object storage?', 'correct_answer': 's3', 'explanation': 'S3 stores objects.'},
    {'prompt': 'Which service runs code without managing servers?', 'correct_answer': 'lambda', 'explanation': 'Lambda is serverless.'},
    {'prompt': 'Which service provides virtual servers in the cloud?', 'correct_answer': 'ec2', 'explanation': 'EC2 runs VMs.'},
]


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SERVICE_IDS = SERVICE_IDS
    QUESTIONS_FILE = None
    MARKER_DEBOUNCE_MS = 300
    EVENT_SINK = 'database'
    USE_VIRTUAL_CLOCK = True
    CORS_ORIGINS = ['http://localhost:5173']
    SESSION_GRACE_SEC = 30
    SESSION_IDLE_TTL_SEC = 1800


class RecordingUi:
    """Fake UI adapter that remembers every intent in order."""

    def __init__(self):
        self.calls = []

    def show_question(self, text, score):
        self.calls.append(('show_question', text, score))

    def highlight_service(self, service_id, correct):
        self.calls.append(('highlight_service', service_id, correct))

    def clear_highlights(self):
        self.calls.append(('clear_highlights',))

    def show_message(self, text, color, duration_ms):
        self.calls.append(('show_message', text, color, duration_ms))

    def set_visible(self, element_id, visible):
        self.calls.append(('set_visible', element_id, visible))

    def show_panel(self, name):
        self.calls.append(('show_panel', name))

    def hide_panel(self, name):
        self.calls.append(('hide_panel', name))

    def named(self, action):
        return [c for c in self.calls if c[0] == action]


class ListSink:
    def __init__(self):
        self.records = []

    def send(self, record):
        self.records.append(record)

    def event_types(self):
        return [r.event_type for r in self.records]


@pytest.fixture()
def ui():
    return RecordingUi()


@pytest.fixture()
def sink():
    return ListSink()


@pytest.fixture()
def bank():
    return QuestionBank.from_dicts(QUESTIONS, service_ids=SERVICE_IDS)


@pytest.fixture()
def make_session(bank, ui, sink):
    def _make(debounce_ms=0, **kwargs):
        return build_session(
            'session_test',
            kwargs.pop('bank', bank),
            kwargs.pop('ui', ui),
            kwargs.pop('sink', sink),
            clock=VirtualClock(),
            debounce_ms=debounce_ms,
            **kwargs,
        )
    return _make


@pytest.fixture()
def session(make_session):
    return make_session()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def runtime(flask_app):
    return flask_app.extensions['arquiz']


@pytest.fixture()
def sio_client(flask_app, client):
    # Open the HTTP session first so the socket carries the session cookie
    client.get('/api/game/session')
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=client,
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
