import logging

from arquiz import socketio

logger = logging.getLogger(__name__)


def session_room(session_id: str) -> str:
    return f"session:{session_id}"


class SocketIOUi:
    """Forwards UI intents to the browser as ``ui_intent`` events.

    Emit failures are logged and dropped; the game never waits on the page.
    """

    def __init__(self, session_id: str, namespace: str = '/ws'):
        self.session_id = session_id
        self.namespace = namespace

    def _emit(self, action: str, **payload) -> None:
        payload['action'] = action
        try:
            socketio.emit('ui_intent', payload, to=session_room(self.session_id), namespace=self.namespace)
        except Exception as exc:
            logger.debug(f"[ui-drop] session={self.session_id} action={action} error={exc}")

    def show_question(self, text, score):
        self._emit('show_question', text=text, score=score)

    def highlight_service(self, service_id, correct):
        self._emit('highlight_service', service_id=service_id, correct=correct)

    def clear_highlights(self):
        self._emit('clear_highlights')

    def show_message(self, text, color, duration_ms):
        self._emit('show_message', text=text, color=color, duration_ms=duration_ms)

    def set_visible(self, element_id, visible):
        self._emit('set_visible', element_id=element_id, visible=visible)

    def show_panel(self, name):
        self._emit('show_panel', name=name)

    def hide_panel(self, name):
        self._emit('hide_panel', name=name)
