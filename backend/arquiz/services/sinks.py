"""Analytics sinks for game event records."""

import json
import logging

from arquiz import db
from arquiz.models import GameEvent

event_log = logging.getLogger('arquiz.events')


class NullLogSink:
    def send(self, record):
        pass


class ConsoleLogSink:
    def send(self, record):
        event_log.info(f"[event] {json.dumps(record.to_dict(), ensure_ascii=False)}")


class DatabaseLogSink:
    """Stores each record as a GameEvent row.

    Opens its own app context because the timer worker fires outside of
    any request.
    """

    def __init__(self, app):
        self.app = app

    def send(self, record):
        with self.app.app_context():
            try:
                db.session.add(GameEvent.from_record(record))
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise


def build_sink(app):
    kind = (app.config.get('EVENT_SINK') or 'database').lower()
    if kind == 'database':
        return DatabaseLogSink(app)
    if kind == 'console':
        return ConsoleLogSink()
    if kind == 'none':
        return NullLogSink()
    app.logger.warning(f"[sink] unknown EVENT_SINK={kind!r}, falling back to console")
    return ConsoleLogSink()
