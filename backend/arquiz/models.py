from arquiz import db
import json


class GameEvent(db.Model):
    __tablename__ = 'game_event'
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.String(32), nullable=False)
    event_type = db.Column(db.String(64), nullable=False, index=True)
    session_id = db.Column(db.String(64), nullable=False, index=True)
    payload = db.Column(db.Text, nullable=True)  # JSON-encoded context fields

    @classmethod
    def from_record(cls, record):
        return cls(
            timestamp=record.timestamp,
            event_type=record.event_type,
            session_id=record.session_id,
            payload=json.dumps(record.fields),
        )

    def to_dict(self):
        try:
            fields = json.loads(self.payload) if self.payload else {}
        except Exception:
            fields = {}
        data = {
            'id': self.id,
            'timestamp': self.timestamp,
            'event_type': self.event_type,
            'session_id': self.session_id,
        }
        for key, value in fields.items():
            data.setdefault(key, value)
        return data
