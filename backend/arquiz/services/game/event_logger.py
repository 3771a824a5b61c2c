import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogRecord:
    timestamp: str
    event_type: str
    session_id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'timestamp': self.timestamp,
            'event_type': self.event_type,
            'session_id': self.session_id,
        }
        for key, value in self.fields.items():
            data.setdefault(key, value)
        return data


class LogSink(Protocol):
    def send(self, record: LogRecord) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionEventLogger:
    """Turns game transitions into analytics records and forwards them.

    Forwarding is fire-and-forget: a sink failure is reported once per call
    through ``on_error`` and never retried or raised, so losing a record
    cannot affect gameplay. ``records`` keeps only the latest ``max_records``
    for inspection; the sink is the durable copy.
    """

    def __init__(
        self,
        sink: LogSink,
        default_fields: Optional[Mapping[str, Any]] = None,
        now: Callable[[], datetime] = _utc_now,
        on_error: Optional[Callable[[LogRecord, Exception], None]] = None,
        max_records: int = 100,
    ):
        self.sink = sink
        self.default_fields = dict(default_fields or {})
        self._now = now
        self._on_error = on_error
        self.records: Deque[LogRecord] = deque(maxlen=max_records)

    def build_record(self, event_type: str, fields: Optional[Mapping[str, Any]], state) -> LogRecord:
        merged = dict(self.default_fields)
        merged.update(fields or {})
        stamp = self._now().isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        return LogRecord(timestamp=stamp, event_type=event_type, session_id=state.session_id, fields=merged)

    def log(self, event_type: str, fields: Optional[Mapping[str, Any]], state) -> LogRecord:
        record = self.build_record(event_type, fields, state)
        self.records.append(record)
        try:
            self.sink.send(record)
        except Exception as exc:
            self._report(record, exc)
        return record

    def _report(self, record: LogRecord, exc: Exception) -> None:
        if self._on_error is None:
            logger.warning(f"[event-drop] type={record.event_type} session={record.session_id} error={exc}")
            return
        try:
            self._on_error(record, exc)
        except Exception:
            pass
