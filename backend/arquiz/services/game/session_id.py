import random
import string
import time
from typing import Callable, Dict, Optional, Protocol

SESSION_ID_KEY = 'ar-game-session-id'
_ALPHABET = string.digits + string.ascii_lowercase


class SessionIdStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class DictSessionStore:
    """In-memory store, mostly for tests."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data = data if data is not None else {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value


def generate_session_id(now: Optional[Callable[[], float]] = None, rng: Optional[random.Random] = None) -> str:
    now = now or time.time
    rng = rng or random.SystemRandom()
    suffix = ''.join(rng.choice(_ALPHABET) for _ in range(9))
    return f"session_{int(now() * 1000)}_{suffix}"


def get_or_create_session_id(store: SessionIdStore, key: str = SESSION_ID_KEY, **kwargs) -> str:
    """Return the id stored under ``key``, creating and storing one if absent."""
    session_id = store.get(key)
    if not session_id:
        session_id = generate_session_id(**kwargs)
        store.set(key, session_id)
    return session_id
