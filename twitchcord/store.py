"""In-memory record of posted live messages"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

MessageKey = Tuple[str, str]


class LiveMessageStore:
    """
    Maps (broadcaster id, webhook url) to the Discord message created for it.

    Entries live for the lifetime of the process only. ``lock_key`` serialises
    the post/store and lookup/delete sequences of a single key.
    """

    def __init__(self):
        self._messages: Dict[MessageKey, Dict[str, Any]] = {}
        self._key_locks: Dict[MessageKey, threading.Lock] = {}
        self._lock = threading.Lock()

    @contextmanager
    def lock_key(self, key: MessageKey) -> Iterator[None]:
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            yield

    def get(self, key: MessageKey) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._messages.get(key)

    def put(self, key: MessageKey, message: Dict[str, Any]) -> None:
        with self._lock:
            self._messages[key] = message

    def pop(self, key: MessageKey) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._messages.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._messages

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
