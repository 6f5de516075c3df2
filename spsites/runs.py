"""Generation tokens for overlapping runs of the same client.

Every new run for a client key gets a higher generation number and its own
cancel event; starting a generation sets the previous generation's event.
Only the newest generation may publish, so a slow older run that finishes
last cannot replace the result of a newer one.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger('spsites.runs')


@dataclass(frozen=True)
class RunToken:
    key: str
    generation: int
    cancel_event: threading.Event = field(compare=False, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


class RunTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self._current: Dict[str, RunToken] = {}
        self._published: Dict[str, Tuple[int, str]] = {}

    def begin(self, key: str) -> RunToken:
        """Start a new generation for ``key`` and cancel the previous one."""
        with self._lock:
            prev = self._current.get(key)
            token = RunToken(key=key, generation=(prev.generation + 1) if prev else 1,
                             cancel_event=threading.Event())
            self._current[key] = token
        if prev is not None and not prev.cancel_event.is_set():
            prev.cancel_event.set()
            logger.debug('run superseded key=%s generation=%d by=%d', key, prev.generation, token.generation)
        return token

    def is_current(self, token: RunToken) -> bool:
        with self._lock:
            cur = self._current.get(token.key)
            return cur is not None and cur.generation == token.generation

    def publish(self, token: RunToken, result_id: str) -> bool:
        """Record ``result_id`` as the latest result for the key if ``token`` is current."""
        with self._lock:
            cur = self._current.get(token.key)
            if cur is None or cur.generation != token.generation:
                return False
            self._published[token.key] = (token.generation, result_id)
            return True

    def latest(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._published.get(key)
            return entry[1] if entry else None

    def current_generation(self, key: str) -> int:
        with self._lock:
            cur = self._current.get(key)
            return cur.generation if cur else 0

    def forget(self, key: str) -> None:
        """Drop all state for ``key``; the next begin() starts at generation 1."""
        with self._lock:
            self._current.pop(key, None)
            self._published.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(set(self._current) | set(self._published))

    def clear(self) -> None:
        with self._lock:
            self._current.clear()
            self._published.clear()
