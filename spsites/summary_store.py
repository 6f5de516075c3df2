"""In-memory store of finished summaries.

Keeps recent summaries so copy/export requests read the stored result
instead of re-running the extraction. Not persistent. Entries expire after
``ttl`` seconds and only the newest ``max_entries`` are kept (0 disables
either limit).
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Dict, Optional

from .config import AppConfig
from .models import Summary


def new_summary_id() -> str:
    return uuid.uuid4().hex[:16]


class SummaryStore:
    def __init__(self, ttl: int = 1800, max_entries: int = 50):
        self.ttl = ttl
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict] = {}

    @classmethod
    def from_config(cls, config: AppConfig) -> 'SummaryStore':
        return cls(ttl=config.summary_ttl, max_entries=config.summary_max)

    def _prune_locked(self, now: float) -> None:
        if self.ttl > 0:
            expired = [sid for sid, meta in self._entries.items() if now - meta['ts'] > self.ttl]
            for sid in expired:
                self._entries.pop(sid, None)
        if self.max_entries > 0 and len(self._entries) > self.max_entries:
            ordered = sorted(self._entries.items(), key=lambda x: x[1]['ts'])
            for sid, _ in ordered[:len(self._entries) - self.max_entries]:
                self._entries.pop(sid, None)

    def save(self, summary: Summary) -> str:
        summary_id = new_summary_id()
        self.store(summary_id, summary)
        return summary_id

    def store(self, summary_id: str, summary: Summary) -> None:
        """Store under a caller-chosen id (the job id for background runs)."""
        now = time.time()
        with self._lock:
            self._entries[summary_id] = {'ts': now, 'summary': summary}
            self._prune_locked(now)

    def get(self, summary_id: str) -> Optional[Summary]:
        with self._lock:
            self._prune_locked(time.time())
            meta = self._entries.get(summary_id)
            return meta['summary'] if meta else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
