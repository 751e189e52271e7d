"""Score and achievement stores.

Both stores keep a JSON-encoded collection under a single key of a
key-value backend. ``SqlKeyValueStore`` persists through the ``setting``
table; ``MemoryKeyValueStore`` keeps everything in a dict (tests, tools).
Reads never raise: missing or unreadable data loads as empty/locked.
"""

import json
import threading
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional

from colormatch import db
from colormatch.models import Setting
from .achievements import ACHIEVEMENT_KINDS, Achievement, build_catalog


SCORE_STORE_KEY = 'colormatch.scores'
ACHIEVEMENT_STORE_KEY = 'colormatch.achievements'


class KeyValueStore:
    # Per-key write locks; a read-modify-write of one collection holds its lock
    _locks: Dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self._locks = {}
        self._locks_guard = threading.Lock()

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value


class SqlKeyValueStore(KeyValueStore):
    """Backend over the ``setting`` table. Needs an app context.

    All instances share the class-level write locks since they address
    the same table.
    """

    def get(self, key):
        row = Setting.query.filter_by(key=key).first()
        return row.value if row else None

    def set(self, key, value):
        row = Setting.query.filter_by(key=key).first() or Setting(key=key)
        row.value = value
        row.updated_at = time.time()
        try:
            db.session.add(row)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def _json_list(raw: Optional[str]) -> list:
    """Decode a stored collection; anything but a JSON list reads as empty."""
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError:
        return []
    return items if isinstance(items, list) else []


@dataclass(frozen=True)
class ScoreEntry:
    id: str
    timestamp: float
    difficulty: str
    score: int

    @classmethod
    def create(cls, difficulty: str, score: int, timestamp: Optional[float] = None) -> 'ScoreEntry':
        return cls(
            id=uuid.uuid4().hex,
            timestamp=time.time() if timestamp is None else timestamp,
            difficulty=difficulty,
            score=score,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'ScoreEntry':
        return cls(
            id=str(data['id']),
            timestamp=float(data['timestamp']),
            difficulty=str(data['difficulty']),
            score=int(data['score']),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class ScoreStore:
    """Append-only score history, oldest first."""

    def __init__(self, backend: KeyValueStore, key: str = SCORE_STORE_KEY):
        self.backend = backend
        self.key = key

    def load(self) -> List[ScoreEntry]:
        entries = []
        for item in _json_list(self.backend.get(self.key)):
            try:
                entries.append(ScoreEntry.from_dict(item))
            except (ValueError, TypeError, KeyError):
                # skip the unreadable record, keep the rest of the history
                continue
        return entries

    def save(self, entries: List[ScoreEntry]) -> None:
        self.backend.set(self.key, json.dumps([e.to_dict() for e in entries]))

    def append(self, entry: ScoreEntry) -> ScoreEntry:
        with self.backend.lock(self.key):
            entries = self.load()
            entries.append(entry)
            self.save(entries)
        return entry

    def for_difficulty(self, difficulty: str) -> List[ScoreEntry]:
        return [e for e in self.load() if e.difficulty == difficulty]

    def delete(self, entry_id: str) -> bool:
        with self.backend.lock(self.key):
            entries = self.load()
            remaining = [e for e in entries if e.id != entry_id]
            if len(remaining) == len(entries):
                return False
            self.save(remaining)
            return True

    def clear(self) -> int:
        with self.backend.lock(self.key):
            entries = self.load()
            if entries:
                self.save([])
            return len(entries)


class AchievementStore:
    """Unlock timestamps merged onto the canonical catalog by ``kind``."""

    def __init__(self, backend: KeyValueStore, key: str = ACHIEVEMENT_STORE_KEY,
                 clock: Callable[[], float] = time.time):
        self.backend = backend
        self.key = key
        self.clock = clock

    def _persisted_unlocks(self) -> Dict[str, float]:
        unlocked = {}
        for item in _json_list(self.backend.get(self.key)):
            try:
                if item.get('unlocked_at') is not None:
                    unlocked[str(item['kind'])] = float(item['unlocked_at'])
            except (ValueError, TypeError, KeyError, AttributeError):
                # a bad record stays locked on its own
                continue
        return unlocked

    def load(self) -> List[Achievement]:
        unlocked = self._persisted_unlocks()
        items = build_catalog()
        for item in items:
            item.unlocked_at = unlocked.get(item.kind)
        return items

    def save(self, items: List[Achievement]) -> None:
        payload = [{'kind': a.kind, 'unlocked_at': a.unlocked_at} for a in items]
        self.backend.set(self.key, json.dumps(payload))

    def unlock(self, kind: str, now: Optional[float] = None) -> bool:
        """Mark ``kind`` unlocked. Returns False if it already was."""
        if kind not in ACHIEVEMENT_KINDS:
            raise ValueError(f"unknown achievement kind {kind!r}")
        with self.backend.lock(self.key):
            items = self.load()
            for item in items:
                if item.kind == kind:
                    if item.unlocked:
                        return False
                    item.unlocked_at = self.clock() if now is None else now
            self.save(items)
            return True

    def reset(self) -> None:
        with self.backend.lock(self.key):
            self.save(build_catalog())
