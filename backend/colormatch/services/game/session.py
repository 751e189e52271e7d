import logging
import random
import threading
import time
import uuid
from typing import Callable, List, Optional

from .engine import (
    Event, Round, Rules, Transition,
    apply_exit, apply_tap, apply_tick, start_round,
)
from .stores import AchievementStore, ScoreEntry, ScoreStore


Listener = Callable[[str, dict], None]


class RoundSession:
    """One live round plus the collaborators it reports to.

    Taps, ticks, exit and cancel all go through the same lock, so a tap that
    is already being applied finishes before a tick can time the round out.
    Store writes are fire-and-forget: a failure is logged and play goes on.
    """

    def __init__(self, difficulty: str, scores: ScoreStore, achievements: AchievementStore,
                 rules: Optional[Rules] = None, listener: Optional[Listener] = None,
                 rng: Optional[random.Random] = None, logger: Optional[logging.Logger] = None,
                 clock: Callable[[], float] = time.time):
        self.id = uuid.uuid4().hex
        self.scores = scores
        self.achievements = achievements
        self.rules = rules or Rules()
        self.listener = listener
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.cancelled = False
        self._lock = threading.Lock()
        self.round: Round = start_round(difficulty, self.rng)

    @property
    def difficulty(self) -> str:
        return self.round.difficulty

    @property
    def is_live(self) -> bool:
        return not self.cancelled and self.round.is_active

    def tap(self, index: int) -> List[Event]:
        with self._lock:
            if self.cancelled:
                return []
            return self._apply(apply_tap(self.round, index, self.rng, self.rules))

    def tick(self) -> List[Event]:
        with self._lock:
            if self.cancelled:
                return []
            return self._apply(apply_tick(self.round))

    def exit(self) -> List[Event]:
        with self._lock:
            if self.cancelled:
                return []
            return self._apply(apply_exit(self.round))

    def cancel(self) -> None:
        """Stop the session without ending the round (view torn down)."""
        with self._lock:
            self.cancelled = True

    def to_dict(self) -> dict:
        payload = self.round.to_dict()
        payload['id'] = self.id
        return payload

    def _apply(self, transition: Transition) -> List[Event]:
        was_active = self.round.is_active
        self.round = transition.round
        events = list(transition.events)

        if was_active and not self.round.is_active:
            self.logger.info(
                f"[round-end] round={self.id} difficulty={self.round.difficulty} "
                f"reason={self.round.end_reason} score={self.round.score}"
            )
        if transition.record_score:
            self._record_score()
        for kind in transition.unlocks:
            if self._unlock(kind):
                events.append(Event('achievement_unlocked', {'kind': kind}))

        for event in events:
            self._publish(event)
        return events

    def _record_score(self) -> None:
        entry = ScoreEntry.create(self.round.difficulty, self.round.score, self.clock())
        try:
            self.scores.append(entry)
        except Exception:
            self.logger.exception(f"[score-save-failed] round={self.id} score={entry.score}")
            return
        self.logger.info(f"[score-saved] round={self.id} difficulty={entry.difficulty} score={entry.score}")

    def _unlock(self, kind: str) -> bool:
        try:
            unlocked = self.achievements.unlock(kind, self.clock())
        except Exception:
            self.logger.exception(f"[achievement-save-failed] round={self.id} kind={kind}")
            return False
        if unlocked:
            self.logger.info(f"[achievement-unlocked] round={self.id} kind={kind}")
        return unlocked

    def _publish(self, event: Event) -> None:
        if self.listener is None:
            return
        payload = dict(event.payload)
        payload['round_id'] = self.id
        self.listener(event.name, payload)
