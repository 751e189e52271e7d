"""Achievement catalog and unlock predicates.

Predicates only read a round; recording an unlock is the achievement
store's job, and the store makes repeated unlocks a no-op.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional

from .difficulty import EASY, MEDIUM, HARD


FIRST_GAME = 'first_game'
SCORE_10 = 'score_10'
SCORE_25 = 'score_25'
SCORE_50 = 'score_50'
THREE_COMBO = 'three_combo'
FLAWLESS_EASY = 'flawless_easy'
FLAWLESS_MEDIUM = 'flawless_medium'
FLAWLESS_HARD = 'flawless_hard'
HARD_CLEARED = 'hard_cleared'


@dataclass
class Achievement:
    kind: str
    title: str
    detail: str
    icon: str
    unlocked_at: Optional[float] = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload['unlocked'] = self.unlocked
        return payload


_CATALOG = (
    (FIRST_GAME, 'First Match', 'Score your first point.', 'star'),
    (SCORE_10, 'Warming Up', 'Reach a score of 10 in one round.', 'flame'),
    (SCORE_25, 'Sharp Eye', 'Reach a score of 25 in one round.', 'eye'),
    (SCORE_50, 'Color Master', 'Reach a score of 50 in one round.', 'crown'),
    (THREE_COMBO, 'Combo', 'Match three tiles in a row.', 'bolt'),
    (FLAWLESS_EASY, 'Flawless (Easy)', 'Finish an Easy round without a mistake.', 'checkmark'),
    (FLAWLESS_MEDIUM, 'Flawless (Medium)', 'Finish a Medium round without a mistake.', 'checkmark.seal'),
    (FLAWLESS_HARD, 'Flawless (Hard)', 'Finish a Hard round without a mistake.', 'rosette'),
    (HARD_CLEARED, 'Hard Cleared', 'Play a Hard round until the clock runs out.', 'trophy'),
)

ACHIEVEMENT_KINDS = tuple(entry[0] for entry in _CATALOG)

FLAWLESS_BY_DIFFICULTY = {
    EASY: FLAWLESS_EASY,
    MEDIUM: FLAWLESS_MEDIUM,
    HARD: FLAWLESS_HARD,
}

SCORE_THRESHOLDS = ((1, FIRST_GAME), (10, SCORE_10), (25, SCORE_25), (50, SCORE_50))


def build_catalog() -> List[Achievement]:
    """Fresh catalog with every achievement locked."""
    return [Achievement(kind, title, detail, icon) for kind, title, detail, icon in _CATALOG]


def progress_unlocks(rnd) -> List[str]:
    """Kinds whose in-round predicates hold for ``rnd``."""
    kinds = [kind for threshold, kind in SCORE_THRESHOLDS if rnd.score >= threshold]
    if rnd.correct_streak >= 3:
        kinds.append(THREE_COMBO)
    return kinds


def round_end_unlocks(rnd, timed_out: bool) -> List[str]:
    """Kinds earned by an ended round.

    Rounds without any input earn nothing. Flawless needs at least one
    match and no mismatches, whichever way the round ended.
    """
    if not rnd.had_any_input:
        return []
    kinds = []
    if rnd.match_count > 0 and rnd.mismatch_count == 0:
        kinds.append(FLAWLESS_BY_DIFFICULTY[rnd.difficulty])
    if timed_out and rnd.difficulty == HARD:
        kinds.append(HARD_CLEARED)
    return kinds
