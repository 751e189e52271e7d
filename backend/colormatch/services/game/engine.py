"""Round engine: the state machine behind a single play session.

A ``Round`` is an immutable value. Each transition (``apply_tap``,
``apply_tick``, ``apply_exit``) takes the current round and returns a
``Transition`` holding the next round plus everything the outside world
should hear about: presentation events, achievement kinds whose predicates
hold, and whether a score entry should be recorded. Nothing here touches
storage, sockets or the clock.
"""

import random
from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional, Tuple

from .achievements import progress_unlocks, round_end_unlocks
from .difficulty import DifficultyProfile, get_profile
from .grid import DEFAULT_RESHUFFLE_COUNT, build_grid, partial_reshuffle, pick_target
from .palette import ALL_COLORS, select_palette


ACTIVE = 'active'
ENDED = 'ended'

REASON_TIMEOUT = 'timeout'
REASON_EXIT = 'exit'

NOTICE_BONUS = 'bonus'
NOTICE_PENALTY = 'penalty'


@dataclass(frozen=True)
class Rules:
    streak_step: int = 3
    bonus_seconds: int = 5
    penalty_seconds: int = 5
    reshuffle_count: int = DEFAULT_RESHUFFLE_COUNT

    @classmethod
    def from_config(cls, cfg: Mapping) -> 'Rules':
        return cls(
            streak_step=max(1, int(cfg.get('STREAK_STEP', 3))),
            bonus_seconds=int(cfg.get('STREAK_BONUS_SEC', 5)),
            penalty_seconds=int(cfg.get('STREAK_PENALTY_SEC', 5)),
            reshuffle_count=int(cfg.get('RESHUFFLE_CELLS', DEFAULT_RESHUFFLE_COUNT)),
        )


@dataclass(frozen=True)
class Round:
    difficulty: str
    grid: Tuple[str, ...]
    target: str
    time_remaining: int
    score: int = 0
    correct_streak: int = 0
    wrong_streak: int = 0
    match_count: int = 0
    mismatch_count: int = 0
    had_any_input: bool = False
    status: str = ACTIVE
    end_reason: Optional[str] = None

    @property
    def profile(self) -> DifficultyProfile:
        return get_profile(self.difficulty)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    def to_dict(self) -> dict:
        return {
            'difficulty': self.difficulty,
            'grid': list(self.grid),
            'column_count': self.profile.column_count,
            'target': self.target,
            'score': self.score,
            'time_remaining': self.time_remaining,
            'correct_streak': self.correct_streak,
            'wrong_streak': self.wrong_streak,
            'match_count': self.match_count,
            'mismatch_count': self.mismatch_count,
            'had_any_input': self.had_any_input,
            'status': self.status,
            'end_reason': self.end_reason,
        }


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {'name': self.name, 'payload': dict(self.payload)}


@dataclass
class Transition:
    round: Round
    events: List[Event] = field(default_factory=list)
    unlocks: List[str] = field(default_factory=list)
    record_score: bool = False


def start_round(difficulty: str, rng: Optional[random.Random] = None) -> Round:
    """Set up a fresh, active round for the given tier."""
    rng = rng or random.Random()
    profile = get_profile(difficulty)
    palette = select_palette(ALL_COLORS, profile.distinct_color_count, rng, profile.adjacency_aware)
    grid = build_grid(palette, profile.cell_count, profile.column_count, profile.adjacency_aware, rng)
    return Round(
        difficulty=profile.name,
        grid=tuple(grid),
        target=pick_target(grid, rng),
        time_remaining=profile.round_duration_seconds,
    )


def apply_tick(rnd: Round) -> Transition:
    if not rnd.is_active:
        return Transition(rnd)
    events = []
    if rnd.time_remaining > 0:
        rnd = replace(rnd, time_remaining=rnd.time_remaining - 1)
        events.append(Event('time_changed', {'time_remaining': rnd.time_remaining, 'delta': -1}))
    if rnd.time_remaining == 0:
        return _end(rnd, REASON_TIMEOUT, events)
    return Transition(rnd, events)


def apply_tap(rnd: Round, index: int, rng: Optional[random.Random] = None,
              rules: Optional[Rules] = None) -> Transition:
    """Evaluate a tap on ``rnd.grid[index]`` against the target."""
    if not rnd.is_active:
        return Transition(rnd)
    if not 0 <= index < len(rnd.grid):
        raise IndexError(f"tap index {index} outside grid of {len(rnd.grid)} cells")
    rng = rng or random.Random()
    rules = rules or Rules()

    if rnd.grid[index] == rnd.target:
        return _match(rnd, rng, rules)
    return _mismatch(rnd, rules)


def apply_exit(rnd: Round) -> Transition:
    if not rnd.is_active:
        return Transition(rnd)
    return _end(rnd, REASON_EXIT, [])


def _match(rnd: Round, rng: random.Random, rules: Rules) -> Transition:
    rnd = replace(
        rnd,
        had_any_input=True,
        score=rnd.score + 1,
        correct_streak=rnd.correct_streak + 1,
        wrong_streak=0,
        match_count=rnd.match_count + 1,
    )
    events = [Event('score_changed', {'score': rnd.score, 'delta': 1})]

    if rnd.correct_streak % rules.streak_step == 0:
        rnd = replace(rnd, time_remaining=rnd.time_remaining + rules.bonus_seconds)
        events.append(Event('notice', {'kind': NOTICE_BONUS, 'delta': rules.bonus_seconds}))
        events.append(Event('time_changed', {'time_remaining': rnd.time_remaining, 'delta': rules.bonus_seconds}))

    profile = rnd.profile
    palette = select_palette(ALL_COLORS, profile.distinct_color_count, rng, profile.adjacency_aware)
    grid = partial_reshuffle(rnd.grid, palette, profile.column_count,
                             rules.reshuffle_count, profile.adjacency_aware, rng)
    rnd = replace(rnd, grid=tuple(grid), target=pick_target(grid, rng))
    events.append(Event('grid_changed', {'grid': list(rnd.grid), 'target': rnd.target}))

    return Transition(rnd, events, progress_unlocks(rnd))


def _mismatch(rnd: Round, rules: Rules) -> Transition:
    previous = rnd.score
    rnd = replace(
        rnd,
        had_any_input=True,
        score=max(0, rnd.score - 1),
        wrong_streak=rnd.wrong_streak + 1,
        correct_streak=0,
        mismatch_count=rnd.mismatch_count + 1,
    )
    events = [Event('score_changed', {'score': rnd.score, 'delta': rnd.score - previous})]

    if rnd.wrong_streak % rules.streak_step == 0:
        before = rnd.time_remaining
        rnd = replace(rnd, time_remaining=max(0, before - rules.penalty_seconds))
        events.append(Event('notice', {'kind': NOTICE_PENALTY, 'delta': -rules.penalty_seconds}))
        events.append(Event('time_changed', {'time_remaining': rnd.time_remaining,
                                             'delta': rnd.time_remaining - before}))

    return Transition(rnd, events, progress_unlocks(rnd))


def _end(rnd: Round, reason: str, events: List[Event]) -> Transition:
    rnd = replace(rnd, status=ENDED, end_reason=reason)
    events.append(Event('round_ended', {'score': rnd.score, 'reason': reason}))
    return Transition(
        rnd,
        events,
        round_end_unlocks(rnd, timed_out=reason == REASON_TIMEOUT),
        record_score=rnd.score > 0 and rnd.had_any_input,
    )
