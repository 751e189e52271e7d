import random
from dataclasses import replace

import pytest

from colormatch.services.game import achievements as ach
from colormatch.services.game.palette import color_category
from colormatch.services.game.engine import (
    ACTIVE, ENDED, REASON_EXIT, REASON_TIMEOUT, Round, Rules,
    apply_exit, apply_tap, apply_tick, start_round,
)


def _names(transition):
    return [e.name for e in transition.events]


def _target_index(rnd):
    return rnd.grid.index(rnd.target)


def _miss_index(rnd):
    for i, color in enumerate(rnd.grid):
        if color != rnd.target:
            return i
    return None


def _fixed_round(**overrides):
    base = Round(
        difficulty='easy',
        grid=('red', 'blue', 'green') * 3,
        target='red',
        time_remaining=60,
    )
    return replace(base, **overrides)


def test_start_round_sets_up_an_active_round():
    for name in ('easy', 'medium', 'hard'):
        rnd = start_round(name, random.Random(5))
        assert rnd.status == ACTIVE
        assert len(rnd.grid) == rnd.profile.cell_count
        assert rnd.target in rnd.grid
        assert rnd.time_remaining == rnd.profile.round_duration_seconds
        assert rnd.score == 0 and rnd.correct_streak == 0 and rnd.wrong_streak == 0
        assert rnd.had_any_input is False


def test_start_round_is_deterministic_for_a_seed():
    assert start_round('medium', random.Random(9)) == start_round('medium', random.Random(9))


@pytest.mark.parametrize('difficulty', ['easy', 'medium'])
def test_started_grids_keep_similar_colors_apart(difficulty):
    for seed in range(100):
        rnd = start_round(difficulty, random.Random(seed))
        columns = rnd.profile.column_count
        buckets = [color_category(c) for c in rnd.grid]
        for index, bucket in enumerate(buckets):
            if index % columns > 0:
                assert bucket != buckets[index - 1]
            if index >= columns:
                assert bucket != buckets[index - columns]


def test_match_scores_and_reshuffles():
    rnd = start_round('easy', random.Random(1))
    t = apply_tap(rnd, _target_index(rnd), random.Random(2))
    assert t.round.score == 1
    assert t.round.correct_streak == 1
    assert t.round.wrong_streak == 0
    assert t.round.had_any_input
    assert t.round.target in t.round.grid
    assert _names(t) == ['score_changed', 'grid_changed']
    assert ach.FIRST_GAME in t.unlocks
    assert not t.record_score


def test_mismatch_never_goes_negative_and_keeps_grid():
    rnd = _fixed_round()
    t = apply_tap(rnd, 1)
    assert t.round.score == 0
    assert t.round.wrong_streak == 1
    assert t.round.correct_streak == 0
    assert t.round.grid == rnd.grid
    assert t.round.target == rnd.target
    assert t.events[0].payload == {'score': 0, 'delta': 0}


def test_mismatch_takes_a_point():
    t = apply_tap(_fixed_round(score=4, correct_streak=2), 2)
    assert t.round.score == 3
    assert t.round.correct_streak == 0
    assert t.events[0].payload['delta'] == -1


def test_streaks_are_never_both_nonzero():
    rng = random.Random(42)
    rnd = start_round('medium', rng)
    for _ in range(200):
        if rng.random() < 0.6:
            index = _target_index(rnd)
        else:
            index = _miss_index(rnd)
            if index is None:
                index = _target_index(rnd)
        rnd = apply_tap(rnd, index, rng).round
        assert rnd.score >= 0
        assert not (rnd.correct_streak and rnd.wrong_streak)


def test_nine_consecutive_matches_on_easy():
    rng = random.Random(3)
    rnd = start_round('easy', rng)
    start_time = rnd.time_remaining
    bonus_at = []
    for tap in range(1, 10):
        t = apply_tap(rnd, _target_index(rnd), rng)
        rnd = t.round
        notices = [e for e in t.events if e.name == 'notice']
        if notices:
            assert notices[0].payload == {'kind': 'bonus', 'delta': 5}
            bonus_at.append(tap)
    assert rnd.score == 9
    assert rnd.correct_streak == 9
    assert bonus_at == [3, 6, 9]
    assert rnd.time_remaining == start_time + 15


def test_three_mismatches_cost_time_once_per_multiple():
    rnd = _fixed_round(time_remaining=12)
    penalties = []
    for tap in range(1, 7):
        t = apply_tap(rnd, 1)
        rnd = t.round
        if 'notice' in _names(t):
            penalties.append(tap)
    assert penalties == [3, 6]
    assert rnd.time_remaining == 2


def test_penalty_clamps_time_at_zero():
    rnd = _fixed_round(time_remaining=3, wrong_streak=2)
    t = apply_tap(rnd, 1)
    assert t.round.time_remaining == 0
    assert t.round.is_active
    # the next tick ends the round
    t = apply_tick(t.round)
    assert t.round.status == ENDED
    assert t.round.end_reason == REASON_TIMEOUT


def test_custom_rules_change_step_and_bonus():
    rules = Rules(streak_step=2, bonus_seconds=7, penalty_seconds=1, reshuffle_count=1)
    rnd = _fixed_round(correct_streak=1)
    t = apply_tap(rnd, 0, random.Random(0), rules)
    assert t.round.time_remaining == 67
    changed = sum(1 for a, b in zip(rnd.grid, t.round.grid) if a != b)
    assert changed <= 1


def test_rules_from_config():
    rules = Rules.from_config({'STREAK_STEP': '4', 'STREAK_BONUS_SEC': 2})
    assert rules == Rules(streak_step=4, bonus_seconds=2, penalty_seconds=5, reshuffle_count=3)


def test_tap_out_of_range_is_an_error():
    with pytest.raises(IndexError):
        apply_tap(_fixed_round(), 9)
    with pytest.raises(IndexError):
        apply_tap(_fixed_round(), -1)


def test_tick_counts_down_then_times_out():
    rnd = _fixed_round(time_remaining=2)
    t = apply_tick(rnd)
    assert t.round.time_remaining == 1 and t.round.is_active
    t = apply_tick(t.round)
    assert t.round.time_remaining == 0
    assert t.round.status == ENDED
    assert _names(t) == ['time_changed', 'round_ended']
    assert t.events[-1].payload == {'score': 0, 'reason': REASON_TIMEOUT}


def test_ended_round_ignores_everything():
    ended = apply_exit(_fixed_round()).round
    for t in (apply_tap(ended, 0), apply_tick(ended), apply_exit(ended)):
        assert t.round == ended
        assert t.events == []
        assert t.unlocks == []
        assert not t.record_score


def test_score_recorded_only_when_positive():
    assert not apply_exit(_fixed_round(had_any_input=True, mismatch_count=2)).record_score
    assert apply_exit(_fixed_round(score=3, had_any_input=True, match_count=3)).record_score
    t = apply_tick(_fixed_round(time_remaining=1, score=2, had_any_input=True, match_count=2))
    assert t.record_score


def test_timeout_without_input_records_nothing():
    # even a nonzero score is not kept without any input
    rnd = _fixed_round(time_remaining=1, score=5)
    t = apply_tick(rnd)
    assert t.round.status == ENDED
    assert not t.record_score
    assert t.unlocks == []


def test_flawless_on_timeout_and_exit():
    clean = dict(score=2, had_any_input=True, match_count=2)
    t = apply_tick(_fixed_round(time_remaining=1, **clean))
    assert ach.FLAWLESS_EASY in t.unlocks
    t = apply_exit(_fixed_round(**clean))
    assert ach.FLAWLESS_EASY in t.unlocks


def test_flawless_needs_a_match_and_no_mismatch():
    # one early mistake spoils it even though the streak has recovered
    t = apply_exit(_fixed_round(score=3, had_any_input=True, match_count=4, mismatch_count=1))
    assert t.unlocks == []
    t = apply_exit(_fixed_round(had_any_input=True, mismatch_count=1))
    assert t.unlocks == []


def test_hard_cleared_only_on_hard_timeout_with_input():
    hard = _fixed_round(difficulty='hard', grid=('red',) * 25, time_remaining=1,
                        had_any_input=True, mismatch_count=1)
    assert apply_tick(hard).unlocks == [ach.HARD_CLEARED]
    assert apply_exit(hard).unlocks == []
    assert apply_tick(replace(hard, had_any_input=False)).unlocks == []


def test_exit_ends_round():
    t = apply_exit(_fixed_round(score=1, had_any_input=True, match_count=1))
    assert t.round.status == ENDED
    assert t.round.end_reason == REASON_EXIT
    assert t.events[-1].payload == {'score': 1, 'reason': REASON_EXIT}
