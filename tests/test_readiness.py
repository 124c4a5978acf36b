from datetime import timedelta

import pytest

from app.services.readiness import (
    NEUTRAL_SIGNAL,
    WEIGHTS,
    compute_readiness,
    consistency_score,
    goal_progress,
    interview_performance,
)
from app.services.records import SkillState
from tests.conftest import NOW, practiced


def test_weights_sum_to_one():
    assert sum(WEIGHTS.values()) == pytest.approx(1.0)


def test_no_states_means_zero_readiness():
    readiness = compute_readiness([])
    assert readiness.placement_readiness == 0
    assert readiness.skills_mastered == 0


def test_weighted_sum():
    states = [practiced("A", 100), practiced("B", 40)]
    readiness = compute_readiness(states, threshold=70)

    # 70 * .35 + 50 * .25 + 50 * .20 + 50 * .10 + 50 * .10
    assert readiness.placement_readiness == 57
    assert readiness.skills_mastered == 1
    assert readiness.consistency_score == NEUTRAL_SIGNAL


def test_readiness_within_bounds():
    top = compute_readiness(
        [practiced("A", 100)],
        activity_times=[NOW, NOW - timedelta(hours=1)],
        goal_signal=100,
        interview_signal=250,
    )
    assert 0 <= top.placement_readiness <= 100
    assert top.interview_performance == 100

    bottom = compute_readiness([SkillState(skill_id="A")], goal_signal=0, interview_signal=0)
    assert 0 <= bottom.placement_readiness <= 100


def test_unlocked_but_untouched_skills_count_as_zero():
    readiness = compute_readiness([SkillState(skill_id="A", is_unlocked=True)])
    # only consistency, goals and interview contribute their neutral values
    assert readiness.placement_readiness == 20


def test_consistency_daily_practice():
    times = [NOW - timedelta(days=i) for i in range(5)]
    assert consistency_score(times) == 95.0


def test_consistency_neutral_with_single_activity():
    assert consistency_score([NOW]) == NEUTRAL_SIGNAL
    assert consistency_score([None, NOW]) == NEUTRAL_SIGNAL


def test_consistency_uses_most_recent_window():
    recent = [NOW - timedelta(days=i) for i in range(10)]
    ancient = [NOW - timedelta(days=400)]
    assert consistency_score(recent + ancient, window=10) == 95.0


def test_consistency_large_gaps_floor_at_zero():
    assert consistency_score([NOW, NOW - timedelta(days=60)]) == 0.0


def test_goal_progress():
    assert goal_progress([]) is None
    assert goal_progress(["completed", "in_progress", "not_started", "completed"]) == 50.0


def test_interview_performance_ignores_unscored_sessions():
    assert interview_performance([]) is None
    assert interview_performance([None]) is None
    assert interview_performance([80, None, 60]) == 70.0
