import logging
from datetime import timedelta

import pytest

from app.services.errors import InvalidStateError, NotFoundError
from app.services.mastery import apply_activity, clamp_mastery, reinforcement_increment
from app.services.records import ActivityEvent, SkillState
from tests.conftest import NOW, practiced


def test_clamp_mastery():
    assert clamp_mastery(55.4) == 55
    assert clamp_mastery(None) == 0
    assert clamp_mastery(140) == 100
    assert clamp_mastery(-3) == 0


def test_clamp_mastery_rejects_garbage():
    with pytest.raises(InvalidStateError):
        clamp_mastery("lots")


def test_reinforcement_increment_scales_with_signal():
    assert reinforcement_increment(None, step=10) == 10
    assert reinforcement_increment(0, step=10) == 5
    assert reinforcement_increment(50, step=10) == 10
    assert reinforcement_increment(100, step=10) == 15
    assert reinforcement_increment(500, step=10) == 15


def test_first_practice_creates_state(abc_catalog):
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW)
    [state] = apply_activity([], event, abc_catalog, step=10)

    assert state.mastery_level == 10
    assert state.practiced_mastery == 10
    assert state.reinforcement_count == 1
    assert state.last_practiced == NOW


def test_practice_decays_then_reinforces(abc_catalog):
    before = practiced("A", 80, when=NOW, count=2)
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW + timedelta(days=30))
    [state] = apply_activity([before], event, abc_catalog, default_rate=0.05, step=10)

    # 80 decays to 18 over 30 days, then +10
    assert state.mastery_level == 28
    assert state.reinforcement_count == 3
    assert state.is_unlocked


def test_mastery_capped_at_100(abc_catalog):
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW, performance_signal=100)
    [state] = apply_activity([practiced("A", 95)], event, abc_catalog)
    assert state.mastery_level == 100


def test_late_arriving_event_keeps_latest_timestamp(abc_catalog):
    before = practiced("A", 60, when=NOW)
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW - timedelta(days=2))
    [state] = apply_activity([before], event, abc_catalog, step=10)

    assert state.last_practiced == NOW
    assert state.mastery_level == 70


def test_duplicate_ids_count_once(abc_catalog):
    event = ActivityEvent(skill_ids=["A", "A"], completed_at=NOW)
    [state] = apply_activity([], event, abc_catalog, step=10)
    assert state.reinforcement_count == 1


def test_other_states_untouched(abc_catalog):
    other = SkillState(skill_id="B", mastery_level=33, practiced_mastery=33, is_unlocked=True)
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW)
    states = apply_activity([other], event, abc_catalog)
    assert [s.skill_id for s in states] == ["A", "B"]
    assert states[1] == other


def test_unknown_skill_rejected(abc_catalog):
    event = ActivityEvent(skill_ids=["A", "nope"], completed_at=NOW)
    with pytest.raises(NotFoundError) as exc:
        apply_activity([], event, abc_catalog)
    assert exc.value.details == {"unknown_skills": ["nope"]}


def test_late_arriving_event_does_not_warn_about_negative_elapsed_time(abc_catalog, caplog):
    before = practiced("A", 60, when=NOW)
    event = ActivityEvent(skill_ids=["A"], completed_at=NOW - timedelta(days=2))

    with caplog.at_level(logging.WARNING, logger="app.services.decay"):
        [state] = apply_activity([before], event, abc_catalog, step=10)

    assert state.mastery_level == 70
    assert not [r for r in caplog.records if "Negative elapsed" in r.getMessage()]
