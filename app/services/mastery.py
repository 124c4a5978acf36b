"""Mastery updates from completed learning activities."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from app.config import settings
from app.services.catalog import Catalog
from app.services.decay import as_utc, decayed_mastery
from app.services.errors import InvalidStateError, NotFoundError
from app.services.records import ActivityEvent, SkillState

logger = logging.getLogger(__name__)

MAX_MASTERY = 100


def clamp_mastery(value, skill_id: str = "?") -> int:
    """Coerce a stored mastery value onto the canonical 0-100 integer scale."""
    try:
        level = int(round(float(value or 0)))
    except (TypeError, ValueError):
        raise InvalidStateError(f"Non-numeric mastery {value!r} for skill {skill_id}")
    if level < 0 or level > MAX_MASTERY:
        logger.warning(f"Mastery {level} for skill {skill_id} out of range, clamping")
        level = max(0, min(MAX_MASTERY, level))
    return level


def reinforcement_increment(
    performance_signal: Optional[float] = None,
    step: int = settings.REINFORCEMENT_STEP,
) -> int:
    """Mastery points gained for one practice of a skill.

    ``step`` with no signal; otherwise scaled from 0.5x (signal 0) to 1.5x
    (signal 100). Never negative, so practice can only raise mastery.
    """
    if performance_signal is None:
        return step
    signal = max(0.0, min(100.0, float(performance_signal)))
    return max(0, int(round(step * (0.5 + signal / 100.0))))


def apply_activity(
    states: Iterable[SkillState],
    event: ActivityEvent,
    catalog: Catalog,
    default_rate: float = settings.DEFAULT_DECAY_RATE,
    step: int = settings.REINFORCEMENT_STEP,
) -> List[SkillState]:
    """Reinforce every skill practiced in ``event``.

    Mastery is first brought up to date at the later of the event time and the
    previous practice, then raised by the reinforcement increment and recorded
    as the new practice baseline.
    """
    unknown = sorted(sid for sid in set(event.skill_ids) if sid not in catalog.skills)
    if unknown:
        raise NotFoundError(
            f"Unknown skill id(s): {', '.join(unknown)}",
            details={"unknown_skills": unknown},
        )

    by_id: Dict[str, SkillState] = {s.skill_id: s for s in states}
    gain = reinforcement_increment(event.performance_signal, step)
    practiced_at = as_utc(event.completed_at)

    for skill_id in dict.fromkeys(event.skill_ids):
        state = by_id.get(skill_id) or SkillState(skill_id=skill_id)
        last = as_utc(state.last_practiced)
        latest = max(last, practiced_at) if last is not None else practiced_at

        # A late-arriving event is applied at the newest known practice time.
        current = decayed_mastery(state, latest, default_rate)
        new_level = min(MAX_MASTERY, current + gain)

        by_id[skill_id] = replace(
            state,
            mastery_level=new_level,
            practiced_mastery=new_level,
            last_practiced=latest,
            reinforcement_count=state.reinforcement_count + 1,
        )
    return [by_id[sid] for sid in sorted(by_id)]

