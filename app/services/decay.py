"""Decay model — exponential forgetting curve over mastery.

``retained = mastery * exp(-days * rate)``

Decay is always computed from ``practiced_mastery`` (the value recorded at the
last practice), never from an already-decayed ``mastery_level``, so running the
pass any number of times at the same instant gives the same result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from app.config import settings
from app.services.records import SkillState

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


def decay(
    mastery: float,
    days_since_last_practice: float,
    decay_rate: float,
    floor: float = settings.DECAY_FLOOR,
) -> float:
    """Retention-adjusted mastery after ``days_since_last_practice`` days.

    Negative elapsed time is clamped to 0 so a bad timestamp can never raise
    mastery. The result lies in ``[min(floor, mastery), mastery]``.
    """
    if days_since_last_practice < 0:
        logger.warning(
            f"Negative elapsed time ({days_since_last_practice:.2f} days) clamped to 0"
        )
        days_since_last_practice = 0.0
    if decay_rate <= 0 or mastery <= 0:
        return float(mastery)

    retained = mastery * math.exp(-days_since_last_practice * decay_rate)
    lower = min(floor, mastery)
    return max(lower, min(float(mastery), retained))


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as read back from SQLite) as UTC."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def elapsed_days(last_practiced: Optional[datetime], now: datetime) -> Optional[float]:
    """Fractional days since ``last_practiced``; None if never practiced."""
    if last_practiced is None:
        return None
    delta = as_utc(now) - as_utc(last_practiced)
    return delta.total_seconds() / SECONDS_PER_DAY


def decayed_mastery(
    state: SkillState,
    now: datetime,
    default_rate: float = settings.DEFAULT_DECAY_RATE,
    floor: float = settings.DECAY_FLOOR,
) -> int:
    """Current integer mastery for ``state`` at ``now``."""
    days = elapsed_days(state.last_practiced, now)
    if days is None:
        return state.mastery_level
    rate = state.decay_rate if state.decay_rate is not None else default_rate
    return int(round(decay(state.practiced_mastery, days, rate, floor)))


def apply_decay(
    states: Iterable[SkillState],
    now: datetime,
    default_rate: float = settings.DEFAULT_DECAY_RATE,
    floor: float = settings.DECAY_FLOOR,
) -> Tuple[List[SkillState], List[str]]:
    """Run the decay pass over every state.

    Returns the new states and the ids whose mastery changed.
    """
    updated: List[SkillState] = []
    changed: List[str] = []
    for state in states:
        if state.last_practiced is None:
            updated.append(state)
            continue
        level = decayed_mastery(state, now, default_rate, floor)
        if level != state.mastery_level:
            changed.append(state.skill_id)
            state = replace(state, mastery_level=level)
        updated.append(state)
    return updated, changed
