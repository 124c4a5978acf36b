"""Recommendation engine — ranks what a user should learn next."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from app.config import settings
from app.services.catalog import Catalog
from app.services.records import RankedSkill, SkillRecord, SkillState
from app.services.unlock import mastered_ids

# Foundational categories get pushed up the list.
CATEGORY_BONUS = {
    "Programming": 10.0,
    "Frontend": 5.0,
    "Backend": 5.0,
}


def score_skill(
    skill: SkillRecord,
    prerequisites_met: int,
    total_mastered: int,
    advanced_after: int = settings.ADVANCED_USER_MASTERED,
) -> float:
    """Score a candidate skill on a 0-100 scale.

    Easier skills score higher; every satisfied prerequisite adds progression
    depth; users with many mastered skills get difficulty weighted back in.
    """
    score = 100.0 - skill.difficulty * 10
    score += prerequisites_met * 5
    if total_mastered > advanced_after:
        score += skill.difficulty * 5
    score += CATEGORY_BONUS.get(skill.category or "", 0.0)
    return min(100.0, max(0.0, score))


def _sort_key(ranked: RankedSkill):
    return (-ranked.score, ranked.difficulty, ranked.skill_id)


def _ranked(
    skill: SkillRecord,
    score: float,
    reason: str,
    met: int,
    total: int,
    unlocked: bool,
) -> RankedSkill:
    return RankedSkill(
        skill_id=skill.id,
        name=skill.name,
        category=skill.category,
        difficulty=skill.difficulty,
        estimated_hours=skill.estimated_hours,
        score=round(score, 2),
        reason=reason,
        prerequisites_met=met,
        prerequisites_total=total,
        is_unlocked=unlocked,
    )


def recommend(
    states: Iterable[SkillState],
    catalog: Catalog,
    limit: int = settings.RECOMMENDATION_LIMIT,
    threshold: int = settings.MASTERY_THRESHOLD,
    near_ratio: float = settings.NEAR_UNLOCK_RATIO,
    advanced_after: int = settings.ADVANCED_USER_MASTERED,
) -> List[RankedSkill]:
    """Ranked "learn next" list, at most ``limit`` entries.

    Primary candidates are unlocked skills below the mastery threshold. Only
    when there are none, locked skills with at least ``near_ratio`` of their
    prerequisites mastered are offered, scored down by how far along they are.
    ``catalog`` must already be validated.
    """
    by_id: Dict[str, SkillState] = {s.skill_id: s for s in states}
    mastered = mastered_ids(by_id.values(), threshold)
    total_mastered = len(mastered)

    primary: List[RankedSkill] = []
    fallback: List[RankedSkill] = []
    for skill in catalog.skills.values():
        if skill.id in mastered:
            continue
        required = catalog.prerequisites_of(skill.id)
        met = sum(1 for p in required if p in mastered)
        state: Optional[SkillState] = by_id.get(skill.id)
        base = score_skill(skill, met, total_mastered, advanced_after)

        if state is not None and state.is_unlocked:
            if state.reinforcement_count > 0 and state.practiced_mastery >= threshold:
                reason = f"Needs review: mastery decayed to {state.mastery_level}%"
            elif not required:
                reason = "Foundation skill: no prerequisites"
            else:
                reason = f"Ready to learn: {met} prerequisites met"
            primary.append(_ranked(skill, base, reason, met, len(required), True))
            continue

        ratio = met / len(required) if required else 1.0
        if ratio >= near_ratio:
            reason = f"Almost unlocked: {met} of {len(required)} prerequisites met"
            if not required:
                reason = "Foundation skill: no prerequisites"
            fallback.append(
                _ranked(skill, base * ratio, reason, met, len(required), False)
            )

    chosen = primary if primary else fallback
    return sorted(chosen, key=_sort_key)[:limit]
