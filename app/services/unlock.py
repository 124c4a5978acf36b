"""Unlock engine — decides which skills become available to a user."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Set, Tuple

from app.config import settings
from app.services.catalog import Catalog, validate_catalog
from app.services.records import PrerequisiteEdge, SkillRecord, SkillState

logger = logging.getLogger(__name__)


def mastered_ids(
    states: Iterable[SkillState], threshold: int = settings.MASTERY_THRESHOLD
) -> Set[str]:
    return {s.skill_id for s in states if s.mastery_level >= threshold}


def _eligible(
    mastered_skill_ids: Set[str],
    skill_ids: Iterable[str],
    prerequisites_of: Callable[[str], List[str]],
) -> Set[str]:
    return {
        sid
        for sid in skill_ids
        if all(p in mastered_skill_ids for p in prerequisites_of(sid))
    }


def compute_unlocks(
    mastered_skill_ids: Set[str],
    all_skills: Iterable[SkillRecord],
    edges: Iterable[PrerequisiteEdge],
) -> Set[str]:
    """Ids of every skill whose prerequisites are all mastered.

    Skills with no prerequisites are always eligible. Raises DataIntegrityError
    on a cyclic or dangling graph instead of unlocking from corrupt input.
    """
    catalog = Catalog.from_records(all_skills, edges)
    validate_catalog(catalog)
    return _eligible(mastered_skill_ids, catalog.skills, catalog.prerequisites_of)


def apply_unlocks(
    states: Iterable[SkillState],
    catalog: Catalog,
    threshold: int = settings.MASTERY_THRESHOLD,
) -> Tuple[List[SkillState], List[str]]:
    """Grant unlocks to a user's states. ``catalog`` must already be validated.

    Unlocking is one-way: a state that is already unlocked stays unlocked even
    if its prerequisites have since decayed below the threshold. Newly reachable
    skills without a state row get one with mastery 0.
    """
    by_id: Dict[str, SkillState] = {s.skill_id: s for s in states}
    eligible = _eligible(
        mastered_ids(by_id.values(), threshold),
        catalog.skills,
        catalog.prerequisites_of,
    )

    newly_unlocked: List[str] = []
    for skill_id in sorted(eligible):
        state = by_id.get(skill_id)
        if state is None:
            by_id[skill_id] = SkillState(skill_id=skill_id, is_unlocked=True)
            newly_unlocked.append(skill_id)
        elif not state.is_unlocked:
            by_id[skill_id] = replace(state, is_unlocked=True)
            newly_unlocked.append(skill_id)

    if newly_unlocked:
        logger.info(f"Unlocked {len(newly_unlocked)} skill(s): {', '.join(newly_unlocked)}")
    return [by_id[sid] for sid in sorted(by_id)], newly_unlocked
