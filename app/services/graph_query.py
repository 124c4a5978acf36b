"""Graph query interface — read-only node/link projection of a user's skill graph."""

from typing import Dict, Iterable

from app.services.catalog import Catalog
from app.services.errors import NotFoundError
from app.services.records import SkillState


def build_graph(catalog: Catalog, states: Iterable[SkillState]) -> dict:
    """Join catalog, prerequisite edges, and per-user state for the graph view.

    Links point from prerequisite to dependent skill. Skills the user has no
    state for show up locked with mastery 0.
    """
    by_id: Dict[str, SkillState] = {s.skill_id: s for s in states}

    nodes = []
    for skill_id in sorted(catalog.skills):
        skill = catalog.skills[skill_id]
        state = by_id.get(skill_id)
        nodes.append({
            "id": skill.id,
            "name": skill.name,
            "category": skill.category,
            "description": skill.description,
            "difficulty": skill.difficulty,
            "estimated_hours": skill.estimated_hours,
            "mastery": state.mastery_level if state else 0,
            "is_unlocked": state.is_unlocked if state else False,
            "last_practiced": state.last_practiced if state else None,
            "cluster_id": catalog.cluster_of.get(skill_id),
        })

    links = [
        {
            "source": edge.prerequisite_id,
            "target": edge.skill_id,
            "weight": edge.weight,
        }
        for edge in sorted(catalog.edges, key=lambda e: (e.skill_id, e.prerequisite_id))
    ]

    clusters = [
        {
            "id": c.id,
            "name": c.name,
            "career_path": c.career_path,
            "description": c.description,
        }
        for c in sorted(catalog.clusters, key=lambda c: c.id)
    ]

    return {"nodes": nodes, "links": links, "clusters": clusters}


async def get_graph(user_id: int, store) -> dict:
    """Load and project one user's graph. Performs no writes."""
    if not await store.user_exists(user_id):
        raise NotFoundError(f"User {user_id} not found")
    catalog = await store.load_catalog()
    states = await store.load_states(user_id)
    return build_graph(catalog, states)
