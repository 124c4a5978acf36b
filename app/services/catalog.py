"""Skill catalog — shared skill definitions and the prerequisite graph."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from app.services.errors import DataIntegrityError
from app.services.records import ClusterRecord, PrerequisiteEdge, SkillRecord


@dataclass
class Catalog:
    """Read-only view of every skill, edge, and cluster."""

    skills: Dict[str, SkillRecord]
    edges: List[PrerequisiteEdge] = field(default_factory=list)
    clusters: List[ClusterRecord] = field(default_factory=list)
    cluster_of: Dict[str, str] = field(default_factory=dict)
    _prereqs: Optional[Dict[str, List[str]]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def from_records(
        cls,
        skills: Iterable[SkillRecord],
        edges: Iterable[PrerequisiteEdge] = (),
        clusters: Iterable[ClusterRecord] = (),
        cluster_of: Optional[Dict[str, str]] = None,
    ) -> "Catalog":
        return cls(
            skills={s.id: s for s in skills},
            edges=list(edges),
            clusters=list(clusters),
            cluster_of=dict(cluster_of or {}),
        )

    def prerequisite_map(self) -> Dict[str, List[str]]:
        """Built once; the catalog is not mutated after loading."""
        if self._prereqs is None:
            self._prereqs = prerequisite_map(self.edges)
        return self._prereqs

    def prerequisites_of(self, skill_id: str) -> List[str]:
        return self.prerequisite_map().get(skill_id, [])

    def foundation_ids(self) -> List[str]:
        """Skills with no prerequisites, in catalog id order."""
        prereqs = self.prerequisite_map()
        return sorted(sid for sid in self.skills if not prereqs.get(sid))


def prerequisite_map(edges: Iterable[PrerequisiteEdge]) -> Dict[str, List[str]]:
    """skill_id → sorted, de-duplicated list of prerequisite ids."""
    result: Dict[str, Set[str]] = defaultdict(set)
    for edge in edges:
        result[edge.skill_id].add(edge.prerequisite_id)
    return {sid: sorted(ids) for sid, ids in result.items()}


def find_cycle(skill_ids: Iterable[str], edges: Iterable[PrerequisiteEdge]) -> Optional[List[str]]:
    """Return one prerequisite cycle as a list of ids, or None if the graph is acyclic.

    Iterative three-colour DFS, so it terminates on any input and does not
    hit the recursion limit on deep catalogs.
    """
    graph = prerequisite_map(edges)
    WHITE, GREY, BLACK = 0, 1, 2
    colour: Dict[str, int] = defaultdict(int)

    for root in sorted(set(skill_ids) | set(graph)):
        if colour[root] != WHITE:
            continue
        path: List[str] = [root]
        stack = [iter(graph.get(root, []))]
        colour[root] = GREY
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                colour[path.pop()] = BLACK
                stack.pop()
                continue
            if colour[nxt] == GREY:
                return path[path.index(nxt):] + [nxt]
            if colour[nxt] == WHITE:
                colour[nxt] = GREY
                path.append(nxt)
                stack.append(iter(graph.get(nxt, [])))
    return None


def validate_catalog(catalog: Catalog) -> None:
    """Raise DataIntegrityError if any edge is dangling or the graph has a cycle."""
    dangling = sorted(
        {
            ref
            for edge in catalog.edges
            for ref in (edge.skill_id, edge.prerequisite_id)
            if ref not in catalog.skills
        }
    )
    if dangling:
        raise DataIntegrityError(
            f"Prerequisite edges reference unknown skills: {', '.join(dangling)}",
            details={"unknown_skills": dangling},
        )

    cycle = find_cycle(catalog.skills.keys(), catalog.edges)
    if cycle:
        raise DataIntegrityError(
            f"Prerequisite cycle detected: {' -> '.join(cycle)}",
            details={"cycle": cycle},
        )
