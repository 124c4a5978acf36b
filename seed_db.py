"""Seed the skill catalog and a demo learner.

Run with:
    python seed_db.py
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.database import Base, async_session, engine
from app.models import (
    InterviewSession,
    LearningActivity,
    Skill,
    SkillCluster,
    SkillClusterMapping,
    SkillDependency,
    User,
    UserGoal,
)
from app.models.activity import GoalStatus
from app.services.skill_graph import skill_graph_engine

SKILLS = [
    # id, name, category, difficulty, hours
    ("html-css", "HTML & CSS", "Frontend", 1, 20),
    ("javascript", "JavaScript", "Programming", 2, 40),
    ("git", "Git", "Tooling", 1, 8),
    ("sql", "SQL", "Database", 2, 25),
    ("react", "React", "Frontend", 4, 45),
    ("nodejs", "Node.js", "Backend", 4, 40),
    ("typescript", "TypeScript", "Programming", 3, 20),
    ("rest-apis", "REST APIs", "Backend", 4, 20),
    ("system-design", "System Design", "Architecture", 7, 60),
]

DEPENDENCIES = [
    # skill, prerequisite, weight
    ("react", "javascript", 2.0),
    ("react", "html-css", 1.0),
    ("nodejs", "javascript", 2.0),
    ("typescript", "javascript", 1.5),
    ("rest-apis", "nodejs", 1.5),
    ("rest-apis", "sql", 1.0),
    ("system-design", "rest-apis", 2.0),
    ("system-design", "react", 1.0),
]

CLUSTERS = {
    "frontend-path": ("Frontend Engineer", "Frontend Development", ["html-css", "react", "typescript"]),
    "backend-path": ("Backend Engineer", "Backend Development", ["nodejs", "sql", "rest-apis"]),
    "fullstack-core": ("Full-Stack Core", "Full-Stack Development", ["javascript", "git", "system-design"]),
}


async def async_main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        existing = await session.execute(select(Skill.id).limit(1))
        if existing.scalar_one_or_none():
            print("Catalog already present, skipping.")
            return

        session.add_all([
            Skill(id=sid, name=name, category=cat, difficulty=diff, estimated_hours=hours)
            for sid, name, cat, diff, hours in SKILLS
        ])
        session.add_all([
            SkillDependency(skill_id=s, prerequisite_id=p, weight=w)
            for s, p, w in DEPENDENCIES
        ])
        for cid, (name, path, members) in CLUSTERS.items():
            session.add(SkillCluster(id=cid, name=name, career_path=path))
            session.add_all([SkillClusterMapping(cluster_id=cid, skill_id=m) for m in members])
        await session.flush()

        user = User(email="alice@example.com", full_name="Alice Learner", career_focus="full-stack-development")
        session.add(user)
        await session.flush()

        session.add(UserGoal(user_id=user.id, title="Become a Full-Stack Developer", status=GoalStatus.IN_PROGRESS))
        session.add(InterviewSession(
            user_id=user.id,
            interview_type="technical",
            overall_score=62,
            completed_at=datetime.now(timezone.utc) - timedelta(days=3),
        ))
        session.add(LearningActivity(
            user_id=user.id,
            title="Intro to the DOM",
            skills_practiced_json='["html-css"]',
            completed_at=datetime.now(timezone.utc) - timedelta(days=6),
        ))
        await session.commit()
        user_id = user.id

    await skill_graph_engine.seed_foundation_skills(user_id)
    await skill_graph_engine.record_activity(user_id, ["javascript"], performance_signal=90, title="JS fundamentals")
    result = await skill_graph_engine.recompute(user_id)
    print(f"Catalog seeded; demo user {user_id} readiness {result.readiness.placement_readiness}.")


if __name__ == "__main__":
    asyncio.run(async_main())
