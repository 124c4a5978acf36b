"""
Pytest configuration and shared fixtures.

Every test that touches storage gets its own SQLite file, so tests never see
each other's rows and never touch the application database.
"""

from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base, engine_options, get_db
from app.main import app
from app.models import Skill, SkillCluster, SkillClusterMapping, SkillDependency, User, UserSkillState
from app.services.catalog import Catalog
from app.services.records import PrerequisiteEdge, SkillRecord, SkillState
from app.services.skill_graph import SkillGraphEngine, get_engine

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════
#  Pure-function fixtures
# ═══════════════════════════════════════════════════════════════

def abc_records():
    """A has no prerequisites, B requires A, C requires A and B."""
    skills = [
        SkillRecord(id="A", name="Programming Basics", category="Programming", difficulty=1, estimated_hours=10),
        SkillRecord(id="B", name="DOM & Events", category="Frontend", difficulty=2, estimated_hours=15),
        SkillRecord(id="C", name="Server Rendering", category="Backend", difficulty=3, estimated_hours=20),
    ]
    edges = [
        PrerequisiteEdge(skill_id="B", prerequisite_id="A"),
        PrerequisiteEdge(skill_id="C", prerequisite_id="A"),
        PrerequisiteEdge(skill_id="C", prerequisite_id="B", weight=2.0),
    ]
    return skills, edges


@pytest.fixture
def abc_catalog():
    skills, edges = abc_records()
    return Catalog.from_records(skills, edges)


def practiced(skill_id, mastery, when=NOW, unlocked=True, count=1):
    """A state for a skill practiced at ``when`` up to ``mastery``."""
    return SkillState(
        skill_id=skill_id,
        mastery_level=mastery,
        practiced_mastery=mastery,
        is_unlocked=unlocked,
        last_practiced=when,
        reinforcement_count=count,
    )


# ═══════════════════════════════════════════════════════════════
#  Database fixtures
# ═══════════════════════════════════════════════════════════════

@pytest.fixture
async def db_engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'test_skillgraph.db'}"
    engine = create_async_engine(url, **engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded_catalog(session_factory):
    skills, edges = abc_records()
    async with session_factory() as session:
        session.add_all([
            Skill(
                id=s.id,
                name=s.name,
                category=s.category,
                difficulty=s.difficulty,
                estimated_hours=s.estimated_hours,
            )
            for s in skills
        ])
        session.add_all([
            SkillDependency(skill_id=e.skill_id, prerequisite_id=e.prerequisite_id, weight=e.weight)
            for e in edges
        ])
        session.add(SkillCluster(id="web", name="Web Developer", career_path="Full-Stack Development"))
        session.add(SkillClusterMapping(cluster_id="web", skill_id="B"))
        await session.commit()
    return skills, edges


@pytest.fixture
async def user_id(session_factory, seeded_catalog):
    async with session_factory() as session:
        user = User(email="learner@example.com", full_name="Test Learner")
        session.add(user)
        await session.commit()
        return user.id


@pytest.fixture
def engine(session_factory):
    return SkillGraphEngine(session_factory)


@pytest.fixture
def put_state(session_factory):
    """Insert or overwrite one UserSkillState row directly."""

    async def _put(user_id, state: SkillState):
        async with session_factory() as session:
            result = await session.execute(
                select(UserSkillState).where(
                    UserSkillState.user_id == user_id,
                    UserSkillState.skill_id == state.skill_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = UserSkillState(user_id=user_id, skill_id=state.skill_id)
                session.add(row)
            row.mastery_level = state.mastery_level
            row.practiced_mastery = state.practiced_mastery
            row.is_unlocked = state.is_unlocked
            row.last_practiced = state.last_practiced
            row.reinforcement_count = state.reinforcement_count
            row.decay_rate = state.decay_rate
            await session.commit()

    return _put


@pytest.fixture
async def client(session_factory, engine):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_engine] = lambda: engine
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
