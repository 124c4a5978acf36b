"""HTTP surface tests: routers, schemas, and error mapping."""

import logging

from sqlalchemy import delete, func, select

from app.main import app
from app.models import SkillDependency, User
from app.services.errors import ExternalServiceError
from app.services.skill_graph import get_engine


async def test_health(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_create_user_seeds_foundation_skills(client, seeded_catalog):
    resp = await client.post(
        "/users",
        json={"full_name": "Asha Rao", "email": "asha@skillsphere.dev", "career_focus": "Backend"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["seeded_skills"] == ["A"]

    graph = (await client.get(f"/users/{body['id']}/skill-graph")).json()
    unlocked = [n["id"] for n in graph["nodes"] if n["is_unlocked"]]
    assert unlocked == ["A"]


async def test_duplicate_email_rejected(client, seeded_catalog):
    payload = {"full_name": "Asha Rao", "email": "asha@skillsphere.dev"}
    assert (await client.post("/users", json=payload)).status_code == 201
    assert (await client.post("/users", json=payload)).status_code == 409


async def test_read_user(client, user_id):
    resp = await client.get(f"/users/{user_id}")
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Test Learner"
    assert (await client.get("/users/9999")).status_code == 404


async def test_skill_graph_view(client, user_id):
    resp = await client.get(f"/users/{user_id}/skill-graph")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["nodes"]) == 3
    assert len(body["links"]) == 3
    assert body["clusters"][0]["name"] == "Web Developer"


async def test_recompute_then_read_back(client, user_id):
    resp = await client.post(f"/users/{user_id}/skill-graph/recompute")
    assert resp.status_code == 200
    body = resp.json()
    assert body["newly_unlocked"] == ["A"]
    assert body["recommendations"][0]["skill_id"] == "A"
    assert body["readiness"]["placement_readiness"] == 20

    recs = (await client.get(f"/users/{user_id}/recommendations")).json()
    assert [r["skill_id"] for r in recs] == ["A"]
    assert recs[0]["rank"] == 1

    readiness = (await client.get(f"/users/{user_id}/readiness")).json()
    assert readiness["placement_readiness"] == 20
    assert readiness["computed_at"] is not None


async def test_readiness_missing_before_first_recompute(client, user_id):
    resp = await client.get(f"/users/{user_id}/readiness")
    assert resp.status_code == 404


async def test_seed_endpoint_is_idempotent(client, user_id):
    first = (await client.post(f"/users/{user_id}/skill-graph/seed")).json()
    second = (await client.post(f"/users/{user_id}/skill-graph/seed")).json()
    assert first["seeded"] == ["A"]
    assert second["seeded"] == []


async def test_post_activity(client, user_id):
    resp = await client.post(
        f"/users/{user_id}/activities",
        json={"skill_ids": ["A"], "performance_signal": 100, "title": "Loops kata"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["readiness"]["skills_mastered"] == 0

    graph = (await client.get(f"/users/{user_id}/skill-graph")).json()
    node = next(n for n in graph["nodes"] if n["id"] == "A")
    assert node["mastery"] == 15
    assert node["last_practiced"] is not None


async def test_activity_signal_out_of_range(client, user_id):
    resp = await client.post(
        f"/users/{user_id}/activities",
        json={"skill_ids": ["A"], "performance_signal": 150},
    )
    assert resp.status_code == 422


async def test_activity_needs_skills(client, user_id):
    resp = await client.post(f"/users/{user_id}/activities", json={"skill_ids": []})
    assert resp.status_code == 422


async def test_activity_unknown_skill(client, user_id):
    resp = await client.post(f"/users/{user_id}/activities", json={"skill_ids": ["ghost"]})
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == 404
    assert body["details"] == {"unknown_skills": ["ghost"]}


async def test_unknown_user_maps_to_404(client, seeded_catalog):
    resp = await client.post("/users/9999/skill-graph/recompute")
    assert resp.status_code == 404
    assert resp.json()["message"] == "User 9999 not found"
    assert (await client.get("/users/9999/skill-graph")).status_code == 404
    assert (await client.get("/users/9999/recommendations")).status_code == 404


async def test_catalog_cycle_maps_to_409(client, user_id, session_factory):
    async with session_factory() as session:
        session.add(SkillDependency(skill_id="A", prerequisite_id="C"))
        await session.commit()

    resp = await client.post(f"/users/{user_id}/skill-graph/recompute")
    assert resp.status_code == 409
    assert "cycle" in resp.json()["details"]

    dashboard = (await client.get(f"/users/{user_id}/dashboard")).json()
    assert dashboard["stale"] is True
    assert dashboard["readiness"] is None
    assert dashboard["recommendations"] == []


async def test_dashboard(client, user_id):
    resp = await client.get(f"/users/{user_id}/dashboard")
    assert resp.status_code == 200
    body = resp.json()
    assert body["stale"] is False
    assert body["readiness"]["placement_readiness"] == 20
    assert [r["skill_id"] for r in body["recommendations"]] == ["A"]


async def test_list_skills(client, seeded_catalog):
    resp = await client.get("/skills")
    assert [s["id"] for s in resp.json()] == ["A", "B", "C"]

    frontend = (await client.get("/skills", params={"category": "Frontend"})).json()
    assert [s["id"] for s in frontend] == ["B"]


async def test_external_service_error_maps_to_502(client):
    class FailingEngine:
        async def dashboard(self, user_id):
            raise ExternalServiceError("Roadmap generator unavailable", details={"provider": "llm"})

    app.dependency_overrides[get_engine] = lambda: FailingEngine()
    resp = await client.get("/users/1/dashboard")
    assert resp.status_code == 502
    assert resp.json() == {
        "status": 502,
        "message": "Roadmap generator unavailable",
        "details": {"provider": "llm"},
    }


async def test_create_user_with_cyclic_catalog_leaves_no_account(client, seeded_catalog, session_factory):
    async with session_factory() as session:
        session.add(SkillDependency(skill_id="A", prerequisite_id="C"))
        await session.commit()

    payload = {"full_name": "Asha Rao", "email": "asha@skillsphere.dev"}
    first = await client.post("/users", json=payload)
    assert first.status_code == 409
    assert "cycle" in first.json()["details"]

    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(User))
    assert count == 0

    retry = await client.post("/users", json=payload)
    assert retry.status_code == 409
    assert "cycle" in retry.json()["details"]

    async with session_factory() as session:
        await session.execute(
            delete(SkillDependency).where(
                SkillDependency.skill_id == "A", SkillDependency.prerequisite_id == "C"
            )
        )
        await session.commit()

    created = await client.post("/users", json=payload)
    assert created.status_code == 201
    assert created.json()["seeded_skills"] == ["A"]


async def test_failed_recompute_logged_once(client, user_id, session_factory, caplog):
    async with session_factory() as session:
        session.add(SkillDependency(skill_id="A", prerequisite_id="C"))
        await session.commit()

    with caplog.at_level(logging.ERROR):
        resp = await client.post(f"/users/{user_id}/skill-graph/recompute")

    assert resp.status_code == 409
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
