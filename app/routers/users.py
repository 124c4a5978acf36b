"""Users router – account provisioning and profile lookup."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserOut, UserProvisioned
from app.services.skill_graph import SkillGraphEngine, get_engine

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserProvisioned, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    engine: SkillGraphEngine = Depends(get_engine),
):
    """Provision a learner account and seed its foundation-tier skills."""
    existing = await db.execute(select(User).where(User.email == payload.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user, seeded = await engine.provision_user(
        payload.email, payload.full_name, payload.career_focus
    )

    out = UserProvisioned.model_validate(user)
    out.seeded_skills = seeded
    return out


@router.get("/{user_id}", response_model=UserOut)
async def read_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """Get a public user profile by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
