"""Skills router — read-only catalog listing."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.skill import Skill
from app.schemas.skill_graph import SkillOut

router = APIRouter(prefix="/skills", tags=["skills"])


@router.get("", response_model=List[SkillOut])
async def list_skills(
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """List catalog skills, optionally filtered by category."""
    query = select(Skill).order_by(Skill.difficulty, Skill.id)
    if category:
        query = query.where(Skill.category == category)
    result = await db.execute(query)
    return result.scalars().all()
