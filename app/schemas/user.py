"""User Pydantic schemas — provisioning and profile output."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    """Fields submitted when a learner account is provisioned."""
    full_name: str
    email: EmailStr
    career_focus: Optional[str] = None


class UserOut(BaseModel):
    """Public user representation returned by the API."""
    id: int
    email: str
    full_name: str
    career_focus: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserProvisioned(UserOut):
    seeded_skills: List[str] = []
