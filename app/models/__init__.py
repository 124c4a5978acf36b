"""
SkillSphere – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them
through a single ``from app.models import *`` import.
"""

from app.models.user import User                                  # noqa: F401
from app.models.skill import (                                    # noqa: F401
    Skill,
    SkillCluster,
    SkillClusterMapping,
    SkillDependency,
)
from app.models.user_skill import UserSkillState                   # noqa: F401
from app.models.recommendation import GraphRecommendation          # noqa: F401
from app.models.user_stats import UserStats                        # noqa: F401
from app.models.activity import (                                 # noqa: F401
    GoalStatus,
    InterviewSession,
    LearningActivity,
    UserGoal,
)
