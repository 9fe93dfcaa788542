"""
Achievement schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.condition import UnlockCondition, parse_condition
from app.schemas.user import Tier

AchievementStatus = Literal["unlocked", "locked_premium", "locked_free"]


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AchievementDefinition(CamelModel):
    """Catalog entry as read from the achievements table"""
    id: str
    slug: str
    name: str
    short_description: str = ""
    long_description: Optional[str] = None
    category: str = "engagement"
    rarity: int = 5
    is_premium_only: bool = False
    unlock_condition_type: str
    unlock_condition_config: Union[str, Dict[str, Any], None] = None
    season_tag: Optional[str] = None
    icon_key: Optional[str] = None
    series: Optional[str] = None
    card_variant: str = "standard"

    def condition(self) -> UnlockCondition:
        """Typed unlock condition; raises ConditionConfigError if malformed"""
        return parse_condition(self.unlock_condition_type, self.unlock_condition_config)


class QuizCompletionRecord(CamelModel):
    """A user's finished quiz"""
    user_id: str
    completed_at: datetime
    score: int
    total_questions: int
    quiz_slug: Optional[str] = None

    @property
    def is_perfect(self) -> bool:
        return self.total_questions > 0 and self.score == self.total_questions


class UnlockRecord(CamelModel):
    """Persisted unlock/progress state for one (user, achievement) pair"""
    user_id: str
    achievement_id: str
    unlocked_at: Optional[datetime] = None
    progress_value: Optional[int] = None
    progress_max: Optional[int] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None

    @property
    def has_progress(self) -> bool:
        return self.progress_value is not None and self.progress_max is not None


class AchievementProgress(CamelModel):
    """Progress toward a locked achievement"""
    progress_value: int
    progress_max: int


class AchievementView(CamelModel):
    """Achievement definition merged with the caller's status and progress"""
    id: str
    slug: str
    name: str
    short_description: str
    long_description: Optional[str] = None
    category: str
    rarity: int
    is_premium_only: bool
    season_tag: Optional[str] = None
    icon_key: Optional[str] = None
    series: Optional[str] = None
    card_variant: str = "standard"
    status: AchievementStatus
    unlocked_at: Optional[datetime] = None
    progress_value: Optional[int] = None
    progress_max: Optional[int] = None


class AchievementListResponse(CamelModel):
    """Response for GET /achievements"""
    achievements: List[AchievementView]
    tier: Tier
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Failure payload for GET /achievements"""
    error: str
    kind: str
    details: Optional[str] = None
