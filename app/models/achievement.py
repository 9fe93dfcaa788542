"""
Achievement system models
"""
from uuid import uuid4
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


def _new_id() -> str:
    return str(uuid4())


class Achievement(Base):
    """Achievement catalog entry, maintained by the content team"""
    __tablename__ = "achievements"

    id = Column(String(36), primary_key=True, default=_new_id)
    slug = Column(String(100), unique=True, nullable=False, index=True)

    # Achievement details
    name = Column(String(255), nullable=False)
    short_description = Column(String(255), nullable=False, default="")
    long_description = Column(Text, nullable=True)
    icon_key = Column(String(255), nullable=True)
    card_variant = Column(String(50), default="standard")  # 'standard', 'foil', 'foilGold', 'shiny', ...

    # Categorization
    category = Column(String(50), default="engagement")  # 'engagement', 'performance', 'event'
    rarity = Column(Integer, default=5, index=True)  # Ordinal, lower is rarer (1 = legendary)
    series = Column(String(100), nullable=True)
    season_tag = Column(String(100), nullable=True)

    # Access
    is_premium_only = Column(Boolean, default=False)

    # Unlock condition
    unlock_condition_type = Column(String(50), nullable=False)
    unlock_condition_config = Column(Text, nullable=True)  # JSON object, shape depends on type

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Relationships
    user_achievements = relationship("UserAchievement", back_populates="achievement")


class UserAchievement(Base):
    """Unlock/progress record written by the award process"""
    __tablename__ = "user_achievements"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    achievement_id = Column(String(36), ForeignKey("achievements.id", ondelete="CASCADE"), index=True, nullable=False)

    # Progress
    progress_value = Column(Integer, nullable=True)
    progress_max = Column(Integer, nullable=True)
    quiz_slug = Column(String(255), nullable=True)
    meta = Column(Text, nullable=True)  # JSON context of the unlock

    # Timestamps
    unlocked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    # Relationships
    user = relationship("User", back_populates="achievements")
    achievement = relationship("Achievement", back_populates="user_achievements")

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_user_achievement"),
    )


class QuizCompletion(Base):
    """A finished quiz play, appended by the quiz-play subsystem"""
    __tablename__ = "quiz_completions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    quiz_slug = Column(String(255), nullable=True)

    # Result
    score = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    completion_time_seconds = Column(Integer, nullable=True)

    # Timestamps
    completed_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    user = relationship("User", back_populates="quiz_completions")

    # History reads are "latest N for a user"
    __table_args__ = (
        Index("ix_quiz_completions_user_completed", "user_id", "completed_at"),
    )
