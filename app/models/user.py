"""
User model
"""
from uuid import uuid4
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


class User(Base):
    """User account model (owned by the accounts service, read here for tier)"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)

    # Subscription
    tier = Column(String(50), default="basic")  # 'basic', 'premium'
    subscription_status = Column(String(50), default="FREE")  # 'FREE', 'ACTIVE', 'TRIALING', 'CANCELLED', ...
    free_trial_until = Column(DateTime(timezone=True), nullable=True)

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Relationships
    achievements = relationship("UserAchievement", back_populates="user", cascade="all, delete-orphan")
    quiz_completions = relationship("QuizCompletion", back_populates="user", cascade="all, delete-orphan")
