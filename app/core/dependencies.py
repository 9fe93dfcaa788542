"""
Shared FastAPI dependencies
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import get_db
from app.services.achievement_store import AchievementStore
from app.services.auth_service import AuthService


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Request-scoped identity resolver"""
    return AuthService(db)


def get_achievement_store(db: Session = Depends(get_db)) -> AchievementStore:
    """Request-scoped achievements store"""
    return AchievementStore(db)


def get_history_limit() -> int:
    """Cap on completions read per request"""
    return settings.ACHIEVEMENT_HISTORY_LIMIT
