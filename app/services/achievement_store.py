"""
Read-only storage adapter for achievements, unlock records and quiz history
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import classify_storage_error
from app.models.achievement import Achievement, QuizCompletion, UserAchievement
from app.schemas.achievement import AchievementDefinition, QuizCompletionRecord, UnlockRecord

logger = logging.getLogger(__name__)


def _to_definition(row: Achievement) -> AchievementDefinition:
    return AchievementDefinition(
        id=row.id,
        slug=row.slug,
        name=row.name,
        short_description=row.short_description or "",
        long_description=row.long_description,
        category=row.category or "engagement",
        rarity=row.rarity if row.rarity is not None else 5,
        is_premium_only=bool(row.is_premium_only),
        unlock_condition_type=row.unlock_condition_type,
        unlock_condition_config=row.unlock_condition_config,
        season_tag=row.season_tag,
        icon_key=row.icon_key,
        series=row.series,
        card_variant=row.card_variant or "standard",
    )


class AchievementStore:
    """
    SQLAlchemy-backed readers for the achievements engine.

    Every reader translates SQLAlchemy errors into the engine's error
    taxonomy (see ``classify_storage_error``) and rolls the session back so
    later reads on the same session still work.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, error: SQLAlchemyError, operation: str):
        self.db.rollback()
        classified = classify_storage_error(error, operation)
        logger.warning(f"{operation} failed ({classified.kind.value}): {error}")
        return classified

    def list_achievements(self) -> Tuple[AchievementDefinition, ...]:
        """Whole catalog ordered by rarity then name"""
        try:
            rows = self.db.query(Achievement).order_by(
                Achievement.rarity.asc(),
                Achievement.name.asc()
            ).all()
        except SQLAlchemyError as e:
            raise self._fail(e, "list_achievements") from e
        return tuple(_to_definition(row) for row in rows)

    def list_completions(self, user_id: str, limit: Optional[int] = None) -> List[QuizCompletionRecord]:
        """User's quiz completions, newest first"""
        try:
            query = self.db.query(QuizCompletion).filter(
                QuizCompletion.user_id == user_id
            ).order_by(desc(QuizCompletion.completed_at))
            if limit is not None:
                query = query.limit(limit)
            rows = query.all()
        except SQLAlchemyError as e:
            raise self._fail(e, "list_completions") from e
        return [
            QuizCompletionRecord(
                user_id=row.user_id,
                completed_at=row.completed_at,
                score=row.score or 0,
                total_questions=row.total_questions or 0,
                quiz_slug=row.quiz_slug,
            )
            for row in rows
        ]

    def list_unlock_records(self, user_id: str) -> List[UnlockRecord]:
        """User's persisted unlock/progress records"""
        try:
            rows = self.db.query(UserAchievement).filter(
                UserAchievement.user_id == user_id
            ).all()
        except SQLAlchemyError as e:
            raise self._fail(e, "list_unlock_records") from e
        return [
            UnlockRecord(
                user_id=row.user_id,
                achievement_id=row.achievement_id,
                unlocked_at=row.unlocked_at,
                progress_value=row.progress_value,
                progress_max=row.progress_max,
            )
            for row in rows
        ]
