"""
Achievement service: catalog seeding and per-user achievement status
"""
import json
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.errors import SchemaNotProvisioned, TransientStorageUnavailable
from app.models.achievement import Achievement
from app.schemas.achievement import (
    AchievementDefinition,
    AchievementListResponse,
    AchievementProgress,
    AchievementStatus,
    AchievementView,
    UnlockRecord,
)
from app.schemas.user import Tier, UserIdentity, VISITOR
from app.services.auth_service import AuthService
from app.services.achievement_store import AchievementStore
from app.services.progress_reconciler import index_unlock_records, reconcile_progress
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


# Rarity ordinals, lower sorts first
RARITY_ORDER = {
    "legendary": 1,
    "epic": 2,
    "rare": 3,
    "uncommon": 4,
    "common": 5,
}

CATALOG_NOT_PROVISIONED_MESSAGE = "Achievements table not initialized. Please run database migrations."
UNLOCKS_NOT_PROVISIONED_MESSAGE = "User achievements table not initialized. Please run database migrations."
USERS_NOT_PROVISIONED_MESSAGE = "Users table not initialized. Please run database migrations."
STORAGE_UNAVAILABLE_MESSAGE = "Achievements are temporarily unavailable. Please try again shortly."


# Default achievements to seed
DEFAULT_ACHIEVEMENTS = [
    # Common
    {"slug": "hail-caesar", "name": "HAIL, CAESAR!", "short_description": "Get 5/5 in a History round", "long_description": "Achieve a perfect score in a round focused on historical topics", "category": "performance", "rarity": "common", "is_premium_only": False, "icon_key": "/achievements/hail-caesar.png", "unlock_condition_type": "score_5_of_5", "unlock_condition_config": {"category": "history", "requiredScore": 5}},
    {"slug": "addicted", "name": "Addicted", "short_description": "Play 3 quizzes in a single day", "long_description": "Complete three quizzes within one day", "category": "engagement", "rarity": "common", "is_premium_only": False, "icon_key": "addicted", "unlock_condition_type": "play_n_quizzes", "unlock_condition_config": {"count": 3, "timeWindow": "day"}},
    {"slug": "time-traveller", "name": "Time Traveller", "short_description": "Complete a quiz from 3+ weeks ago", "category": "engagement", "rarity": "common", "is_premium_only": False, "icon_key": "time-traveller", "unlock_condition_type": "time_window", "unlock_condition_config": {"weeksAgo": 3}},
    {"slug": "deja-vu", "name": "Déjà Vu", "short_description": "Complete the same quiz twice", "category": "engagement", "rarity": "common", "is_premium_only": False, "icon_key": "deja-vu", "unlock_condition_type": "repeat_quiz", "unlock_condition_config": {"minCompletions": 2}},

    # Uncommon
    {"slug": "blitzkrieg", "name": "Blitzkrieg!", "short_description": "Get 5/5 in a History round under 2 minutes", "category": "performance", "rarity": "uncommon", "is_premium_only": False, "icon_key": "blitzkrieg", "unlock_condition_type": "time_limit", "unlock_condition_config": {"category": "history", "maxSeconds": 120, "requiredScore": 5}},
    {"slug": "routine-genius", "name": "Routine Genius", "short_description": "Play for 4 consecutive weeks", "category": "engagement", "rarity": "uncommon", "is_premium_only": False, "icon_key": "routine-genius", "unlock_condition_type": "streak", "unlock_condition_config": {"weeks": 4}},
    {"slug": "quiz-enthusiast", "name": "Quiz Enthusiast", "short_description": "Play 25 quizzes", "category": "engagement", "rarity": "uncommon", "is_premium_only": False, "icon_key": "quiz-enthusiast", "unlock_condition_type": "play_n_quizzes_total", "unlock_condition_config": {"count": 25}},
    {"slug": "perfectionist", "name": "Perfectionist", "short_description": "Get 5 perfect scores", "category": "performance", "rarity": "uncommon", "is_premium_only": False, "icon_key": "perfectionist", "unlock_condition_type": "perfect_scores_total", "unlock_condition_config": {"count": 5, "minQuestions": 5}},

    # Rare
    {"slug": "ace", "name": "Ace", "short_description": "Get 5/5 in a sports-themed round", "category": "performance", "rarity": "rare", "is_premium_only": True, "icon_key": "ace", "unlock_condition_type": "score_5_of_5", "unlock_condition_config": {"category": "sports", "requiredScore": 5}},
    {"slug": "torchbearer", "name": "Torchbearer", "short_description": "Play in a special Olympic event week", "category": "event", "rarity": "rare", "is_premium_only": True, "season_tag": "olympics-2026", "icon_key": "torchbearer", "unlock_condition_type": "event_round", "unlock_condition_config": {"eventTag": "olympics-2026"}},
    {"slug": "quiz-master-50", "name": "Quiz Master", "short_description": "Play 50 quizzes", "category": "engagement", "rarity": "rare", "is_premium_only": False, "icon_key": "quiz-master-50", "unlock_condition_type": "play_n_quizzes_total", "unlock_condition_config": {"count": 50}},
    {"slug": "perfect-ten", "name": "Perfect Ten", "short_description": "Get 10 perfect scores", "category": "performance", "rarity": "rare", "is_premium_only": False, "icon_key": "perfect-ten", "unlock_condition_type": "perfect_scores_total", "unlock_condition_config": {"count": 10, "minQuestions": 5}},

    # Epic
    {"slug": "quiz-veteran", "name": "Quiz Veteran", "short_description": "Play 100 quizzes", "category": "engagement", "rarity": "epic", "is_premium_only": False, "icon_key": "quiz-veteran", "unlock_condition_type": "play_n_quizzes_total", "unlock_condition_config": {"count": 100}},
    {"slug": "flawless-victory", "name": "Flawless Victory", "short_description": "Get 25 perfect scores", "category": "performance", "rarity": "epic", "is_premium_only": False, "icon_key": "flawless-victory", "unlock_condition_type": "perfect_scores_total", "unlock_condition_config": {"count": 25, "minQuestions": 5}},

    # Legendary
    {"slug": "iron-quizzer-2025", "name": "2025 Iron Quizzer", "short_description": "Maintain a streak through Term 4", "category": "engagement", "rarity": "legendary", "is_premium_only": True, "season_tag": "2025-term-4", "icon_key": "iron-quizzer-2025", "unlock_condition_type": "streak", "unlock_condition_config": {"term": 4, "season": "2025", "consecutiveWeeks": 10}},
    {"slug": "quiz-legend", "name": "Quiz Legend", "short_description": "Play 250 quizzes", "category": "engagement", "rarity": "legendary", "is_premium_only": False, "icon_key": "quiz-legend", "unlock_condition_type": "play_n_quizzes_total", "unlock_condition_config": {"count": 250}},
    {"slug": "perfect-master", "name": "Perfect Master", "short_description": "Get 50 perfect scores", "category": "performance", "rarity": "legendary", "is_premium_only": False, "icon_key": "perfect-master", "unlock_condition_type": "perfect_scores_total", "unlock_condition_config": {"count": 50, "minQuestions": 5}},
]


def can_earn(tier: Tier, achievement: AchievementDefinition) -> bool:
    """Premium-only achievements are earnable by premium users only"""
    return not achievement.is_premium_only or tier == "premium"


def achievement_status(is_unlocked: bool, earnable: bool) -> AchievementStatus:
    if is_unlocked:
        return "unlocked"
    if not earnable:
        return "locked_premium"
    return "locked_free"


def compose_statuses(
    catalog: Sequence[AchievementDefinition],
    tier: Tier,
    unlock_records: Mapping[str, UnlockRecord],
    progress: Mapping[str, AchievementProgress],
) -> List[AchievementView]:
    """Merge each definition with the caller's status, sorted by rarity then name"""
    views = []
    for achievement in sorted(catalog, key=lambda a: (a.rarity, a.name)):
        record = unlock_records.get(achievement.id)
        is_unlocked = record is not None and record.is_unlocked
        achievement_progress = progress.get(achievement.id)

        views.append(AchievementView(
            id=achievement.id,
            slug=achievement.slug,
            name=achievement.name,
            short_description=achievement.short_description,
            long_description=achievement.long_description,
            category=achievement.category,
            rarity=achievement.rarity,
            is_premium_only=achievement.is_premium_only,
            season_tag=achievement.season_tag,
            icon_key=achievement.icon_key,
            series=achievement.series,
            card_variant=achievement.card_variant,
            status=achievement_status(is_unlocked, can_earn(tier, achievement)),
            unlocked_at=record.unlocked_at if is_unlocked else None,
            progress_value=achievement_progress.progress_value if achievement_progress else None,
            progress_max=achievement_progress.progress_max if achievement_progress else None,
        ))
    return views


class AchievementService:
    """Service for achievement operations"""

    def seed_achievements(self, db: Session) -> int:
        """Seed default achievements if they don't exist"""
        created = 0
        for ach_data in DEFAULT_ACHIEVEMENTS:
            existing = db.query(Achievement).filter(
                Achievement.slug == ach_data["slug"]
            ).first()
            if not existing:
                data = dict(ach_data)
                data["rarity"] = RARITY_ORDER[data["rarity"]]
                data["unlock_condition_config"] = json.dumps(data["unlock_condition_config"])
                db.add(Achievement(**data))
                created += 1
        if created > 0:
            db.commit()
        return created

    def _fallback(self, identity: UserIdentity, message: str) -> AchievementListResponse:
        return AchievementListResponse(achievements=[], tier=identity.tier, message=message)

    def get_achievements(
        self,
        store: AchievementStore,
        identity: UserIdentity,
        now: Optional[datetime] = None,
        history_limit: Optional[int] = None,
    ) -> AchievementListResponse:
        """
        Every catalog achievement with the caller's status and progress.

        Missing tables and transient connectivity failures produce an empty
        list with an explanatory message. Other storage errors propagate.
        """
        now = now or utc_now()

        try:
            catalog = store.list_achievements()
        except SchemaNotProvisioned as e:
            logger.warning(f"Achievements table not found - migrations may need to be run: {e.message}")
            return self._fallback(identity, CATALOG_NOT_PROVISIONED_MESSAGE)
        except TransientStorageUnavailable as e:
            logger.warning(f"Achievement catalog unavailable: {e.message}")
            return self._fallback(identity, STORAGE_UNAVAILABLE_MESSAGE)

        if identity.is_visitor:
            views = compose_statuses(catalog, identity.tier, {}, {})
            return AchievementListResponse(achievements=views, tier=identity.tier)

        try:
            unlock_records: Dict[str, UnlockRecord] = index_unlock_records(
                store.list_unlock_records(identity.user_id)
            )
        except SchemaNotProvisioned as e:
            logger.warning(f"User achievements table not found: {e.message}")
            return self._fallback(identity, UNLOCKS_NOT_PROVISIONED_MESSAGE)
        except TransientStorageUnavailable as e:
            logger.warning(f"Unlock records unavailable for user {identity.user_id}: {e.message}")
            return self._fallback(identity, STORAGE_UNAVAILABLE_MESSAGE)

        try:
            history = store.list_completions(identity.user_id, limit=history_limit)
        except SchemaNotProvisioned as e:
            # No completions table means no computed progress, not a failure
            logger.warning(f"Quiz completions table not found: {e.message}")
            history = []
        except TransientStorageUnavailable as e:
            logger.warning(f"Quiz history unavailable for user {identity.user_id}: {e.message}")
            return self._fallback(identity, STORAGE_UNAVAILABLE_MESSAGE)

        # Only recorded progress is shown for achievements gated behind a higher tier
        progress = reconcile_progress(
            catalog, unlock_records, history, now,
            computable=lambda achievement: can_earn(identity.tier, achievement),
        )
        views = compose_statuses(catalog, identity.tier, unlock_records, progress)

        unlocked_count = sum(1 for view in views if view.status == "unlocked")
        logger.debug(
            f"Composed {len(views)} achievements for user {identity.user_id} "
            f"({unlocked_count} unlocked, {len(progress)} in progress)"
        )
        return AchievementListResponse(achievements=views, tier=identity.tier)

    def get_achievements_for_request(
        self,
        auth: AuthService,
        store: AchievementStore,
        authorization: Optional[str],
        user_id_header: Optional[str] = None,
        now: Optional[datetime] = None,
        history_limit: Optional[int] = None,
    ) -> AchievementListResponse:
        """Resolve the caller from request headers, then list their achievements"""
        try:
            identity = auth.resolve_identity(authorization, user_id_header)
        except SchemaNotProvisioned as e:
            logger.warning(f"Users table not found - migrations may need to be run: {e.message}")
            return self._fallback(VISITOR, USERS_NOT_PROVISIONED_MESSAGE)
        except TransientStorageUnavailable as e:
            logger.warning(f"User lookup unavailable: {e.message}")
            return self._fallback(VISITOR, STORAGE_UNAVAILABLE_MESSAGE)

        return self.get_achievements(store, identity, now=now, history_limit=history_limit)


achievement_service = AchievementService()
