"""
Progress reconciler: persisted progress first, computed progress as fallback
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence

from app.core.errors import PerAchievementEvaluationError
from app.schemas.achievement import (
    AchievementDefinition,
    AchievementProgress,
    QuizCompletionRecord,
    UnlockRecord,
)
from app.schemas.condition import PROGRESS_CONDITION_TYPES
from app.services.condition_evaluator import evaluate

logger = logging.getLogger(__name__)


def index_unlock_records(records: Iterable[UnlockRecord]) -> Dict[str, UnlockRecord]:
    """Index unlock records by achievement id, preferring unlocked ones on duplicates"""
    indexed: Dict[str, UnlockRecord] = {}
    for record in records:
        existing = indexed.get(record.achievement_id)
        if existing is None or (record.is_unlocked and not existing.is_unlocked):
            indexed[record.achievement_id] = record
    return indexed


def reconcile_progress(
    catalog: Sequence[AchievementDefinition],
    unlock_records: Mapping[str, UnlockRecord],
    history: Sequence[QuizCompletionRecord],
    now: datetime,
    computable: Optional[Callable[[AchievementDefinition], bool]] = None,
) -> Dict[str, AchievementProgress]:
    """
    Progress for every locked achievement that has any to show.

    A persisted record with both progress fields is returned verbatim and is
    never recomputed, so running this on every request cannot regress
    recorded progress. Otherwise progress-style conditions are evaluated
    against ``history`` for achievements accepted by ``computable`` (all of
    them when it is None). A failure on one achievement is logged and skipped.
    """
    progress: Dict[str, AchievementProgress] = {}

    for achievement in catalog:
        record = unlock_records.get(achievement.id)
        if record is not None and record.is_unlocked:
            continue

        if record is not None and record.has_progress:
            progress[achievement.id] = AchievementProgress(
                progress_value=record.progress_value,
                progress_max=record.progress_max,
            )
            continue

        if achievement.unlock_condition_type not in PROGRESS_CONDITION_TYPES:
            continue
        if computable is not None and not computable(achievement):
            continue

        try:
            computed = evaluate(achievement.condition(), history, now)
        except PerAchievementEvaluationError as e:
            logger.warning(f"Skipping achievement {achievement.slug}: {e.message}")
            continue
        except Exception as e:
            logger.error(
                f"Error evaluating achievement {achievement.slug} "
                f"({achievement.unlock_condition_type}): {e}",
                exc_info=True
            )
            continue

        if computed is not None:
            progress[achievement.id] = computed

    return progress
