"""
Condition evaluator: progress toward an unlock condition from completion history
"""
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

from app.schemas.achievement import AchievementProgress, QuizCompletionRecord
from app.schemas.condition import (
    PerfectScoresTotalCondition,
    PlayNQuizzesCondition,
    PlayNQuizzesTotalCondition,
    StreakCondition,
    UnlockCondition,
    parse_condition,
)
from app.utils.time_utils import ensure_utc, start_of_day, week_key


History = Sequence[QuizCompletionRecord]


def _window_start(time_window: str, now: datetime) -> datetime:
    if time_window == "day":
        return start_of_day(now)
    if time_window == "week":
        return now - timedelta(days=7)
    return now - timedelta(days=30)


def _play_n_quizzes_total(condition: PlayNQuizzesTotalCondition, history: History, now: datetime) -> Tuple[int, int]:
    return len(history), condition.count


def _play_n_quizzes(condition: PlayNQuizzesCondition, history: History, now: datetime) -> Tuple[int, int]:
    start = _window_start(condition.time_window, now)
    in_window = [
        c for c in history
        if start <= ensure_utc(c.completed_at) <= now
    ]
    return len(in_window), condition.count


def _perfect_scores_total(condition: PerfectScoresTotalCondition, history: History, now: datetime) -> Tuple[int, int]:
    perfect = [
        c for c in history
        if c.is_perfect and c.total_questions >= condition.min_questions
    ]
    return len(perfect), condition.count


def _streak(condition: StreakCondition, history: History, now: datetime) -> Tuple[int, int]:
    # Distinct active weeks among the latest 2 x weeks plays, not consecutive weeks
    recent = sorted(history, key=lambda c: ensure_utc(c.completed_at), reverse=True)
    recent = recent[: 2 * condition.weeks]
    weeks_played = {week_key(c.completed_at) for c in recent}
    return len(weeks_played), condition.weeks


_STRATEGIES: Dict[Type[Any], Callable[[Any, History, datetime], Tuple[int, int]]] = {
    PlayNQuizzesTotalCondition: _play_n_quizzes_total,
    PlayNQuizzesCondition: _play_n_quizzes,
    PerfectScoresTotalCondition: _perfect_scores_total,
    StreakCondition: _streak,
}


def evaluate(
    condition: UnlockCondition,
    history: History,
    now: datetime,
) -> Optional[AchievementProgress]:
    """
    Progress for a typed condition, or None when there is nothing to show.

    Returns None for conditions that are not progress-style (repeat_quiz,
    one-shot/event types) and for conditions the user has not started.
    The value is clamped to the maximum.
    """
    strategy = _STRATEGIES.get(type(condition))
    if strategy is None:
        return None

    progress_value, progress_max = strategy(condition, history, ensure_utc(now))
    progress_value = min(progress_value, progress_max)
    if progress_value <= 0:
        return None
    return AchievementProgress(progress_value=progress_value, progress_max=progress_max)


def evaluate_condition(
    condition_type: str,
    config: Union[str, Mapping[str, Any], None],
    history: History,
    now: datetime,
) -> Optional[AchievementProgress]:
    """
    Parse a raw (type, config) pair and evaluate it.

    Raises:
        ConditionConfigError: config is malformed
    """
    return evaluate(parse_condition(condition_type, config), history, now)
