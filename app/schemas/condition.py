"""
Unlock condition schemas.

An achievement's ``unlock_condition_config`` is a JSON object whose shape
depends on ``unlock_condition_type``. Each type we can measure progress for
gets its own typed model; any other type parses to ``UntrackedCondition``.
"""
import json
from typing import Any, Dict, Literal, Mapping, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.core.errors import ConditionConfigError


class ConditionBase(BaseModel):
    """Base for typed condition configs (camelCase keys, unknown keys ignored)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class PlayNQuizzesTotalCondition(ConditionBase):
    """Play ``count`` quizzes over the account's lifetime"""
    type: Literal["play_n_quizzes_total"] = "play_n_quizzes_total"
    count: int = Field(default=50, gt=0)


class PlayNQuizzesCondition(ConditionBase):
    """Play ``count`` quizzes within a day, week or month"""
    type: Literal["play_n_quizzes"] = "play_n_quizzes"
    count: int = Field(default=3, gt=0)
    time_window: Literal["day", "week", "month"] = Field(
        default="day",
        validation_alias=AliasChoices("timeWindow", "window", "time_window"),
    )


class PerfectScoresTotalCondition(ConditionBase):
    """Finish ``count`` quizzes with every answer right"""
    type: Literal["perfect_scores_total"] = "perfect_scores_total"
    count: int = Field(default=10, gt=0)
    min_questions: int = Field(default=5, ge=0)


class StreakCondition(ConditionBase):
    """Play during ``weeks`` different ISO weeks"""
    type: Literal["streak"] = "streak"
    weeks: int = Field(
        default=4,
        gt=0,
        validation_alias=AliasChoices("weeks", "consecutiveWeeks", "consecutive_weeks"),
    )


class RepeatQuizCondition(ConditionBase):
    """Complete the same quiz ``min_completions`` times (needs a quiz context)"""
    type: Literal["repeat_quiz"] = "repeat_quiz"
    min_completions: int = Field(default=2, gt=0)


class UntrackedCondition(ConditionBase):
    """One-shot or event condition awarded elsewhere; never shows progress"""
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)


UnlockCondition = Union[
    PlayNQuizzesTotalCondition,
    PlayNQuizzesCondition,
    PerfectScoresTotalCondition,
    StreakCondition,
    RepeatQuizCondition,
    UntrackedCondition,
]

CONDITION_MODELS: Dict[str, Type[ConditionBase]] = {
    "play_n_quizzes_total": PlayNQuizzesTotalCondition,
    "play_n_quizzes": PlayNQuizzesCondition,
    "perfect_scores_total": PerfectScoresTotalCondition,
    "streak": StreakCondition,
    "repeat_quiz": RepeatQuizCondition,
}

# Condition types whose progress can be derived from completion history alone
PROGRESS_CONDITION_TYPES = frozenset({
    "play_n_quizzes_total",
    "play_n_quizzes",
    "perfect_scores_total",
    "streak",
})


def _load_config(config: Union[str, Mapping[str, Any], None]) -> Dict[str, Any]:
    if config is None or config == "":
        return {}
    if isinstance(config, str):
        try:
            config = json.loads(config)
        except json.JSONDecodeError as e:
            raise ConditionConfigError(f"Condition config is not valid JSON: {e}")
    if not isinstance(config, Mapping):
        raise ConditionConfigError(
            f"Condition config must be a JSON object, got {type(config).__name__}"
        )
    return dict(config)


def parse_condition(
    condition_type: str,
    config: Union[str, Mapping[str, Any], None] = None,
) -> UnlockCondition:
    """
    Parse a raw (type, config) pair into its typed condition.

    Raises:
        ConditionConfigError: config is not a JSON object or fails validation
    """
    data = _load_config(config)
    model: Optional[Type[ConditionBase]] = CONDITION_MODELS.get(condition_type)
    if model is None:
        return UntrackedCondition(type=condition_type, config=data)

    data.pop("type", None)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConditionConfigError(
            f"Invalid config for condition '{condition_type}': {e}",
            context={"condition_type": condition_type},
        )
