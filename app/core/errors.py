"""
Error taxonomy for the achievements engine and its storage adapters
"""
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import exc as sa_exc


class ErrorKind(str, Enum):
    """Machine-readable error kinds returned to API callers"""
    SCHEMA_NOT_PROVISIONED = "schema_not_provisioned"
    TRANSIENT_STORAGE_UNAVAILABLE = "transient_storage_unavailable"
    EVALUATION_ERROR = "per_achievement_evaluation_error"
    UNKNOWN = "unknown"


class AchievementEngineError(Exception):
    """Base class for achievements engine errors"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses and structured logs"""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
        }


class SchemaNotProvisioned(AchievementEngineError):
    """A table or column the engine reads has not been created yet"""
    kind = ErrorKind.SCHEMA_NOT_PROVISIONED


class TransientStorageUnavailable(AchievementEngineError):
    """Connection-level storage failure; retrying later may succeed"""
    kind = ErrorKind.TRANSIENT_STORAGE_UNAVAILABLE


class StorageError(AchievementEngineError):
    """Any other storage failure"""
    kind = ErrorKind.UNKNOWN


class PerAchievementEvaluationError(AchievementEngineError):
    """Evaluating a single achievement's unlock condition failed"""
    kind = ErrorKind.EVALUATION_ERROR


class ConditionConfigError(PerAchievementEvaluationError):
    """An unlock condition configuration could not be parsed"""


# Substrings that identify a missing relation/column across PostgreSQL and SQLite
_SCHEMA_MISSING_MARKERS = (
    "does not exist",
    "no such table",
    "no such column",
    "undefinedtable",
    "undefinedcolumn",
    "has no column named",
)

_TRANSIENT_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


def classify_storage_error(error: Exception, operation: str = "") -> AchievementEngineError:
    """
    Map a SQLAlchemy/driver error onto the engine taxonomy.

    Missing-schema detection looks at the message first because SQLite
    reports "no such table" as an OperationalError.
    """
    message = str(error)
    lowered = message.lower()
    orig = getattr(error, "orig", None)
    if orig is not None:
        lowered = f"{lowered} {type(orig).__name__.lower()}"
    context = {"operation": operation, "error_type": type(error).__name__}

    if any(marker in lowered for marker in _SCHEMA_MISSING_MARKERS):
        return SchemaNotProvisioned(message, context)
    if isinstance(error, _TRANSIENT_ERRORS):
        return TransientStorageUnavailable(message, context)
    return StorageError(message, context)
