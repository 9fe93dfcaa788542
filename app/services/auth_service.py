"""
Authentication Service - resolve request credentials to a user and access tier
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.errors import classify_storage_error
from app.models.user import User
from app.schemas.user import Tier, UserIdentity, VISITOR
from app.utils.time_utils import ensure_utc, utc_now
import logging

logger = logging.getLogger(__name__)

PREMIUM_SUBSCRIPTION_STATUSES = {"ACTIVE", "TRIALING"}
MOCK_TOKEN_PREFIX = "mock-token-"


def extract_user_id(authorization: Optional[str], user_id_header: Optional[str] = None) -> Optional[str]:
    """
    Extract the caller's user id from request headers

    Args:
        authorization: Value of the Authorization header ("Bearer <token>")
        user_id_header: Value of the X-User-Id header, if sent

    Returns:
        User id, or None when the request carries no usable credentials
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization[len("Bearer "):].strip()
    if user_id_header:
        return user_id_header.strip() or None

    # Mock token format: "mock-token-{userId}-{timestamp}"
    if token.startswith(MOCK_TOKEN_PREFIX):
        parts = token.split("-")
        if len(parts) >= 4:
            return "-".join(parts[2:-1]) or None

    return None


def resolve_tier(user: Optional[User], now: Optional[datetime] = None) -> Tier:
    """Access tier for a user record; None means an anonymous visitor"""
    if user is None:
        return "visitor"

    now = now or utc_now()
    on_trial = user.free_trial_until is not None and ensure_utc(user.free_trial_until) > now
    is_premium = (
        user.tier == "premium"
        or user.subscription_status in PREMIUM_SUBSCRIPTION_STATUSES
        or on_trial
    )
    return "premium" if is_premium else "free"


class AuthService:
    """Service for authentication operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID; storage failures are raised as engine errors"""
        try:
            return self.db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            classified = classify_storage_error(e, "get_user_by_id")
            logger.warning(f"User lookup failed ({classified.kind.value}): {e}")
            raise classified from e

    def resolve_identity(
        self,
        authorization: Optional[str],
        user_id_header: Optional[str] = None,
    ) -> UserIdentity:
        """Resolve request headers to a user identity (visitor when unknown)"""
        user_id = extract_user_id(authorization, user_id_header)
        if not user_id:
            return VISITOR

        user = self.get_user_by_id(user_id)
        if user is None:
            logger.info(f"Token references unknown user {user_id}; treating as visitor")
            return VISITOR

        return UserIdentity(user_id=user.id, tier=resolve_tier(user))
