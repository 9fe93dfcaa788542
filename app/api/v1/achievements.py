"""
Achievements API endpoints
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse

from app.core.dependencies import get_achievement_store, get_auth_service, get_history_limit
from app.core.errors import AchievementEngineError, ErrorKind
from app.schemas.achievement import AchievementListResponse, ErrorResponse
from app.services.achievement_service import achievement_service
from app.services.achievement_store import AchievementStore
from app.services.auth_service import AuthService

router = APIRouter(prefix="/achievements", tags=["achievements"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=AchievementListResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
async def get_achievements(
    authorization: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
    store: AchievementStore = Depends(get_achievement_store),
    history_limit: int = Depends(get_history_limit)
):
    """
    Get all achievements with the caller's unlock status

    - Anonymous or unknown callers are visitors and see every achievement locked, without progress
    - Locked achievements carry progressValue/progressMax when the user has started them
    """
    try:
        return achievement_service.get_achievements_for_request(
            auth_service,
            store,
            authorization,
            x_user_id,
            history_limit=history_limit
        )
    except Exception as e:
        kind = e.kind if isinstance(e, AchievementEngineError) else ErrorKind.UNKNOWN
        logger.error(f"Error fetching achievements (X-User-Id={x_user_id}): {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Failed to fetch achievements",
                kind=kind.value,
                details=str(e)
            ).model_dump()
        )
