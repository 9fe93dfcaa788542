"""
User identity schemas
"""
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict

Tier = Literal["visitor", "free", "premium"]


class UserIdentity(BaseModel):
    """Who is calling, as resolved from request credentials"""
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    tier: Tier = "visitor"

    @property
    def is_visitor(self) -> bool:
        return self.user_id is None


VISITOR = UserIdentity()
