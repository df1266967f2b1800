"""
Admin Check-in API Endpoints.

Route admins scan walkers at their waypoint or mark them as abandoned.
A request carries a batch that commits or fails as a whole.
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.core.dependencies import CheckInEngineDep, CurrentAdmin
from app.models.participant import WalkStatus
from app.services.checkin_engine import StatusChangeRequest

router = APIRouter()
logger = logging.getLogger(__name__)


# ============== Request/Response Models ==============


class StatusChangeItem(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    status: WalkStatus


class StatusChangeBatch(BaseModel):
    items: list[StatusChangeItem] = Field(..., alias="list", min_length=1, max_length=200)


class StatusChangeResponse(BaseModel):
    participants: dict[str, WalkStatus]
    teams: dict[str, str]
    finished_teams: list[int]


# ============== Endpoints ==============


@router.post("/status", response_model=StatusChangeResponse)
async def update_status(data: StatusChangeBatch, admin: CurrentAdmin, engine: CheckInEngineDep):
    """
    Apply a batch of check-in / abandon events.

    Domain errors (unknown participant, other route, finished walker,
    status not admin-settable) reject the whole batch.
    """
    result = await engine.apply_status_change(
        admin,
        [StatusChangeRequest(item.user_id, item.status) for item in data.items],
    )
    return result.to_dict()
