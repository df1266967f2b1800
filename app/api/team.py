"""
Team API Routes - participant-facing membership and notification endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from app.core.dependencies import (
    CurrentParticipant,
    DbSession,
    MembershipServiceDep,
    Notifier,
)

router = APIRouter(prefix="/team", tags=["Team"])
logger = logging.getLogger(__name__)


# ==================== Pydantic Schemas ====================

class RemovalOut(BaseModel):
    team_id: int
    member_count: int
    removed_id: str


class NotificationOut(BaseModel):
    id: int
    message: str
    notification_type: str
    is_read: bool
    related_team_id: int | None

    model_config = {"from_attributes": True}


# ==================== Membership ====================

@router.delete("/members/{participant_id}", response_model=RemovalOut)
async def remove_member(
    participant_id: str,
    participant: CurrentParticipant,
    service: MembershipServiceDep,
):
    """Remove a member from the caller's team (captain only)."""
    outcome = await service.remove_member(participant.id, participant_id)
    return RemovalOut(
        team_id=outcome.team.id,
        member_count=outcome.team.member_count,
        removed_id=outcome.removed.id,
    )


# ==================== Notifications ====================

@router.get("/notifications", response_model=list[NotificationOut])
async def list_notifications(
    participant: CurrentParticipant,
    session: DbSession,
    notifier: Notifier,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Messages addressed to the caller, newest first."""
    return await notifier.get_notifications(
        session, participant.id, unread_only=unread_only, limit=limit, offset=offset
    )


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
async def read_notification(
    notification_id: int,
    participant: CurrentParticipant,
    session: DbSession,
    notifier: Notifier,
):
    notification = await notifier.mark_as_read(session, notification_id, participant.id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification
