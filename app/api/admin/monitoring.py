"""
Admin Monitoring API Endpoints.

Operator views over a route: timed-out and no-show teams grouped by
waypoint, and single team snapshots.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.dependencies import AccessPolicy, CurrentAdmin, DbSession, TimeoutScannerDep, Topology
from app.models.participant import ParticipantType
from app.services.participant_state import ParticipantState
from app.services.team_state import TeamState

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()


# ============== Request/Response Models ==============


class WaypointRosterOut(BaseModel):
    point: int
    location: str
    users: list[dict[str, Any]]


class TimeoutReport(BaseModel):
    route: int
    minute: int
    results: list[WaypointRosterOut]


class MemberOut(BaseModel):
    id: str
    name: str
    role: str
    type: str
    walk_status: str


class TeamSnapshot(BaseModel):
    id: int
    name: str
    route_id: int
    status: str
    member_count: int
    current_waypoint: int
    location: str
    last_check_in_time: str | None
    members: list[MemberOut]


# ============== Endpoints ==============


@router.get("/timeout", response_model=TimeoutReport)
async def timeout_report(
    admin: CurrentAdmin,
    scanner: TimeoutScannerDep,
    access: AccessPolicy,
    route: int = Query(..., ge=1),
    minute: int = Query(default=settings.default_timeout_minutes, ge=1),
    type: ParticipantType | None = Query(default=None),
):
    """
    Timed-out and no-show walkers of a route.

    The "未到" bucket (point -1) lists no-show teams and always comes first;
    the remaining buckets follow in ascending waypoint order.
    """
    if not access.check_route_scope(admin, route):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This route is managed by other admins",
        )

    report = await scanner.build_report(minute, route, type)
    return TimeoutReport(
        route=route,
        minute=minute,
        results=[bucket.to_dict() for bucket in report],
    )


@router.get("/teams/{team_id}", response_model=TeamSnapshot)
async def team_snapshot(
    team_id: int,
    admin: CurrentAdmin,
    session: DbSession,
    topology: Topology,
    access: AccessPolicy,
):
    """Current progress of one team and its members."""
    team = await TeamState(session).get(team_id)
    if not access.check_route_authority(admin, team):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This team walks another route",
        )

    members = await ParticipantState(session).list_by_team(team.id)
    return TeamSnapshot(
        id=team.id,
        name=team.name,
        route_id=team.route_id,
        status=team.status.value,
        member_count=team.member_count,
        current_waypoint=team.current_waypoint,
        location=topology.waypoint_name(team.route_id, team.current_waypoint),
        last_check_in_time=team.last_check_in_time.isoformat() if team.last_check_in_time else None,
        members=[
            MemberOut(
                id=m.id,
                name=m.name,
                role=m.role.value,
                type=m.type.value,
                walk_status=m.walk_status.value,
            )
            for m in members
        ],
    )
