"""
Team State Service for the Walk Check-in service.

Team lookups, row locking, check-in bookkeeping and the rule that derives
a team's aggregate status from its members.
"""

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransition, TeamNotFound
from app.core.locks import lock_teams, with_team_lock
from app.models.participant import TERMINAL_WALK_STATUSES, WalkStatus
from app.models.team import Team, TeamStatus

logger = logging.getLogger(__name__)

_MOVING_STATUSES = frozenset({WalkStatus.IN_PROGRESS, WalkStatus.CHECKED_IN})


def derive_team_status(current: TeamStatus, member_statuses: Iterable[WalkStatus]) -> TeamStatus:
    """
    Aggregate status of a team from its members' walk statuses.

    - every member ABANDONED or FINISHED -> FINISHED
    - a FINISHED team with a member back on the route -> ACTIVE
    - any member walking -> ACTIVE
    - otherwise the current status is kept

    A team without members keeps its current status.
    """
    statuses = list(member_statuses)
    if not statuses:
        return current
    if all(s in TERMINAL_WALK_STATUSES for s in statuses):
        return TeamStatus.FINISHED
    if current == TeamStatus.FINISHED:
        return TeamStatus.ACTIVE
    if any(s in _MOVING_STATUSES for s in statuses):
        return TeamStatus.ACTIVE
    return current


class TeamState:
    """Team store operations bound to one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, team_id: int) -> Team:
        team = await self.db.get(Team, team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    async def get_for_update(self, team_id: int) -> Team:
        result = await self.db.execute(with_team_lock(team_id))
        team = result.scalar_one_or_none()
        if team is None:
            raise TeamNotFound(team_id)
        return team

    async def lock(self, team_ids: Iterable[int]) -> dict[int, Team]:
        """
        Lock the given team rows for the rest of the transaction.

        Raises:
            TeamNotFound: for the lowest requested id that does not exist
        """
        ordered = sorted(set(team_ids))
        if not ordered:
            return {}
        result = await self.db.execute(lock_teams(ordered))
        teams = {team.id: team for team in result.scalars().all()}
        for team_id in ordered:
            if team_id not in teams:
                raise TeamNotFound(team_id)
        return teams

    async def list_by_route(self, route_id: int) -> list[Team]:
        result = await self.db.execute(
            select(Team).where(Team.route_id == route_id).order_by(Team.id)
        )
        return list(result.scalars().all())

    def record_check_in(self, team: Team, waypoint: int | None, at: datetime) -> None:
        """
        Note that the team was seen at ``waypoint``.

        ``current_waypoint`` never moves backwards: a late scan at an
        earlier waypoint only refreshes the activity time. A roaming
        admin (``waypoint`` None) refreshes the time without moving the team.
        """
        if waypoint is not None and waypoint > team.current_waypoint:
            team.current_waypoint = waypoint
        team.last_check_in_time = at
        if team.status == TeamStatus.FORMED:
            team.status = TeamStatus.ACTIVE

    def apply_aggregate(self, team: Team, member_statuses: Iterable[WalkStatus]) -> TeamStatus:
        new_status = derive_team_status(team.status, member_statuses)
        if new_status != team.status:
            if not team.status.can_transition_to(new_status):
                raise InvalidTransition(
                    f"Team {team.id} cannot move from {team.status.value} to {new_status.value}"
                )
            logger.info(f"Team {team.id} status {team.status.value} -> {new_status.value}")
            team.status = new_status
        return new_status
