"""
Timeout Scanner for the Walk Check-in service.

Read-only monitoring queries for operators:
- timed-out teams: walking, but silent for longer than a threshold
- no-show teams: never produced a single check-in

and the per-waypoint roster report combining both. Nothing here takes
locks or writes; reads a few seconds stale are acceptable.
"""

from datetime import timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.models.participant import MemberRole, Participant, ParticipantType
from app.models.team import Team, TeamStatus
from app.services.participant_state import ParticipantState
from app.services.route_topology import START_INDEX, RouteTopology

# Synthetic bucket for no-show teams; always listed before real waypoints.
NOT_ARRIVED = -1
NOT_ARRIVED_LABEL = "未到"


class RosterEntry:
    """One walker line of the operator report."""

    def __init__(self, participant: Participant, team: Team, location: str):
        self.participant_id = participant.id
        self.name = participant.name
        self.gender = participant.gender
        self.student_id = participant.student_id
        self.tel = participant.tel
        self.campus = participant.campus
        self.college = participant.college
        self.type = participant.type
        self.role = participant.role
        self.walk_status = participant.walk_status
        self.team_id = team.id
        self.team_name = team.name
        self.waypoint = team.current_waypoint
        self.last_check_in_time = team.last_check_in_time
        self.location = location

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "name": self.name,
            "gender": self.gender,
            "student_id": self.student_id,
            "tel": self.tel,
            "campus": self.campus,
            "college": self.college,
            "type": self.type.value,
            "role": self.role.value,
            "walk_status": self.walk_status.value,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "waypoint": self.waypoint,
            "location": self.location,
            "last_check_in_time": (
                self.last_check_in_time.isoformat() if self.last_check_in_time else None
            ),
        }


class WaypointRoster:
    """All reported walkers grouped under one waypoint."""

    def __init__(self, waypoint: int, location: str, entries: list[RosterEntry]):
        self.waypoint = waypoint
        self.location = location
        self.entries = entries

    def to_dict(self) -> dict[str, Any]:
        return {
            "point": self.waypoint,
            "location": self.location,
            "users": [entry.to_dict() for entry in self.entries],
        }


class TimeoutScanner:
    """Classifies a route's teams as timed-out or no-show."""

    def __init__(self, db: AsyncSession, topology: RouteTopology, clock: Clock | None = None):
        self.db = db
        self.topology = topology
        self.clock = clock or SystemClock()
        self.participants = ParticipantState(db)

    async def timeout_teams(self, threshold_minutes: int, route_id: int) -> dict[int, list[Team]]:
        """
        Teams on ``route_id`` silent for longer than ``threshold_minutes``.

        FORMED and FINISHED teams are excluded, as are teams that never
        checked in (those are no-shows).

        Returns:
            waypoint index -> teams at that waypoint, keys ascending, teams by id
        """
        self.topology.route(route_id)  # raises UnknownRoute
        cutoff = self.clock.now() - timedelta(minutes=threshold_minutes)

        result = await self.db.execute(
            select(Team)
            .where(
                Team.route_id == route_id,
                Team.status.not_in([TeamStatus.FORMED, TeamStatus.FINISHED]),
                Team.last_check_in_time.is_not(None),
                Team.last_check_in_time < cutoff,
            )
            .order_by(Team.current_waypoint, Team.id)
        )

        grouped: dict[int, list[Team]] = {}
        for team in result.scalars().all():
            grouped.setdefault(team.current_waypoint, []).append(team)
        return grouped

    async def no_show_teams(self, route_id: int) -> list[Team]:
        """Teams on ``route_id`` still at the start with no check-in ever recorded."""
        self.topology.route(route_id)  # raises UnknownRoute
        result = await self.db.execute(
            select(Team)
            .where(
                Team.route_id == route_id,
                Team.status != TeamStatus.FINISHED,
                Team.current_waypoint == START_INDEX,
                Team.last_check_in_time.is_(None),
            )
            .order_by(Team.id)
        )
        return list(result.scalars().all())

    async def _entries(
        self,
        teams: list[Team],
        participant_type: ParticipantType | None,
        location: str,
    ) -> list[RosterEntry]:
        members = await self.participants.list_by_teams([team.id for team in teams])
        entries: list[RosterEntry] = []
        for team in teams:
            # Captain first, then members by id
            ordered = sorted(members[team.id], key=lambda p: (p.role != MemberRole.CAPTAIN, p.id))
            for participant in ordered:
                if participant_type is not None and participant.type != participant_type:
                    continue
                entries.append(RosterEntry(participant, team, location))
        return entries

    async def build_report(
        self,
        threshold_minutes: int,
        route_id: int,
        participant_type: ParticipantType | None = None,
    ) -> list[WaypointRoster]:
        """
        Combined operator report for one route.

        The NOT_ARRIVED bucket (no-show teams) always comes first, followed
        by one bucket per waypoint holding timed-out teams, ascending.
        Waypoints without timed-out teams are omitted; the NOT_ARRIVED
        bucket is always present, possibly empty.

        Args:
            threshold_minutes: Inactivity threshold
            route_id: Route to scan
            participant_type: Only list walkers of this type when given
        """
        timed_out = await self.timeout_teams(threshold_minutes, route_id)
        no_shows = await self.no_show_teams(route_id)

        report = [
            WaypointRoster(
                NOT_ARRIVED,
                NOT_ARRIVED_LABEL,
                await self._entries(no_shows, participant_type, NOT_ARRIVED_LABEL),
            )
        ]
        for waypoint in sorted(timed_out):
            location = self.topology.waypoint_name(route_id, waypoint)
            report.append(
                WaypointRoster(
                    waypoint,
                    location,
                    await self._entries(timed_out[waypoint], participant_type, location),
                )
            )
        return report
