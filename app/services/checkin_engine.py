"""
Check-in Engine for the Walk Check-in service.

Applies admin status changes (check-in / abandon) to a batch of
participants and re-derives the status of every team the batch touched.

A batch is all-or-nothing: every request is validated before the first
write, and member writes plus team recomputation commit in one
transaction. Touched team rows are locked for the duration, so two batches
on the same team serialize instead of both reading a stale membership.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.core.database import transactional
from app.core.exceptions import (
    AlreadyFinished,
    InvalidTransition,
    TeamNotFound,
    Unauthorized,
)
from app.models.admin import RouteAdmin
from app.models.participant import ADMIN_SETTABLE_STATUSES, Participant, WalkStatus
from app.models.team import Team, TeamStatus
from app.services.access_control import RouteAccessPolicy
from app.services.participant_state import ParticipantState
from app.services.route_topology import START_INDEX, RouteTopology
from app.services.team_state import TeamState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChangeRequest:
    participant_id: str
    new_status: WalkStatus


@dataclass
class StatusChangeResult:
    """Outcome of a committed batch."""

    participant_statuses: dict[str, WalkStatus] = field(default_factory=dict)
    team_statuses: dict[int, TeamStatus] = field(default_factory=dict)

    @property
    def finished_teams(self) -> list[int]:
        return sorted(
            team_id
            for team_id, status in self.team_statuses.items()
            if status == TeamStatus.FINISHED
        )

    def to_dict(self) -> dict:
        return {
            "participants": {pid: s.value for pid, s in self.participant_statuses.items()},
            "teams": {str(tid): s.value for tid, s in self.team_statuses.items()},
            "finished_teams": self.finished_teams,
        }


class CheckInEngine:
    """Service applying check-in and abandon events."""

    def __init__(
        self,
        db: AsyncSession,
        topology: RouteTopology,
        access: RouteAccessPolicy | None = None,
        clock: Clock | None = None,
    ):
        self.db = db
        self.topology = topology
        self.access = access or RouteAccessPolicy()
        self.clock = clock or SystemClock()
        self.participants = ParticipantState(db)
        self.teams = TeamState(db)

    def _validate(
        self,
        actor: RouteAdmin,
        request: StatusChangeRequest,
        participant: Participant,
        team: Team,
    ) -> WalkStatus:
        if not self.access.check_route_authority(actor, team):
            raise Unauthorized(
                f"Team {team.id} belongs to route {team.route_id}, outside your route"
            )
        if participant.walk_status == WalkStatus.FINISHED:
            raise AlreadyFinished(participant.id)
        if request.new_status not in ADMIN_SETTABLE_STATUSES:
            raise InvalidTransition(
                f"Status {request.new_status.value} cannot be set by an admin"
            )
        if (
            request.new_status != WalkStatus.ABANDONED
            and actor.waypoint is not None
            and not START_INDEX <= actor.waypoint < self.topology.waypoint_count(team.route_id)
        ):
            raise InvalidTransition(
                f"Waypoint {actor.waypoint} is not on route {team.route_id}"
            )
        if not participant.walk_status.can_transition_to(request.new_status):
            raise InvalidTransition(
                f"Participant {participant.id} cannot move from "
                f"{participant.walk_status.value} to {request.new_status.value}"
            )
        return request.new_status

    @transactional
    async def apply_status_change(
        self,
        actor: RouteAdmin,
        requests: list[StatusChangeRequest],
    ) -> StatusChangeResult:
        """
        Apply a batch of status changes atomically.

        The requested status is written as is. A check-in stamps the team's
        activity time and, when the admin is posted at a waypoint, moves the
        team forward to it.

        Args:
            actor: Route admin performing the scan
            requests: Participant ids with the requested status

        Returns:
            StatusChangeResult with the written participant statuses and
            the resulting status of every touched team

        Raises:
            ParticipantNotFound / TeamNotFound: a lookup failed
            Unauthorized: a target team is outside the actor's route
            AlreadyFinished: a target already completed the walk
            InvalidTransition: the requested status is not admin-settable,
                the admin's waypoint is not on the team's route, or a
                participant changed team while the batch waited for its lock
            StoreError: the store failed; nothing was written
        """
        result = StatusChangeResult()
        if not requests:
            return result
        participant_ids = [r.participant_id for r in requests]

        # 1. Find the teams to lock
        participants = await self.participants.get_many(participant_ids)
        team_ids: list[int] = []
        for participant_id in participant_ids:
            team_id = participants[participant_id].team_id
            if team_id is None:
                raise TeamNotFound(None)
            team_ids.append(team_id)
        teams = await self.teams.lock(team_ids)

        # 2. Re-read members under the lock; the first read may be stale
        participants = await self.participants.get_many(participant_ids, refresh=True)
        for participant_id in participant_ids:
            team_id = participants[participant_id].team_id
            if team_id is None:
                raise TeamNotFound(None)
            if team_id not in teams:
                raise InvalidTransition(
                    f"Participant {participant_id} changed team during the check-in; retry"
                )

        # 3. Validate everything before the first write
        planned: list[tuple[Participant, Team, WalkStatus]] = []
        for request in requests:
            participant = participants[request.participant_id]
            team = teams[participant.team_id]
            planned.append((participant, team, self._validate(actor, request, participant, team)))

        # 4. Member writes
        now = self.clock.now()
        for participant, team, target in planned:
            await self.participants.update_status(participant.id, target)
            result.participant_statuses[participant.id] = target
            if target != WalkStatus.ABANDONED:
                self.teams.record_check_in(team, actor.waypoint, now)
        await self.db.flush()

        # 5. Aggregate recomputation on the flushed membership
        members = await self.participants.list_by_teams(sorted(teams), refresh=True)
        for team_id, team in sorted(teams.items()):
            result.team_statuses[team_id] = self.teams.apply_aggregate(
                team, [m.walk_status for m in members[team_id]]
            )

        logger.info(
            f"Admin {actor.account} applied {len(planned)} status change(s) "
            f"across {len(teams)} team(s)"
        )
        return result
