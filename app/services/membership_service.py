"""
Membership Service for the Walk Check-in service.

Captain-initiated removal of a team member. The team-size change and the
member's unassignment commit together; the two notifications go out only
after the commit and cannot undo it.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transactional
from app.core.exceptions import (
    BelowMinimum,
    CrossTeamRemoval,
    InvalidTransition,
    NotCaptain,
)
from app.models.participant import MemberRole, Participant
from app.models.team import Team
from app.services.matching_registry import MatchingRegistry
from app.services.notification_manager import NotificationManager
from app.services.participant_state import ParticipantState
from app.services.route_topology import RouteTopology
from app.services.team_state import TeamState

logger = logging.getLogger(__name__)


@dataclass
class RemovalOutcome:
    team: Team
    captain: Participant
    removed: Participant


class MembershipService:
    """Service for team membership changes."""

    def __init__(
        self,
        db: AsyncSession,
        topology: RouteTopology,
        registry: MatchingRegistry,
        notifier: NotificationManager | None = None,
        enforce_min_size_before_submit: bool = False,
    ):
        self.db = db
        self.topology = topology
        self.registry = registry
        self.notifier = notifier
        self.enforce_min_size_before_submit = enforce_min_size_before_submit
        self.participants = ParticipantState(db)
        self.teams = TeamState(db)

    async def remove_member(self, actor_id: str, target_id: str) -> RemovalOutcome:
        """
        Remove ``target_id`` from the team captained by ``actor_id``.

        The matching registry is consulted before the team row is locked,
        so a slow or failing Redis never holds the lock.

        Raises:
            NotCaptain: actor is not a captain
            BelowMinimum: the team may not shrink any further
            ParticipantNotFound: target does not exist
            CrossTeamRemoval: target is in another team
            InvalidTransition: captain tried to remove themselves, or
                changed team while the removal was in flight
            StoreError: the store or the registry failed; nothing changed
        """
        team_id = await self._captain_team_id(actor_id)
        protected = await self._is_size_protected(team_id)
        outcome = await self._remove_member(actor_id, target_id, team_id, protected)

        if self.notifier:
            await self.notifier.send(
                f"你被团队{outcome.team.name}踢出",
                outcome.removed.id,
                related_team_id=outcome.team.id,
            )
            await self.notifier.send(
                f"你踢出了成员{outcome.removed.name}",
                outcome.captain.id,
                related_team_id=outcome.team.id,
            )

        return outcome

    @transactional
    async def _captain_team_id(self, actor_id: str) -> int:
        actor = await self.participants.get(actor_id)
        self._check_captain(actor)
        return actor.team_id

    @staticmethod
    def _check_captain(actor: Participant) -> None:
        if actor.role == MemberRole.UNASSIGNED or actor.team_id is None:
            raise NotCaptain("Join a team first")
        if actor.role != MemberRole.CAPTAIN:
            raise NotCaptain("Only the captain can remove members")

    async def _is_size_protected(self, team_id: int) -> bool:
        if self.enforce_min_size_before_submit:
            return True
        return await self.registry.is_submitted(team_id)

    @transactional
    async def _remove_member(
        self, actor_id: str, target_id: str, team_id: int, protected: bool
    ) -> RemovalOutcome:
        # 1. Actor must still captain the same team
        actor = await self.participants.get(actor_id, refresh=True)
        self._check_captain(actor)
        if actor.team_id != team_id:
            raise InvalidTransition("Your team changed during the removal; retry")

        # 2. Team size floor
        team = await self.teams.get_for_update(team_id)
        min_size = self.topology.route(team.route_id).min_team_size
        if protected and team.member_count <= min_size:
            logger.warning(
                f"Captain {actor_id} blocked from shrinking team {team.id} "
                f"below {min_size} members"
            )
            raise BelowMinimum(f"Team size cannot drop below {min_size}")

        # 3. Target must share the team
        target = await self.participants.get(target_id, refresh=True)
        if target.team_id != actor.team_id:
            raise CrossTeamRemoval("Cannot remove a member of another team")
        if target.id == actor.id:
            raise InvalidTransition("The captain cannot remove themselves")

        # 4. Mutation
        team.member_count -= 1
        target.team_id = None
        target.role = MemberRole.UNASSIGNED

        logger.info(
            f"Captain {actor_id} removed {target_id} from team {team.id}; "
            f"{team.member_count} member(s) left"
        )
        return RemovalOutcome(team=team, captain=actor, removed=target)
