"""
Participant State Service for the Walk Check-in service.

Point lookups and status writes for participants. Writes here never
recompute team aggregates; that belongs to the check-in engine.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ParticipantNotFound
from app.models.participant import Participant, WalkStatus


class ParticipantState:
    """Participant store operations bound to one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, participant_id: str, refresh: bool = False) -> Participant:
        participant = await self.db.get(Participant, participant_id, populate_existing=refresh)
        if participant is None:
            raise ParticipantNotFound(participant_id)
        return participant

    async def get_many(
        self, participant_ids: list[str], refresh: bool = False
    ) -> dict[str, Participant]:
        """
        Fetch several participants with a single query.

        Args:
            participant_ids: Ids in request order, duplicates allowed
            refresh: Overwrite rows already loaded in this session with
                the stored values

        Returns:
            Mapping of id to Participant

        Raises:
            ParticipantNotFound: for the first requested id that is absent
        """
        unique_ids = list(dict.fromkeys(participant_ids))
        if not unique_ids:
            return {}

        stmt = select(Participant).where(Participant.id.in_(unique_ids))
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        found = {p.id: p for p in result.scalars().all()}

        for participant_id in unique_ids:
            if participant_id not in found:
                raise ParticipantNotFound(participant_id)
        return found

    async def update_status(self, participant_id: str, new_status: WalkStatus) -> Participant:
        participant = await self.get(participant_id)
        participant.walk_status = new_status
        return participant

    async def list_by_team(self, team_id: int) -> list[Participant]:
        result = await self.db.execute(
            select(Participant).where(Participant.team_id == team_id)
        )
        return list(result.scalars().all())

    async def list_by_teams(
        self, team_ids: list[int], refresh: bool = False
    ) -> dict[int, list[Participant]]:
        """Members of several teams, keyed by team id (teams without members map to [])."""
        members: dict[int, list[Participant]] = {team_id: [] for team_id in team_ids}
        if not team_ids:
            return members

        stmt = (
            select(Participant)
            .where(Participant.team_id.in_(team_ids))
            .order_by(Participant.team_id, Participant.id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        for participant in result.scalars().all():
            members[participant.team_id].append(participant)
        return members
