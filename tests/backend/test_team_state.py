"""
Team State Tests.

Tests for:
- Aggregate status derivation
- Check-in bookkeeping on a team
- Row lookups and locking
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import TeamNotFound
from app.models import Team, TeamStatus, WalkStatus
from app.services.participant_state import ParticipantState
from app.services.team_state import TeamState, derive_team_status

AT = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


# ============== Aggregate Derivation Tests ==============

class TestDeriveTeamStatus:
    """Tests for the member -> team status rule."""

    @pytest.mark.parametrize(
        "statuses",
        [
            [WalkStatus.FINISHED, WalkStatus.FINISHED],
            [WalkStatus.ABANDONED, WalkStatus.ABANDONED],
            [WalkStatus.FINISHED, WalkStatus.ABANDONED],
        ],
    )
    def test_all_terminal_is_finished(self, statuses):
        assert derive_team_status(TeamStatus.ACTIVE, statuses) == TeamStatus.FINISHED

    def test_one_walker_keeps_team_active(self):
        statuses = [WalkStatus.FINISHED, WalkStatus.ABANDONED, WalkStatus.CHECKED_IN]
        assert derive_team_status(TeamStatus.ACTIVE, statuses) == TeamStatus.ACTIVE

    def test_finished_team_reopens(self):
        statuses = [WalkStatus.ABANDONED, WalkStatus.CHECKED_IN]
        assert derive_team_status(TeamStatus.FINISHED, statuses) == TeamStatus.ACTIVE

    def test_walking_member_activates_formed_team(self):
        statuses = [WalkStatus.NOT_STARTED, WalkStatus.IN_PROGRESS]
        assert derive_team_status(TeamStatus.FORMED, statuses) == TeamStatus.ACTIVE

    def test_nobody_started_keeps_current(self):
        statuses = [WalkStatus.NOT_STARTED, WalkStatus.NOT_STARTED]
        assert derive_team_status(TeamStatus.FORMED, statuses) == TeamStatus.FORMED

    def test_no_members_keeps_current(self):
        assert derive_team_status(TeamStatus.ACTIVE, []) == TeamStatus.ACTIVE
        assert derive_team_status(TeamStatus.FINISHED, []) == TeamStatus.FINISHED


# ============== Check-in Bookkeeping Tests ==============

class TestRecordCheckIn:
    """Tests for TeamState.record_check_in (no database needed)."""

    def _team(self, **kwargs) -> Team:
        defaults = dict(
            name="t", route_id=1, current_waypoint=0,
            status=TeamStatus.ACTIVE, member_count=4, captain_id="c",
        )
        defaults.update(kwargs)
        return Team(**defaults)

    def test_advances_waypoint_and_time(self):
        team = self._team(current_waypoint=2)
        TeamState(None).record_check_in(team, 4, AT)
        assert team.current_waypoint == 4
        assert team.last_check_in_time == AT

    def test_waypoint_never_moves_backwards(self):
        team = self._team(current_waypoint=5, last_check_in_time=AT - timedelta(hours=1))
        TeamState(None).record_check_in(team, 3, AT)
        assert team.current_waypoint == 5
        assert team.last_check_in_time == AT

    def test_first_check_in_activates_formed_team(self):
        team = self._team(status=TeamStatus.FORMED)
        TeamState(None).record_check_in(team, 0, AT)
        assert team.status == TeamStatus.ACTIVE

    def test_roaming_check_in_stamps_time_only(self):
        team = self._team(status=TeamStatus.FORMED, current_waypoint=2)
        TeamState(None).record_check_in(team, None, AT)
        assert team.current_waypoint == 2
        assert team.last_check_in_time == AT
        assert team.status == TeamStatus.ACTIVE

    def test_finished_status_untouched(self):
        team = self._team(status=TeamStatus.FINISHED)
        TeamState(None).record_check_in(team, 7, AT)
        assert team.status == TeamStatus.FINISHED


class TestApplyAggregate:
    """Tests for TeamState.apply_aggregate."""

    def test_writes_derived_status(self):
        team = Team(name="t", route_id=1, status=TeamStatus.ACTIVE, member_count=2, captain_id="c")
        status = TeamState(None).apply_aggregate(team, [WalkStatus.FINISHED, WalkStatus.ABANDONED])
        assert status == TeamStatus.FINISHED
        assert team.status == TeamStatus.FINISHED

    def test_team_never_returns_to_formed(self):
        assert not TeamStatus.FINISHED.can_transition_to(TeamStatus.FORMED)
        assert not TeamStatus.ACTIVE.can_transition_to(TeamStatus.FORMED)

    def test_formed_to_finished_when_everyone_abandons(self):
        team = Team(name="t", route_id=1, status=TeamStatus.FORMED, member_count=2, captain_id="c")
        assert TeamState(None).apply_aggregate(team, [WalkStatus.ABANDONED]) == TeamStatus.FINISHED


# ============== Store Tests ==============

class TestTeamStore:
    """Tests for team lookups against the database."""

    @pytest.mark.asyncio
    async def test_get_missing_team(self, session):
        with pytest.raises(TeamNotFound):
            await TeamState(session).get(404)

    @pytest.mark.asyncio
    async def test_lock_returns_all_requested(self, session, make_team):
        first, _ = await make_team("a")
        second, _ = await make_team("b")

        teams = await TeamState(session).lock([second, first, second])

        assert sorted(teams) == [first, second]

    @pytest.mark.asyncio
    async def test_lock_reports_missing_team(self, session, make_team):
        team_id, _ = await make_team("a")

        with pytest.raises(TeamNotFound) as exc_info:
            await TeamState(session).lock([team_id, 999])
        assert exc_info.value.team_id == 999

    @pytest.mark.asyncio
    async def test_list_by_route(self, session, make_team):
        on_route, _ = await make_team("a", route_id=2)
        await make_team("b", route_id=3)

        teams = await TeamState(session).list_by_route(2)

        assert [t.id for t in teams] == [on_route]

    @pytest.mark.asyncio
    async def test_list_by_teams_includes_empty_teams(self, session, make_team):
        team_id, member_ids = await make_team("a", size=3)

        members = await ParticipantState(session).list_by_teams([team_id, 12345])

        assert [m.id for m in members[team_id]] == member_ids
        assert members[12345] == []
