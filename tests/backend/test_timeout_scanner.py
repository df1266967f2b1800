"""
Timeout Scanner Tests.

Tests for:
- Timed-out team detection against a pinned clock
- No-show detection
- Operator report layout and filtering
"""

from datetime import timedelta

import pytest

from app.core.exceptions import UnknownRoute
from app.models import ParticipantType, TeamStatus, WalkStatus
from app.services.timeout_scanner import NOT_ARRIVED, NOT_ARRIVED_LABEL, TimeoutScanner


@pytest.fixture
def scanner(session, topology, clock):
    return TimeoutScanner(session, topology, clock)


@pytest.fixture
async def route_one(make_team, clock):
    """
    A spread of teams on route 1 (plus one on route 2).

    Returns a name -> team id mapping.
    """
    now = clock.now()
    teams = {}
    teams["stale"], _ = await make_team("stale", current_waypoint=3, last_check_in_time=now - timedelta(minutes=45))
    teams["recent"], _ = await make_team("recent", current_waypoint=3, last_check_in_time=now - timedelta(minutes=10))
    teams["stale_early"], _ = await make_team("early", current_waypoint=1, last_check_in_time=now - timedelta(hours=2))
    teams["finished"], _ = await make_team(
        "done",
        current_waypoint=7,
        status=TeamStatus.FINISHED,
        walk_status=WalkStatus.FINISHED,
        last_check_in_time=now - timedelta(hours=3),
    )
    teams["no_show"], _ = await make_team(
        "absent", status=TeamStatus.FORMED, walk_status=WalkStatus.NOT_STARTED
    )
    teams["other_route"], _ = await make_team(
        "elsewhere", route_id=2, current_waypoint=2, last_check_in_time=now - timedelta(hours=1)
    )
    return teams


# ============== Timeout Tests ==============

class TestTimeoutTeams:
    """Tests for TimeoutScanner.timeout_teams."""

    @pytest.mark.asyncio
    async def test_threshold(self, scanner, route_one):
        grouped = await scanner.timeout_teams(30, 1)

        assert list(grouped) == [1, 3]
        assert [t.id for t in grouped[1]] == [route_one["stale_early"]]
        assert [t.id for t in grouped[3]] == [route_one["stale"]]

    @pytest.mark.asyncio
    async def test_longer_threshold(self, scanner, route_one):
        grouped = await scanner.timeout_teams(60, 1)
        assert {t.id for teams in grouped.values() for t in teams} == {route_one["stale_early"]}

    @pytest.mark.asyncio
    async def test_clock_advancing_times_out_more_teams(self, scanner, route_one, clock):
        clock.advance(minutes=25)

        grouped = await scanner.timeout_teams(30, 1)

        assert [t.id for t in grouped[3]] == sorted([route_one["stale"], route_one["recent"]])

    @pytest.mark.asyncio
    async def test_finished_and_no_show_excluded(self, scanner, route_one):
        grouped = await scanner.timeout_teams(1, 1)
        ids = {t.id for teams in grouped.values() for t in teams}

        assert route_one["finished"] not in ids
        assert route_one["no_show"] not in ids
        assert route_one["other_route"] not in ids

    @pytest.mark.asyncio
    async def test_idempotent(self, scanner, route_one):
        first = await scanner.timeout_teams(30, 1)
        second = await scanner.timeout_teams(30, 1)

        assert {k: [t.id for t in v] for k, v in first.items()} == {
            k: [t.id for t in v] for k, v in second.items()
        }

    @pytest.mark.asyncio
    async def test_unknown_route(self, scanner):
        with pytest.raises(UnknownRoute):
            await scanner.timeout_teams(30, 42)


# ============== No-show Tests ==============

class TestNoShowTeams:
    """Tests for TimeoutScanner.no_show_teams."""

    @pytest.mark.asyncio
    async def test_only_teams_never_checked_in(self, scanner, route_one):
        teams = await scanner.no_show_teams(1)
        assert [t.id for t in teams] == [route_one["no_show"]]

    @pytest.mark.asyncio
    async def test_active_team_without_check_in_is_no_show(self, scanner, make_team):
        team_id, _ = await make_team("quiet", status=TeamStatus.ACTIVE)
        assert [t.id for t in await scanner.no_show_teams(1)] == [team_id]

    @pytest.mark.asyncio
    async def test_fully_abandoned_team_is_not_no_show(self, scanner, make_team):
        await make_team("gone", status=TeamStatus.FINISHED, walk_status=WalkStatus.ABANDONED)
        assert await scanner.no_show_teams(1) == []


# ============== Report Tests ==============

class TestBuildReport:
    """Tests for the operator report."""

    @pytest.mark.asyncio
    async def test_not_arrived_bucket_first(self, scanner, route_one):
        report = await scanner.build_report(30, 1)

        assert [bucket.waypoint for bucket in report] == [NOT_ARRIVED, 1, 3]
        assert report[0].location == NOT_ARRIVED_LABEL
        assert report[1].location == "上塘映翠"
        assert report[2].location == "西湖文化广场"

    @pytest.mark.asyncio
    async def test_entries_list_every_walker_captain_first(self, scanner, route_one):
        report = await scanner.build_report(30, 1)

        stale = report[2].entries
        assert [e.participant_id for e in stale] == ["stale-0", "stale-1"]
        assert all(e.team_id == route_one["stale"] for e in stale)
        assert [e.participant_id for e in report[0].entries] == ["absent-0", "absent-1"]

    @pytest.mark.asyncio
    async def test_empty_route_still_has_not_arrived_bucket(self, scanner):
        report = await scanner.build_report(30, 4)

        assert len(report) == 1
        assert report[0].to_dict() == {"point": NOT_ARRIVED, "location": NOT_ARRIVED_LABEL, "users": []}

    @pytest.mark.asyncio
    async def test_filter_by_participant_type(self, scanner, make_team, clock):
        await make_team(
            "mixed",
            size=3,
            current_waypoint=2,
            last_check_in_time=clock.now() - timedelta(minutes=40),
            types=[ParticipantType.STUDENT, ParticipantType.STAFF, ParticipantType.STUDENT],
        )

        report = await scanner.build_report(30, 1, ParticipantType.STAFF)

        assert [e.participant_id for e in report[1].entries] == ["mixed-1"]

    @pytest.mark.asyncio
    async def test_entry_serialization(self, scanner, route_one):
        report = await scanner.build_report(30, 1)
        entry = report[2].to_dict()["users"][0]

        assert entry["participant_id"] == "stale-0"
        assert entry["role"] == "captain"
        assert entry["type"] == "student"
        assert entry["walk_status"] == "in_progress"
        assert entry["location"] == "西湖文化广场"
        assert entry["waypoint"] == 3
        assert entry["last_check_in_time"] is not None

    @pytest.mark.asyncio
    async def test_report_does_not_write(self, session, scanner, route_one):
        await scanner.build_report(30, 1)
        assert not session.dirty
        assert not session.new
