"""
Shared fixtures for the Walk Check-in backend tests.

Each test gets a fresh SQLite database (aiosqlite) in its tmp directory
and a clock pinned to a fixed instant.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.clock import FixedClock
from app.models import (
    Base,
    MemberRole,
    Participant,
    ParticipantType,
    RouteAdmin,
    Team,
    TeamStatus,
    WalkStatus,
)
from app.services.route_topology import RouteTopology

NOW = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'walk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def topology():
    return RouteTopology.default()


async def reload(session: AsyncSession, model, ident):
    """Fresh copy of a row, bypassing anything cached in the session."""
    return await session.get(model, ident, populate_existing=True)


async def seed_team(
    session: AsyncSession,
    prefix: str,
    size: int = 2,
    route_id: int = 1,
    status: TeamStatus = TeamStatus.ACTIVE,
    current_waypoint: int = 0,
    last_check_in_time: datetime | None = None,
    walk_status: WalkStatus = WalkStatus.IN_PROGRESS,
    types: list[ParticipantType] | None = None,
) -> tuple[int, list[str]]:
    """
    Insert a team with ``size`` members and commit.

    The first member (``{prefix}-0``) is the captain.

    Returns:
        (team id, member ids with the captain first)
    """
    member_ids = [f"{prefix}-{i}" for i in range(size)]
    team = Team(
        name=f"Team {prefix}",
        route_id=route_id,
        member_count=size,
        current_waypoint=current_waypoint,
        status=status,
        last_check_in_time=last_check_in_time,
        captain_id=member_ids[0],
    )
    session.add(team)
    await session.flush()

    for i, member_id in enumerate(member_ids):
        session.add(
            Participant(
                id=member_id,
                name=f"Walker {member_id}",
                team_id=team.id,
                role=MemberRole.CAPTAIN if i == 0 else MemberRole.MEMBER,
                type=types[i] if types else ParticipantType.STUDENT,
                walk_status=walk_status,
            )
        )
    await session.commit()
    return team.id, member_ids


async def seed_admin(
    session: AsyncSession,
    account: str = "admin-r1",
    route_id: int | None = 1,
    waypoint: int | None = 3,
    password_hash: str = "not-a-real-hash",
) -> RouteAdmin:
    admin = RouteAdmin(
        account=account,
        name=f"Volunteer {account}",
        password_hash=password_hash,
        route_id=route_id,
        waypoint=waypoint,
    )
    session.add(admin)
    await session.commit()
    return admin


@pytest.fixture
def make_team(session):
    async def _make(prefix: str, **kwargs) -> tuple[int, list[str]]:
        return await seed_team(session, prefix, **kwargs)

    return _make


@pytest.fixture
def make_admin(session):
    async def _make(**kwargs) -> RouteAdmin:
        return await seed_admin(session, **kwargs)

    return _make


@pytest.fixture
def fetch(session):
    async def _fetch(model, ident):
        return await reload(session, model, ident)

    return _fetch
