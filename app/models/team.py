"""
Team model for the Walk Check-in service.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Integer, SmallInteger, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.participant import Participant


class TeamStatus(str, Enum):
    """Aggregate status derived from the team's members."""

    FORMED = "formed"
    ACTIVE = "active"
    FINISHED = "finished"

    def can_transition_to(self, target: "TeamStatus") -> bool:
        return target == self or target in TEAM_TRANSITIONS[self]


TEAM_TRANSITIONS: dict[TeamStatus, frozenset[TeamStatus]] = {
    TeamStatus.FORMED: frozenset({TeamStatus.ACTIVE, TeamStatus.FINISHED}),
    TeamStatus.ACTIVE: frozenset({TeamStatus.FINISHED}),
    # Re-opened when a member's abandonment is corrected.
    TeamStatus.FINISHED: frozenset({TeamStatus.ACTIVE}),
}


class Team(Base):
    """A walking team registered on one route."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slogan: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Route progress
    route_id: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        index=True,
    )
    current_waypoint: Mapped[int] = mapped_column(
        SmallInteger,
        default=0,
        nullable=False,
        comment="Highest waypoint index reached, 0 is the start",
    )
    status: Mapped[TeamStatus] = mapped_column(
        SAEnum(TeamStatus, native_enum=False, length=20),
        default=TeamStatus.FORMED,
        nullable=False,
    )
    last_check_in_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Null until the team produces its first check-in",
    )

    # Membership
    member_count: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    captain_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    allow_match: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Relationships
    members: Mapped[list["Participant"]] = relationship(
        "Participant",
        back_populates="team",
        foreign_keys="Participant.team_id",
    )

    # Indexes
    __table_args__ = (
        Index("ix_teams_route_status", "route_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Team(id={self.id}, route_id={self.route_id}, "
            f"waypoint={self.current_waypoint}, status={self.status})>"
        )
