"""
Participant model for the Walk Check-in service.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.team import Team


class ParticipantType(str, Enum):
    """Who the walker is."""

    STUDENT = "student"
    STAFF = "staff"
    ALUMNUS = "alumnus"


class MemberRole(str, Enum):
    """Position of a participant inside their team."""

    UNASSIGNED = "unassigned"
    MEMBER = "member"
    CAPTAIN = "captain"


class WalkStatus(str, Enum):
    """Progress of a single walker along the route."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    CHECKED_IN = "checked_in"
    ABANDONED = "abandoned"
    FINISHED = "finished"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_WALK_STATUSES

    def can_transition_to(self, target: "WalkStatus") -> bool:
        return target in WALK_TRANSITIONS[self]


TERMINAL_WALK_STATUSES = frozenset({WalkStatus.ABANDONED, WalkStatus.FINISHED})

# Statuses a route admin may request; both are written as requested.
ADMIN_SETTABLE_STATUSES = frozenset({WalkStatus.CHECKED_IN, WalkStatus.ABANDONED})

WALK_TRANSITIONS: dict[WalkStatus, frozenset[WalkStatus]] = {
    WalkStatus.NOT_STARTED: frozenset(
        {WalkStatus.IN_PROGRESS, WalkStatus.CHECKED_IN, WalkStatus.ABANDONED, WalkStatus.FINISHED}
    ),
    WalkStatus.IN_PROGRESS: frozenset(
        {WalkStatus.IN_PROGRESS, WalkStatus.CHECKED_IN, WalkStatus.ABANDONED, WalkStatus.FINISHED}
    ),
    WalkStatus.CHECKED_IN: frozenset(
        {WalkStatus.IN_PROGRESS, WalkStatus.CHECKED_IN, WalkStatus.ABANDONED, WalkStatus.FINISHED}
    ),
    # An abandonment entered by mistake can be undone by scanning the walker again.
    WalkStatus.ABANDONED: frozenset(
        {WalkStatus.IN_PROGRESS, WalkStatus.CHECKED_IN, WalkStatus.ABANDONED, WalkStatus.FINISHED}
    ),
    WalkStatus.FINISHED: frozenset(),
}


class Participant(Base):
    """A registered walker."""

    __tablename__ = "participants"

    # Identity
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Team Relationship (None means unassigned)
    team_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    role: Mapped[MemberRole] = mapped_column(
        SAEnum(MemberRole, native_enum=False, length=20),
        default=MemberRole.UNASSIGNED,
        nullable=False,
    )

    # Walk progress
    type: Mapped[ParticipantType] = mapped_column(
        SAEnum(ParticipantType, native_enum=False, length=20),
        default=ParticipantType.STUDENT,
        nullable=False,
    )
    walk_status: Mapped[WalkStatus] = mapped_column(
        SAEnum(WalkStatus, native_enum=False, length=20),
        default=WalkStatus.NOT_STARTED,
        nullable=False,
        index=True,
    )

    # Profile
    gender: Mapped[int] = mapped_column(
        SmallInteger,
        default=0,
        nullable=False,
        comment="0 unknown, 1 male, 2 female",
    )
    student_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    tel: Mapped[str | None] = mapped_column(String(20), nullable=True)
    campus: Mapped[str | None] = mapped_column(String(20), nullable=True)
    college: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    team: Mapped["Team | None"] = relationship(
        "Team",
        back_populates="members",
        foreign_keys=[team_id],
    )

    def __repr__(self) -> str:
        return (
            f"<Participant(id={self.id}, team_id={self.team_id}, "
            f"role={self.role}, walk_status={self.walk_status})>"
        )
