"""
Notification model for the Walk Check-in service.

Stores messages addressed to participants: team membership changes and
operator alerts.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.participant import Participant


class NotificationType(str, Enum):
    """Notification type enumeration."""

    INFO = "info"
    TEAM = "team"
    ALERT = "alert"


class Notification(Base):
    """A message delivered to one participant."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign key to participant
    recipient_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Notification content
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    notification_type: Mapped[str] = mapped_column(
        String(20),
        default=NotificationType.INFO.value,
        nullable=False,
        comment="info, team, or alert",
    )

    # Read status
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Optional: related team
    related_team_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    # Relationships
    recipient: Mapped["Participant"] = relationship(
        "Participant",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, recipient_id={self.recipient_id}, "
            f"type={self.notification_type}, is_read={self.is_read})>"
        )
