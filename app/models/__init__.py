"""
Walk Check-in Models Package

All SQLAlchemy models for the Walk Check-in service.
"""

from app.models.admin import RouteAdmin
from app.models.base import Base
from app.models.notification import Notification, NotificationType
from app.models.participant import (
    ADMIN_SETTABLE_STATUSES,
    MemberRole,
    Participant,
    ParticipantType,
    WalkStatus,
)
from app.models.team import Team, TeamStatus

__all__ = [
    # Base
    "Base",
    # Participants & Teams
    "Participant",
    "ParticipantType",
    "MemberRole",
    "WalkStatus",
    "ADMIN_SETTABLE_STATUSES",
    "Team",
    "TeamStatus",
    # Operators
    "RouteAdmin",
    # Notifications
    "Notification",
    "NotificationType",
]
