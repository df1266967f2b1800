"""
Route administrator model for the Walk Check-in service.
"""

from sqlalchemy import Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class RouteAdmin(Base):
    """Volunteer stationed on a route, usually at one waypoint."""

    __tablename__ = "route_admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Authentication & Identity
    account: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Scope
    route_id: Mapped[int | None] = mapped_column(
        SmallInteger,
        nullable=True,
        comment="Null for administrators of every route",
    )
    waypoint: Mapped[int | None] = mapped_column(
        SmallInteger,
        nullable=True,
        comment="Waypoint index the admin scans at, null when roaming",
    )

    def __repr__(self) -> str:
        return (
            f"<RouteAdmin(id={self.id}, account={self.account}, "
            f"route_id={self.route_id}, waypoint={self.waypoint})>"
        )
