"""
Route-scoped authorization for route administrators.
"""

import logging

from app.models.admin import RouteAdmin
from app.models.team import Team

logger = logging.getLogger(__name__)


class RouteAccessPolicy:
    """An admin may act on teams of their own route; route-less admins act on all routes."""

    def check_route_authority(self, actor: RouteAdmin, team: Team) -> bool:
        if actor.route_id is None:
            return True
        allowed = actor.route_id == team.route_id
        if not allowed:
            logger.warning(
                f"Admin {actor.account} (route {actor.route_id}) denied on team {team.id} "
                f"(route {team.route_id})"
            )
        return allowed

    def check_route_scope(self, actor: RouteAdmin, route_id: int) -> bool:
        """Whether the actor may read monitoring data for a whole route."""
        return actor.route_id is None or actor.route_id == route_id
