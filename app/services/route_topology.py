"""
Route topology for the Walk Check-in service.

Static definition of every route and its ordered waypoints. Index 0 is
the start and the last index is the finish; neither counts as an
arrival. One `RouteTopology` is built at startup and shared read-only.
"""

from dataclasses import dataclass, field
from functools import lru_cache

from app.core.config import get_settings
from app.core.exceptions import UnknownRoute

START_INDEX = 0
UNKNOWN_WAYPOINT = "未知点位"


@dataclass(frozen=True)
class Route:
    """One route and its waypoint names in walking order."""

    route_id: int
    name: str
    waypoints: tuple[str, ...]
    min_team_size: int = 4
    max_team_size: int = 6

    def __post_init__(self):
        if len(self.waypoints) < 2:
            raise ValueError(f"Route {self.route_id} needs at least a start and a finish")

    @property
    def finish_index(self) -> int:
        return len(self.waypoints) - 1

    def waypoint_name(self, index: int) -> str:
        if START_INDEX <= index <= self.finish_index:
            return self.waypoints[index]
        return UNKNOWN_WAYPOINT


DEFAULT_ROUTES: tuple[Route, ...] = (
    Route(
        route_id=1,
        name="朝晖",
        waypoints=(
            "起点", "上塘映翠", "京杭大运河", "西湖文化广场",
            "中国海事", "忠亭", "德胜运河驿站", "终点",
        ),
    ),
    Route(
        route_id=2,
        name="屏峰半程",
        waypoints=("起点", "金莲寺", "老焦山", "屏峰山", "屏峰善院", "终点"),
    ),
    Route(
        route_id=3,
        name="屏峰全程",
        waypoints=(
            "起点", "金莲寺", "白龙潭", "慈母桥",
            "元帅亭", "屏峰山", "屏峰善院", "终点",
        ),
    ),
    Route(
        route_id=4,
        name="莫干山半程",
        waypoints=("起点", "终点"),
    ),
    Route(
        route_id=5,
        name="莫干山全程",
        waypoints=(
            "起点", "石山古寺", "下渚湖", "观景塔",
            "科普馆", "下渚湖", "天安云谷", "终点",
        ),
    ),
)


@dataclass(frozen=True)
class RouteTopology:
    """Lookup of routes by id."""

    _routes: dict[int, Route] = field(default_factory=dict)

    @classmethod
    def from_routes(cls, routes: "tuple[Route, ...] | list[Route]") -> "RouteTopology":
        table: dict[int, Route] = {}
        for route in routes:
            if route.route_id in table:
                raise ValueError(f"Duplicate route id {route.route_id}")
            table[route.route_id] = route
        return cls(table)

    @classmethod
    def default(cls, min_team_size: int = 4, max_team_size: int = 6) -> "RouteTopology":
        return cls.from_routes(
            [
                Route(r.route_id, r.name, r.waypoints, min_team_size, max_team_size)
                for r in DEFAULT_ROUTES
            ]
        )

    def route(self, route_id: int) -> Route:
        try:
            return self._routes[route_id]
        except KeyError:
            raise UnknownRoute(route_id) from None

    def routes(self) -> list[Route]:
        return [self._routes[k] for k in sorted(self._routes)]

    def waypoint_name(self, route_id: int, index: int) -> str:
        """
        Name of a waypoint.

        Raises UnknownRoute for an unconfigured route. An out-of-range
        index yields the UNKNOWN_WAYPOINT placeholder instead of failing.
        """
        return self.route(route_id).waypoint_name(index)

    def waypoint_count(self, route_id: int) -> int:
        return len(self.route(route_id).waypoints)

    def finish_index(self, route_id: int) -> int:
        return self.route(route_id).finish_index


@lru_cache
def get_route_topology() -> RouteTopology:
    """Process-wide topology built from settings."""
    settings = get_settings()
    return RouteTopology.default(settings.team_min_size, settings.team_max_size)
