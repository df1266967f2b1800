"""
Route Topology Tests.

Tests for:
- Default route table
- Waypoint naming and the unknown-waypoint placeholder
- Topology construction errors
"""

import pytest

from app.core.exceptions import UnknownRoute
from app.services.route_topology import (
    DEFAULT_ROUTES,
    START_INDEX,
    UNKNOWN_WAYPOINT,
    Route,
    RouteTopology,
)


# ============== Default Routes Tests ==============

class TestDefaultRoutes:
    """Tests for the built-in route table."""

    def test_five_routes_in_id_order(self, topology):
        assert [r.route_id for r in topology.routes()] == [1, 2, 3, 4, 5]

    def test_start_and_finish_names(self, topology):
        for route in topology.routes():
            assert topology.waypoint_name(route.route_id, START_INDEX) == "起点"
            assert topology.waypoint_name(route.route_id, route.finish_index) == "终点"

    def test_route_one_waypoints(self, topology):
        assert topology.waypoint_count(1) == 8
        assert topology.finish_index(1) == 7
        assert topology.waypoint_name(1, 3) == "西湖文化广场"

    def test_route_without_intermediate_waypoints(self, topology):
        """Route 4 goes straight from start to finish."""
        assert topology.finish_index(4) == 1
        assert topology.waypoint_count(4) == 2

    def test_team_size_bounds_applied_to_every_route(self):
        topology = RouteTopology.default(min_team_size=3, max_team_size=5)
        assert {r.min_team_size for r in topology.routes()} == {3}
        assert {r.max_team_size for r in topology.routes()} == {5}

    def test_default_table_untouched_by_overrides(self):
        RouteTopology.default(min_team_size=2, max_team_size=3)
        assert all(r.min_team_size == 4 for r in DEFAULT_ROUTES)


# ============== Lookup Tests ==============

class TestLookups:
    """Tests for route and waypoint lookups."""

    @pytest.mark.parametrize("index", [-1, 8, 100])
    def test_out_of_range_waypoint_is_placeholder(self, topology, index):
        assert topology.waypoint_name(1, index) == UNKNOWN_WAYPOINT

    def test_unknown_route(self, topology):
        with pytest.raises(UnknownRoute) as exc_info:
            topology.route(99)
        assert exc_info.value.route_id == 99
        assert exc_info.value.status_code == 404

    def test_unknown_route_on_waypoint_name(self, topology):
        with pytest.raises(UnknownRoute):
            topology.waypoint_name(0, 0)


# ============== Construction Tests ==============

class TestConstruction:
    """Tests for building custom topologies."""

    def test_from_routes(self):
        topology = RouteTopology.from_routes(
            [Route(7, "test", ("start", "middle", "finish"), min_team_size=2)]
        )
        assert topology.route(7).min_team_size == 2
        assert topology.waypoint_name(7, 1) == "middle"

    def test_duplicate_route_ids_rejected(self):
        with pytest.raises(ValueError):
            RouteTopology.from_routes(
                [Route(1, "a", ("s", "f")), Route(1, "b", ("s", "f"))]
            )

    def test_route_needs_start_and_finish(self):
        with pytest.raises(ValueError):
            Route(1, "too short", ("s",))
