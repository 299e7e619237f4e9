import pytest

from av_sim.domain.entities.geography import Coordinate, Node, Road
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_routers import (
    GroundTruthRouter,
    MismatchedUnitRouter,
    shortest_hops,
)


def test_ground_truth_route_in_km(line_net):
    net, a, _, c, _ = line_net
    route = GroundTruthRouter(net).navigate(a, c)
    assert [r.speed_limit for r in route] == [50, 60]
    assert [(r.from_id, r.to_id) for r in route] == [("A", "B"), ("B", "C")]
    assert sum(r.distance for r in route) == pytest.approx(20.0, abs=1e-6)
    assert all(r.bearing == pytest.approx(90.0, abs=1e-6) for r in route)


def test_mismatched_route_truncates_limits(line_net):
    net, a, _, c, _ = line_net
    route = MismatchedUnitRouter(net).navigate(a, c)
    assert [r.speed_limit for r in route] == [31, 37]
    assert route[0].distance == pytest.approx(6.2137, abs=1e-4)
    assert route[0].bearing == pytest.approx(90.0, abs=1e-6)


def test_unreachable_and_trivial_routes(line_net):
    net, a, _, _, d = line_net
    for router in (GroundTruthRouter(net), MismatchedUnitRouter(net)):
        assert router.navigate(a, d) is None
        assert router.navigate(a, a) == []


def test_unknown_node_raises(line_net):
    net, a, _, _, _ = line_net
    stranger = Node("Z", "Zulu", Coordinate(3.0, 3.0))
    with pytest.raises(ValueError):
        GroundTruthRouter(net).navigate(a, stranger)
    with pytest.raises(ValueError):
        shortest_hops(net, stranger, a)


def test_directed_edges_are_one_way():
    a = Node("A", "Alpha", Coordinate(0.0, 0.0))
    b = Node("B", "Bravo", Coordinate(0.1, 0.0))
    net = RoadNetwork()
    net.add_node(a)
    net.add_node(b)
    net.add_connection(a, b, 80)
    router = GroundTruthRouter(net)
    assert len(router.navigate(a, b)) == 1
    assert router.navigate(b, a) is None


def test_shorter_detour_beats_fewer_hops():
    # A -> C direct is longer than A -> B -> C
    a = Node("A", "Alpha", Coordinate(0.0, 0.0))
    b = Node("B", "Bravo", Coordinate(0.05, 0.0))
    c = Node("C", "Charlie", Coordinate(0.1, 0.0))
    far = Node("F", "Far", Coordinate(0.05, 0.5))
    net = RoadNetwork()
    for n in (a, b, c, far):
        net.add_node(n)
    net.add_bidirectional_connection(a, far, 130)
    net.add_bidirectional_connection(far, c, 130)
    net.add_bidirectional_connection(a, b, 30)
    net.add_bidirectional_connection(b, c, 30)
    hops = shortest_hops(net, a, c)
    assert [(x.id, y.id, lim) for x, y, lim in hops] == [("A", "B", 30), ("B", "C", 30)]


def test_corrections_are_plain_differences(line_net):
    router = GroundTruthRouter(line_net[0])
    road = Road(distance=5.0, bearing=10.0, speed_limit=80)
    assert router.speed_correction(road, 50.0) == 30.0
    assert router.speed_correction(road, 95.0) == -15.0
    assert router.bearing_correction(road, 350.0) == -340.0
    assert (350.0 + router.bearing_correction(road, 350.0)) % 360.0 == 10.0
    assert router.segment_distance(road) == 5.0


def test_find_path_lists_nodes(line_net):
    net, a, b, c, d = line_net
    router = GroundTruthRouter(net)
    assert router.find_path(a, c) == [a, b, c]
    assert router.find_path(c, a) == [c, b, a]
    assert router.find_path(b, b) == [b]
    assert router.find_path(a, d) is None
