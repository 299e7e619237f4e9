import pytest

from av_sim.domain.entities.geography import Coordinate, Node
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_geodesy import distance_km


def _node(i: int, lon: float = 0.0, lat: float = 0.0) -> Node:
    return Node(f"N{i}", f"Node {i}", Coordinate(lon, lat))


@pytest.fixture
def trio():
    a, b, c = _node(1, 0.0, 0.0), _node(2, 0.1, 0.0), _node(3, 0.2, 0.0)
    net = RoadNetwork()
    for n in (a, b, c):
        net.add_node(n)
    return net, a, b, c


def test_add_node_is_idempotent_by_id(trio):
    net, a, _, _ = trio
    net.add_node(Node(a.id, "elsewhere", Coordinate(9.0, 9.0)))
    assert len(net) == 3
    assert net.get_node(a.id).name == a.name
    assert [n.id for n in net.nodes] == ["N1", "N2", "N3"]


def test_connection_needs_both_nodes(trio):
    net, a, _, _ = trio
    with pytest.raises(ValueError):
        net.add_connection(a, _node(99), 50)
    with pytest.raises(ValueError):
        net.add_connection(_node(99), a, 50)
    assert net.edge_count == 0


def test_connection_caches_distance_and_limit(trio):
    net, a, b, _ = trio
    conn = net.add_connection(a, b, 80)
    assert conn.source_id == a.id
    assert conn.destination == b
    assert conn.distance_km == pytest.approx(distance_km(a.coordinate, b.coordinate))
    assert conn.speed_limit == 80
    # directed
    assert net.connections(b) == ()


def test_bidirectional_adds_both_directions(trio):
    net, a, b, _ = trio
    net.add_bidirectional_connection(a, b, 60)
    assert net.edge_count == 2
    assert net.is_linked(a.id, b.id) and net.is_linked(b.id, a.id)
    assert net.speed_limit(b.id, a.id) == 60


def test_connections_keep_insertion_order_and_duplicates(trio):
    net, a, b, c = trio
    net.add_connection(a, c, 30)
    net.add_connection(a, b, 50)
    net.add_connection(a, c, 120)
    assert [(x.destination.id, x.speed_limit) for x in net.connections(a)] == [
        ("N3", 30),
        ("N2", 50),
        ("N3", 120),
    ]
    # first matching connection wins
    assert net.speed_limit(a.id, c.id) == 30


def test_lookups_for_unknown_ids(trio):
    net, a, _, _ = trio
    assert net.get_node("nope") is None
    assert net.speed_limit(a.id, "nope") is None
    assert net.connections(_node(42)) == ()
    assert _node(42) not in net
    assert a in net


def test_node_identity_is_the_id():
    a = Node("X", "one", Coordinate(1.0, 2.0))
    b = Node("X", "two", Coordinate(3.0, 4.0))
    assert a == b
    assert len({a, b}) == 1
    assert str(a) == "one (X)"
