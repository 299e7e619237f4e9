import pytest

from av_sim.domain.entities.geography import Coordinate, Node
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_geodesy import destination_point


@pytest.fixture
def line_net():
    """A -(50)- B -(60)- C due east along the equator, 10 km apart, plus a lone D."""
    a = Node("A", "Alpha", Coordinate(0.0, 0.0))
    b = Node("B", "Bravo", destination_point(a.coordinate, 90.0, 10.0))
    c = Node("C", "Charlie", destination_point(b.coordinate, 90.0, 10.0))
    d = Node("D", "Delta", Coordinate(1.0, 1.0))
    net = RoadNetwork()
    for n in (a, b, c, d):
        net.add_node(n)
    net.add_bidirectional_connection(a, b, 50)
    net.add_bidirectional_connection(b, c, 60)
    return net, a, b, c, d
