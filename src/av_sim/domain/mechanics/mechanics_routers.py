import logging
import math

from av_sim.app.protocols import Navigator
from av_sim.domain.entities.geography import Coordinate, Node, Road
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_geodesy import bearing_deg, distance_km, km_to_miles

log = logging.getLogger(__name__)

Hop = tuple[Node, Node, int]  # (from, to, speed limit of the edge used)

# closer than this to the segment end, keep the segment bearing
_AIM_EPS_KM = 1e-3


def shortest_hops(network: RoadNetwork, start: Node, end: Node) -> list[Hop] | None:
    """
    Dijkstra by cached edge distance with a linear-scan frontier.
    Returns the hops start -> end in travel order, [] when start == end,
    None when end is unreachable.
    """
    for n in (start, end):
        if n not in network:
            raise ValueError(f"node {n.id!r} is not part of the network")

    dist: dict[str, float] = {n.id: math.inf for n in network.nodes}
    dist[start.id] = 0.0
    prev: dict[str, tuple[Node, int]] = {}
    unvisited: dict[str, Node] = {n.id: n for n in network.nodes}  # keeps node order for ties

    while unvisited:
        current = min(unvisited.values(), key=lambda n: dist[n.id])
        if dist[current.id] == math.inf:
            break
        del unvisited[current.id]

        if current.id == end.id:
            break

        for c in network.connections(current):
            if c.destination.id not in unvisited:
                continue
            alt = dist[current.id] + c.distance_km
            if alt < dist[c.destination.id]:
                dist[c.destination.id] = alt
                prev[c.destination.id] = (current, c.speed_limit)

    if dist[end.id] == math.inf:
        return None

    hops: list[Hop] = []
    node = end
    while node.id != start.id:
        before, speed_limit = prev[node.id]
        hops.append((before, node, speed_limit))
        node = before
    hops.reverse()
    return hops


class _DijkstraNavigator(Navigator):
    def __init__(self, network: RoadNetwork):
        self.network = network

    def _road(self, a: Node, b: Node, speed_limit: int) -> Road:
        raise NotImplementedError

    def navigate(self, start: Node, end: Node) -> list[Road] | None:
        log.info("finding route", extra={"extra": {"start": start.id, "end": end.id}})
        hops = shortest_hops(self.network, start, end)
        if hops is None:
            log.warning("no route found", extra={"extra": {"start": start.id, "end": end.id}})
            return None
        return [self._road(a, b, limit) for a, b, limit in hops]

    def speed_correction(self, road: Road, current_speed: float) -> float:
        return road.speed_limit - current_speed

    def bearing_correction(
        self, road: Road, current_bearing: float, position: Coordinate | None = None
    ) -> float:
        """
        Signed, not wrapped to the shorter turn. Given the vehicle position,
        aims at the segment end so the heading follows the great circle.
        """
        target = road.bearing
        if position is not None and road.end is not None:
            if distance_km(position, road.end) > _AIM_EPS_KM:
                target = bearing_deg(position, road.end)
        return target - current_bearing

    def segment_distance(self, road: Road) -> float:
        return road.distance


class GroundTruthRouter(_DijkstraNavigator):
    """Kilometres and km/h, exactly as stored in the network."""

    def _road(self, a: Node, b: Node, speed_limit: int) -> Road:
        return Road(
            distance=distance_km(a.coordinate, b.coordinate),
            bearing=bearing_deg(a.coordinate, b.coordinate),
            speed_limit=speed_limit,
            start=a.coordinate,
            end=b.coordinate,
            from_id=a.id,
            to_id=b.id,
        )

    def find_path(self, start: Node, end: Node) -> list[Node] | None:
        hops = shortest_hops(self.network, start, end)
        if hops is None:
            return None
        if not hops:
            return [start]
        return [hops[0][0], *(b for _, b, _ in hops)]


class MismatchedUnitRouter(_DijkstraNavigator):
    """
    Third-party style provider: distances in miles, and the km/h limit pushed
    through the same miles factor and truncated. The limit it reports is
    therefore not a valid speed in either unit; downstream checks rely on
    that exact arithmetic (50 km/h -> 31).
    """

    def _road(self, a: Node, b: Node, speed_limit: int) -> Road:
        return Road(
            distance=km_to_miles(distance_km(a.coordinate, b.coordinate)),
            bearing=bearing_deg(a.coordinate, b.coordinate),
            speed_limit=int(km_to_miles(speed_limit)),
            start=a.coordinate,
            end=b.coordinate,
            from_id=a.id,
            to_id=b.id,
        )
