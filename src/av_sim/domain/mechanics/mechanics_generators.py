import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from av_sim.app.protocols import NetworkGenerator
from av_sim.domain.entities.geography import Coordinate, Node
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_geodesy import distance_km

log = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Generated network broke a post-generation invariant."""


@dataclass
class _Arena:
    """In-progress network plus its degree counters; dropped after generate()."""

    network: RoadNetwork
    nodes: list[Node]
    degree: dict[str, int] = field(default_factory=dict)

    def link(self, a: Node, b: Node, speed_limit: int) -> None:
        self.network.add_bidirectional_connection(a, b, speed_limit)
        self.degree[a.id] += 1
        self.degree[b.id] += 1


def connected_components(network: RoadNetwork) -> list[set[str]]:
    """Components of the undirected view, in node order, via depth-first search."""
    undirected: dict[str, set[str]] = {n.id: set() for n in network.nodes}
    for n in network.nodes:
        for c in network.connections(n):
            undirected[n.id].add(c.destination.id)
            undirected[c.destination.id].add(n.id)

    seen: set[str] = set()
    components: list[set[str]] = []
    for n in network.nodes:
        if n.id in seen:
            continue
        comp: set[str] = set()
        stack = [n.id]
        while stack:
            u = stack.pop()
            if u in seen:
                continue
            seen.add(u)
            comp.add(u)
            stack.extend(v for v in undirected[u] if v not in seen)
        components.append(comp)
    return components


class RandomNetworkGenerator(NetworkGenerator):
    """
    Sparse, locally clustered road network:
      1. jittered nodes around a random center
      2. each under-connected node links to a few of its nearest neighbours
      3. isolated nodes are forced onto their nearest neighbour
      4. remaining components are bridged at their closest pair
    """

    def __init__(
        self,
        *,
        rng,
        min_nodes: int = 35,
        max_nodes: int = 45,
        center_lon: tuple[float, float] = (50.0, 70.0),
        center_lat: tuple[float, float] = (50.0, 70.0),
        jitter_deg: float = 3.0,
        min_distance_km: float = 5.0,
        max_distance_km: float = 200.0,
        target_degree: int = 2,
        max_degree: int = 3,
        nearest_candidates: int = 5,
        speed_limits: Sequence[int] = (30, 50, 60, 80, 100, 120, 130),
    ):
        self.rng = rng
        self.min_nodes, self.max_nodes = min_nodes, max_nodes
        self.center_lon, self.center_lat = center_lon, center_lat
        self.jitter_deg = jitter_deg
        self.min_distance_km, self.max_distance_km = min_distance_km, max_distance_km
        self.target_degree, self.max_degree = target_degree, max_degree
        self.nearest_candidates = nearest_candidates
        self.speed_limits = list(speed_limits)

    def generate(self) -> RoadNetwork:
        arena = _Arena(network=RoadNetwork(), nodes=self._create_nodes())
        for n in arena.nodes:
            arena.network.add_node(n)
            arena.degree[n.id] = 0

        self._sparse_network(arena)
        self._connect_isolated(arena)
        self._bridge_components(arena)
        self._check(arena)

        log.info(
            "network generated",
            extra={"extra": {"nodes": len(arena.network), "edges": arena.network.edge_count}},
        )
        return arena.network

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _create_nodes(self) -> list[Node]:
        count = int(self.rng.integers(self.min_nodes, self.max_nodes))
        lon0 = self.rng.uniform(*self.center_lon)
        lat0 = self.rng.uniform(*self.center_lat)

        nodes = []
        for i in range(count):
            lon = lon0 + (self.rng.random() - 0.5) * self.jitter_deg
            lat = lat0 + (self.rng.random() - 0.5) * self.jitter_deg
            nodes.append(Node(f"N{i:03d}", f"Node {i + 1}", Coordinate(lon, lat)))
        return nodes

    def _speed_limit(self) -> int:
        return int(self.speed_limits[int(self.rng.integers(0, len(self.speed_limits)))])

    def _nearest_candidates(self, arena: _Arena, i: int) -> list[tuple[Node, float]]:
        here = arena.nodes[i].coordinate
        cands = [
            (n, distance_km(here, n.coordinate))
            for j, n in enumerate(arena.nodes)
            if j != i and arena.degree[n.id] < self.max_degree
        ]
        cands.sort(key=lambda nd: nd[1])  # stable: ties keep input order
        return cands[: self.nearest_candidates]

    def _sparse_network(self, arena: _Arena) -> None:
        for i, node in enumerate(arena.nodes):
            if arena.degree[node.id] >= self.target_degree:
                continue

            wanted = int(self.rng.integers(1, self.max_degree))
            added = 0
            for cand, d in self._nearest_candidates(arena, i):
                if added >= wanted:
                    break
                if d < self.min_distance_km or d > self.max_distance_km:
                    continue
                if (
                    arena.degree[node.id] >= self.target_degree
                    or arena.degree[cand.id] >= self.max_degree
                ):
                    continue
                if arena.network.is_linked(node.id, cand.id):
                    continue
                arena.link(node, cand, self._speed_limit())
                added += 1

    def _connect_isolated(self, arena: _Arena) -> None:
        for i, node in enumerate(arena.nodes):
            if arena.degree[node.id] > 0:
                continue
            nearest = min(
                (n for j, n in enumerate(arena.nodes) if j != i),
                key=lambda n: distance_km(node.coordinate, n.coordinate),
            )
            arena.link(node, nearest, self._speed_limit())

    def _bridge_components(self, arena: _Arena) -> None:
        components = connected_components(arena.network)
        if len(components) > 1:
            log.warning(
                "disconnected components found, bridging",
                extra={"extra": {"components": len(components)}},
            )

        while len(components) > 1:
            first, second = components[0], components[1]
            a, b, d = self._closest_pair(arena.network, first, second)
            arena.link(a, b, self._speed_limit())
            log.info(
                "bridged components",
                extra={"extra": {"a": a.id, "b": b.id, "distance_km": round(d, 1)}},
            )
            components = [first | second, *components[2:]]

    @staticmethod
    def _closest_pair(network: RoadNetwork, first: set[str], second: set[str]):
        # sorted ids keep the choice independent of set iteration order
        best = None
        for id1 in sorted(first):
            n1 = network.get_node(id1)
            for id2 in sorted(second):
                n2 = network.get_node(id2)
                d = distance_km(n1.coordinate, n2.coordinate)
                if best is None or d < best[2]:
                    best = (n1, n2, d)
        return best

    @staticmethod
    def _check(arena: _Arena) -> None:
        lonely = [n.id for n in arena.nodes if not arena.network.connections(n)]
        if lonely:
            raise GenerationError(f"nodes without connections after repair: {lonely}")
        components = connected_components(arena.network)
        if len(components) != 1:
            raise GenerationError(f"network still has {len(components)} components after repair")
